"""Location-aware market rate estimation.

Pure-function module: NO LLM, NO network access.

Rates are interpolated from the nearest reference metro in the injected
``MarketReference``.  Distance is plain Euclidean distance in degrees, an
approximation that is good enough for nearest-major-city bucketing.  It is
not geodesic and must not be used for coverage gating (see
``coverage_verifier._haversine_miles`` for that).
"""

from __future__ import annotations

import logging
import math

from propyield.domain.enums import MarketTrend
from propyield.domain.market_reference import (
    DEFAULT_MARKET_REFERENCE,
    MarketReference,
    ReferenceMetro,
)
from propyield.domain.schemas import Coordinates, MarketData

logger = logging.getLogger(__name__)

# ── Decay constants ──────────────────────────────────────────────────────────

# Proximity factor lost per degree of distance from the reference metro.
DISTANCE_DECAY_PER_DEGREE = 10.0
MIN_PROXIMITY_FACTOR = 0.3

# Solar savings lose this share per degree away from the optimal latitude.
SOLAR_DECAY_DEGREES = 20.0
MIN_SOLAR_FACTOR = 0.5

# Trend / confidence derived from the proximity factor.
UP_TREND_FACTOR = 0.7
BASE_CONFIDENCE = 0.5
PROXIMITY_CONFIDENCE_WEIGHT = 0.35


def _clamp(value: float, band: tuple[float, float]) -> float:
    low, high = band
    return min(max(value, low), high)


def _blend(factor: float, reference_value: float, base_value: float) -> float:
    return factor * reference_value + (1 - factor) * base_value


class GeoRateEstimator:
    """Derives ``MarketData`` for a coordinate pair.

    Deterministic: identical coordinates always produce identical output.
    """

    def __init__(self, reference: MarketReference = DEFAULT_MARKET_REFERENCE) -> None:
        if not reference.metros:
            raise ValueError("MarketReference must define at least one reference metro")
        self._reference = reference

    @property
    def reference(self) -> MarketReference:
        return self._reference

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def estimate(self, coordinates: Coordinates) -> MarketData:
        """Market data for *coordinates*, interpolated from the nearest metro."""
        ref = self._reference
        metro, distance = self.nearest_metro(coordinates)
        factor = self.proximity_factor(distance)

        parking_rate = _clamp(
            _blend(factor, metro.parking_rate_per_day, ref.base_parking_rate),
            ref.parking_rate_band,
        )
        average_rent = _clamp(
            _blend(factor, metro.average_rent, ref.base_rent),
            ref.rent_band,
        )

        market = MarketData(
            average_rent=round(average_rent, 2),
            solar_savings_per_month=round(self.solar_savings(coordinates.lat), 2),
            parking_rate_per_day=round(parking_rate, 2),
            trend=MarketTrend.UP if factor >= UP_TREND_FACTOR else MarketTrend.STABLE,
            confidence=round(BASE_CONFIDENCE + PROXIMITY_CONFIDENCE_WEIGHT * factor, 3),
            estimated_data=True,
            reference_metro=metro.name,
        )
        logger.debug(
            "Market estimate for (%.4f, %.4f): metro=%s distance=%.3f° factor=%.2f parking=%.2f",
            coordinates.lat,
            coordinates.lng,
            metro.name,
            distance,
            factor,
            market.parking_rate_per_day,
        )
        return market

    def parking_rate(self, coordinates: Coordinates | None = None) -> float:
        """Authoritative parking rate ($/day).

        Without coordinates the national base rate, clamped to the band,
        is authoritative.
        """
        if coordinates is None:
            return _clamp(self._reference.base_parking_rate, self._reference.parking_rate_band)
        return self.estimate(coordinates).parking_rate_per_day

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def nearest_metro(self, coordinates: Coordinates) -> tuple[ReferenceMetro, float]:
        """Nearest reference metro and its distance in degrees.

        Ties resolve to the metro listed first in the reference table.
        """
        best: ReferenceMetro | None = None
        best_distance = math.inf
        for metro in self._reference.metros:
            distance = math.hypot(coordinates.lat - metro.lat, coordinates.lng - metro.lng)
            if distance < best_distance:
                best, best_distance = metro, distance
        assert best is not None
        return best, best_distance

    @staticmethod
    def proximity_factor(distance_degrees: float) -> float:
        return max(MIN_PROXIMITY_FACTOR, 1 - distance_degrees * DISTANCE_DECAY_PER_DEGREE)

    def solar_savings(self, lat: float) -> float:
        """Monthly solar savings decaying with distance from the optimal latitude."""
        ref = self._reference
        factor = max(
            MIN_SOLAR_FACTOR,
            1 - abs(lat - ref.optimal_solar_latitude) / SOLAR_DECAY_DEGREES,
        )
        return factor * ref.base_solar_savings
