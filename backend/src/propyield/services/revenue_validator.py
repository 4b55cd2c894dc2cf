"""Revenue validation and repair.

Pure-function module: NO LLM, NO network access.

Takes the structured analysis produced by the language model and returns a
corrected copy in which:

    * every asset revenue respects its ceiling for the property class,
    * the parking rate is the authoritative ``GeoRateEstimator`` rate and
      parking revenue is recomputed from it,
    * every opportunity mirroring an asset carries that asset's revenue,
    * property-level totals are the sum of the corrected asset revenues.

The validator never raises on out-of-range input and is idempotent:
validating its own output changes nothing.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from propyield.domain.enums import AssetCategory, PropertyType
from propyield.domain.market_reference import DEFAULT_MARKET_REFERENCE, MarketReference
from propyield.domain.schemas import (
    AssetAnalysis,
    Coordinates,
    Opportunity,
    PropertyAnalysis,
    PropertyValuation,
    RevenueAdjustment,
)
from propyield.services.geo_rate_estimator import GeoRateEstimator
from propyield.services.opportunity_normalizer import category_for_title
from propyield.services.property_classifier import is_commercial, normalize_property_type

logger = logging.getLogger(__name__)

# Assets whose revenue counts towards the property totals.
TOTAL_CATEGORIES = (
    AssetCategory.ROOFTOP,
    AssetCategory.GARDEN,
    AssetCategory.PARKING,
    AssetCategory.POOL,
    AssetCategory.STORAGE,
    AssetCategory.BANDWIDTH,
)

# Single-family homes with an implausible space count fall back to this.
SINGLE_FAMILY_DEFAULT_SPACES = 2


def _money(value: float) -> float:
    return round(value, 2)


def _payback_months(setup_cost: float, monthly_revenue: float) -> float:
    if setup_cost <= 0:
        return 0.0
    return float(math.ceil(setup_cost / max(monthly_revenue, 1)))


def _parking_description(spaces: int, rate: float, days: int) -> str:
    noun = "space" if spaces == 1 else "spaces"
    return f"Rent out {spaces} parking {noun} at ${rate:.2f}/day for about {days} days a month."


class RevenueValidator:
    """Applies ceilings, recomputes parking and keeps opportunities in sync."""

    def __init__(
        self,
        reference: MarketReference = DEFAULT_MARKET_REFERENCE,
        estimator: GeoRateEstimator | None = None,
    ) -> None:
        if estimator is not None and estimator.reference is not reference:
            raise ValueError("estimator must share the validator's MarketReference")
        self._reference = reference
        self._estimator = estimator or GeoRateEstimator(reference)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(
        self,
        analysis: PropertyAnalysis,
        coordinates: Coordinates | None = None,
        property_type: PropertyType | str | None = None,
    ) -> tuple[PropertyAnalysis, list[RevenueAdjustment]]:
        """Return a corrected deep copy of *analysis* plus the adjustments made.

        Args:
            analysis: The model's analysis. Never mutated.
            coordinates: Property location; selects the authoritative parking
                rate. Without it the reference base rate is used.
            property_type: Property class. Falls back to the analysis's own
                ``propertyType`` string when omitted.
        """
        result = analysis.model_copy(deep=True)
        adjustments: list[RevenueAdjustment] = []
        ptype = normalize_property_type(property_type) or normalize_property_type(result.property_type)

        self._apply_property_type_rules(result, ptype, adjustments)
        self._apply_ceilings(result, coordinates, ptype, adjustments)
        self._sync_opportunities(result)
        self._recompute_totals(result)

        for adj in adjustments:
            logger.info(
                "Adjusted %s.%s from %s to %s (%s)",
                adj.category.value,
                adj.field,
                adj.original,
                adj.corrected,
                adj.reason,
            )
        return result, adjustments

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _apply_property_type_rules(
        self,
        analysis: PropertyAnalysis,
        ptype: Optional[PropertyType],
        adjustments: list[RevenueAdjustment],
    ) -> None:
        parking = analysis.parking
        spaces = parking.spaces
        if ptype in (PropertyType.APARTMENT, PropertyType.MULTI_FAMILY):
            limit = self._reference.ceilings.parking_spaces_residential
            if spaces <= limit:
                return
            target, reason = limit, f"{ptype.value} properties have at most {limit} spaces"
        elif ptype == PropertyType.SINGLE_FAMILY:
            if spaces <= self._reference.ceilings.parking_spaces_residential:
                return
            target = SINGLE_FAMILY_DEFAULT_SPACES
            reason = f"single-family properties default to {target} spaces"
        else:
            return

        self._record(adjustments, parking, "spaces", spaces, target, reason)
        parking.spaces = target
        scaled = _money(parking.revenue * target / spaces) if spaces else 0.0
        self._record(adjustments, parking, "revenue", parking.revenue, scaled, "scaled with space reduction")
        parking.revenue = scaled

    def _apply_ceilings(
        self,
        analysis: PropertyAnalysis,
        coordinates: Coordinates | None,
        ptype: Optional[PropertyType],
        adjustments: list[RevenueAdjustment],
    ) -> None:
        ceilings = self._reference.ceilings
        commercial = is_commercial(ptype)
        label = "commercial" if commercial else "residential"

        self._cap(
            adjustments,
            analysis.rooftop,
            ceilings.solar_commercial if commercial else ceilings.solar_residential,
            f"{label} solar ceiling",
        )

        # Parking: authoritative rate, space limit, recomputed revenue.
        parking = analysis.parking
        rate = self._estimator.parking_rate(coordinates)
        self._record(adjustments, parking, "rate", parking.rate, rate, "authoritative market rate")
        parking.rate = rate

        space_limit = (
            ceilings.parking_spaces_commercial if commercial else ceilings.parking_spaces_residential
        )
        spaces = min(max(parking.spaces, 0), space_limit)
        self._record(adjustments, parking, "spaces", parking.spaces, spaces, f"{label} space limit")
        parking.spaces = spaces

        cap = ceilings.parking_commercial if commercial else ceilings.parking_residential
        revenue = _money(min(spaces * rate * self._reference.parking_days_per_month, cap))
        self._record(adjustments, parking, "revenue", parking.revenue, revenue, "recomputed from rate and spaces")
        parking.revenue = revenue

        self._cap(adjustments, analysis.pool, ceilings.pool, "pool ceiling")
        self._cap(adjustments, analysis.garden, ceilings.garden, "garden ceiling")
        self._cap(adjustments, analysis.bandwidth, ceilings.bandwidth, "bandwidth ceiling")
        self._cap(adjustments, analysis.storage, ceilings.storage, "storage ceiling")

    def _sync_opportunities(self, analysis: PropertyAnalysis) -> None:
        """Mirror each asset's revenue into the opportunities tagged with it."""
        days = self._reference.parking_days_per_month
        for opp in analysis.top_opportunities:
            if opp.category is None:
                opp.category = category_for_title(opp.title)
            if opp.category is None:
                continue

            revenue = _money(analysis.asset(opp.category).monthly_revenue)
            if opp.monthly_revenue == revenue:
                continue

            logger.debug(
                "Opportunity %r revenue %s -> %s", opp.title, opp.monthly_revenue, revenue
            )
            opp.monthly_revenue = revenue
            opp.roi = _payback_months(opp.setup_cost, revenue)
            if opp.category == AssetCategory.PARKING:
                parking = analysis.parking
                opp.description = _parking_description(parking.spaces, parking.rate, days)

    def _recompute_totals(self, analysis: PropertyAnalysis) -> None:
        monthly = _money(sum(analysis.asset(c).monthly_revenue for c in TOTAL_CATEGORIES))
        valuation = analysis.property_valuation or PropertyValuation()
        valuation.total_monthly_revenue = monthly
        valuation.total_annual_revenue = _money(monthly * 12)

        opportunities = analysis.top_opportunities
        if opportunities:
            valuation.total_setup_costs = _money(sum(o.setup_cost for o in opportunities))
            best = self._best_opportunity(opportunities)
            valuation.best_opportunity = best.title if best else ""
            rois = [o.roi for o in opportunities if o.roi > 0]
            valuation.average_roi = round(sum(rois) / len(rois), 1) if rois else 0.0
        analysis.property_valuation = valuation

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _cap(
        self,
        adjustments: list[RevenueAdjustment],
        asset: AssetAnalysis,
        ceiling: float,
        reason: str,
    ) -> None:
        corrected = min(max(asset.revenue, 0.0), ceiling)
        self._record(adjustments, asset, "revenue", asset.revenue, corrected, reason)
        asset.revenue = corrected

    @staticmethod
    def _record(
        adjustments: list[RevenueAdjustment],
        asset: AssetAnalysis,
        field: str,
        original: float,
        corrected: float,
        reason: str,
    ) -> None:
        if original == corrected:
            return
        adjustments.append(
            RevenueAdjustment(
                category=asset.category,
                field=field,
                original=original,
                corrected=corrected,
                reason=reason,
            )
        )

    @staticmethod
    def _best_opportunity(opportunities: list[Opportunity]) -> Optional[Opportunity]:
        best: Optional[Opportunity] = None
        for opp in opportunities:
            if best is None or opp.monthly_revenue > best.monthly_revenue:
                best = opp
        return best
