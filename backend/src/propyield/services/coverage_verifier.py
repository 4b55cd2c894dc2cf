"""Provider coverage verification.

Pure-function module: NO LLM, NO network access.

Given a service category, a resolved location and the property details,
evaluates every registered provider against the static coverage table and
returns ranked, de-duplicated ``ProviderCandidate`` records.

Checks run in a fixed order and stop at the first failure:

    1. country      exact match
    2. state        US only, when the provider restricts by state
    3. metro        city -> metro lookup; unknown city never matches
    4. radius       haversine miles; <= r full, <= 1.5r partial
    5. default      no geographic restriction -> full
    6. property type
    7. minimum size (only when the property size is known)

Permit and HOA notes are advisory: they are appended to ``restrictions``
but never make a provider unavailable.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping

from propyield.domain.enums import Coverage, PropertyType, ServiceCategory
from propyield.domain.provider_coverage import (
    CITY_METRO_MAP,
    PROVIDER_COVERAGE,
    ProviderCoverage,
)
from propyield.domain.schemas import LocationInfo, PropertyDetails, ProviderCandidate

logger = logging.getLogger(__name__)

# ── Restriction messages ─────────────────────────────────────────────────────

NOT_IN_AREA = "Service not available in your area"
HOA_NOTE = "HOA approval may be required"
UNVERIFIED_NOTE = "Service availability not verified"

PARTIAL_RADIUS_MULTIPLIER = 1.5

_COVERAGE_RANK = {Coverage.FULL: 0, Coverage.PARTIAL: 1, Coverage.NONE: 2}


def _haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return the great-circle distance in miles between two lat/lng points."""
    R = 3958.8  # Earth radius in miles
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlng / 2) ** 2
    )
    return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _type_label(property_type: PropertyType) -> str:
    return property_type.value


class CoverageVerifier:
    """Stateless filter/rank over a provider coverage table."""

    def __init__(
        self,
        providers: Iterable[ProviderCoverage] = PROVIDER_COVERAGE,
        city_metros: Mapping[str, str] = CITY_METRO_MAP,
    ) -> None:
        self._providers = tuple(providers)
        self._city_metros = city_metros

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def verify(
        self,
        service_category: ServiceCategory,
        location: LocationInfo,
        property_details: PropertyDetails,
    ) -> list[ProviderCandidate]:
        """Ranked candidates for every provider registered for *service_category*."""
        seen: set[str] = set()
        candidates: list[ProviderCandidate] = []
        for provider in self._providers:
            if provider.service_category != service_category or provider.provider_id in seen:
                continue
            seen.add(provider.provider_id)
            candidates.append(self._check_provider(provider, location, property_details))

        # sorted() is stable, ties keep registry order.
        ranked = sorted(
            candidates,
            key=lambda c: (not c.available, _COVERAGE_RANK[c.coverage]),
        )
        logger.debug(
            "Coverage for %s at %s: %s",
            service_category.value,
            location.describe(),
            [(c.provider_id, c.available, c.coverage.value) for c in ranked],
        )
        return ranked

    def filter_candidates(
        self,
        service_category: ServiceCategory,
        upstream_providers: Iterable[ProviderCandidate],
        location: LocationInfo,
        property_details: PropertyDetails,
    ) -> list[ProviderCandidate]:
        """Verified candidates restricted to the providers the model suggested.

        Suggestions are matched by slugified id.  When none of them is a
        registered provider, the full verified list for the category is
        used instead.  Suggestions missing from the registry are kept at the
        end, marked ``unverified`` and unavailable.
        """
        upstream = list(upstream_providers)
        suggested = {p.provider_id for p in upstream}
        verified = self.verify(service_category, location, property_details)
        matched = [c for c in verified if c.provider_id in suggested]
        if not matched and suggested:
            logger.info(
                "No registered %s provider among suggestions %s; using full list",
                service_category.value,
                sorted(suggested),
            )

        registered = {c.provider_id for c in verified}
        unverified: dict[str, ProviderCandidate] = {}
        for provider in upstream:
            if provider.provider_id not in registered and provider.provider_id not in unverified:
                unverified[provider.provider_id] = ProviderCandidate(
                    provider_id=provider.provider_id,
                    name=provider.name,
                    coverage=Coverage.UNVERIFIED,
                    available=False,
                    restrictions=(UNVERIFIED_NOTE,),
                )
        return (matched or verified) + list(unverified.values())

    def alternative_providers(
        self,
        service_category: ServiceCategory,
        unavailable_ids: Iterable[str],
        location: LocationInfo | None = None,
        property_details: PropertyDetails | None = None,
    ) -> list[str]:
        """Other registered provider ids for the category.

        Without a location: every other registered provider, in registry
        order.  With one: only those verified as available there, in rank
        order.
        """
        excluded = set(unavailable_ids)
        if location is None:
            ids = [p.provider_id for p in self._providers if p.service_category == service_category]
        else:
            candidates = self.verify(service_category, location, property_details or PropertyDetails())
            ids = [c.provider_id for c in candidates if c.available]
        return [pid for pid in dict.fromkeys(ids) if pid not in excluded]

    # ------------------------------------------------------------------
    # Per-provider evaluation
    # ------------------------------------------------------------------

    def _check_provider(
        self,
        provider: ProviderCoverage,
        location: LocationInfo,
        details: PropertyDetails,
    ) -> ProviderCandidate:
        coverage = self._geographic_coverage(provider, location)
        if coverage == Coverage.NONE:
            return self._candidate(provider, Coverage.NONE, False, [NOT_IN_AREA])

        rules = provider.restrictions
        if rules.property_types and details.type not in rules.property_types:
            return self._candidate(
                provider,
                coverage,
                False,
                [f"Not available for {_type_label(details.type)} properties"],
            )

        if (
            rules.minimum_property_size
            and details.size_sqft is not None
            and details.size_sqft < rules.minimum_property_size
        ):
            return self._candidate(
                provider,
                coverage,
                False,
                [f"Minimum property size: {rules.minimum_property_size:g} sq ft"],
            )

        notes: list[str] = []
        if rules.hoa_approval and details.has_hoa:
            notes.append(HOA_NOTE)
        if rules.permits:
            notes.append(f"Permits required: {', '.join(rules.permits)}")
        return self._candidate(provider, coverage, True, notes)

    def _geographic_coverage(self, provider: ProviderCoverage, location: LocationInfo) -> Coverage:
        areas = provider.areas
        country = (location.country or "").upper()

        if country not in areas.countries:
            return Coverage.NONE

        if country == "US" and areas.states:
            if (location.state or "").upper() not in areas.states:
                return Coverage.NONE

        if areas.metros:
            metro = self._city_metros.get(location.city or "")
            return Coverage.FULL if metro in areas.metros else Coverage.NONE

        if areas.zones:
            lat, lng = location.coordinates.lat, location.coordinates.lng
            best = Coverage.NONE
            for zone in areas.zones:
                distance = _haversine_miles(lat, lng, zone.lat, zone.lng)
                if distance <= zone.radius_miles:
                    return Coverage.FULL
                if distance <= zone.radius_miles * PARTIAL_RADIUS_MULTIPLIER:
                    best = Coverage.PARTIAL
            return best

        return Coverage.FULL

    @staticmethod
    def _candidate(
        provider: ProviderCoverage,
        coverage: Coverage,
        available: bool,
        restrictions: list[str],
    ) -> ProviderCandidate:
        return ProviderCandidate(
            provider_id=provider.provider_id,
            name=provider.name,
            coverage=coverage,
            available=available,
            restrictions=tuple(restrictions),
        )


def summarize_availability(results: Mapping[str, list[ProviderCandidate]]) -> str:
    """One-line human summary, e.g. ``"3 of 5 providers available (parking: 1/1, ...)"``."""
    if not results:
        return "No provider categories evaluated"
    total = sum(len(c) for c in results.values())
    available = sum(1 for c in results.values() for p in c if p.available)
    parts = [
        f"{key}: {sum(1 for p in cands if p.available)}/{len(cands)}"
        for key, cands in results.items()
    ]
    return f"{available} of {total} providers available ({', '.join(parts)})"
