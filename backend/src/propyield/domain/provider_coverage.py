"""Static provider coverage registry.

Read-only after import: every record is a frozen dataclass holding tuples,
so concurrent coverage checks can share it without locking.
"""

from dataclasses import dataclass, field
from types import MappingProxyType

from propyield.domain.enums import PropertyType, ServiceCategory

P = PropertyType
SC = ServiceCategory


@dataclass(frozen=True)
class CoverageZone:
    """Circular coverage area around a point. Radius in miles."""

    lat: float
    lng: float
    radius_miles: float


@dataclass(frozen=True)
class CoverageAreas:
    countries: tuple[str, ...]
    states: tuple[str, ...] = ()
    metros: tuple[str, ...] = ()
    zones: tuple[CoverageZone, ...] = ()


@dataclass(frozen=True)
class ProviderRestrictions:
    hoa_approval: bool = False
    permits: tuple[str, ...] = ()
    minimum_property_size: float | None = None
    property_types: tuple[PropertyType, ...] = ()


@dataclass(frozen=True)
class ProviderCoverage:
    provider_id: str
    name: str
    service_category: ServiceCategory
    areas: CoverageAreas
    restrictions: ProviderRestrictions = field(default_factory=ProviderRestrictions)


_EU_AND_ANGLO = ("US", "CA", "GB", "AU", "DE", "FR", "ES", "IT", "NL", "SE", "NO", "DK", "FI")

PROVIDER_COVERAGE: tuple[ProviderCoverage, ...] = (
    ProviderCoverage(
        provider_id="tesla-solar",
        name="Tesla Solar",
        service_category=SC.SOLAR,
        areas=CoverageAreas(
            countries=("US",),
            states=("CA", "TX", "FL", "NY", "AZ", "NV", "NJ", "MA", "CT", "DE",
                    "MD", "PA", "VA", "NC", "SC"),
        ),
        restrictions=ProviderRestrictions(
            hoa_approval=True,
            permits=("solar-permit",),
            minimum_property_size=1000,
            property_types=(P.SINGLE_FAMILY,),
        ),
    ),
    ProviderCoverage(
        provider_id="sunrun",
        name="Sunrun",
        service_category=SC.SOLAR,
        areas=CoverageAreas(
            countries=("US",),
            states=("CA", "AZ", "NV", "TX", "FL", "SC", "NC", "VA", "MD", "DE",
                    "NJ", "PA", "CT", "MA", "RI", "NY", "VT", "NH"),
        ),
        restrictions=ProviderRestrictions(
            hoa_approval=True,
            permits=("solar-permit",),
            property_types=(P.SINGLE_FAMILY, P.COMMERCIAL),
        ),
    ),
    ProviderCoverage(
        provider_id="spothero",
        name="SpotHero",
        service_category=SC.PARKING,
        areas=CoverageAreas(
            countries=("US",),
            metros=("NYC", "CHI", "LA", "SF", "BOS", "DC", "PHI", "SEA", "DEN",
                    "ATL", "MIA", "DAL"),
        ),
        restrictions=ProviderRestrictions(
            property_types=(P.SINGLE_FAMILY, P.MULTI_FAMILY, P.COMMERCIAL),
        ),
    ),
    ProviderCoverage(
        provider_id="neighbor",
        name="Neighbor",
        service_category=SC.STORAGE,
        areas=CoverageAreas(
            countries=("US",),
            states=("CA", "TX", "FL", "NY", "IL", "PA", "OH", "GA", "NC", "MI",
                    "NJ", "VA", "WA", "AZ", "MA", "TN", "IN", "MO", "MD", "WI"),
        ),
        restrictions=ProviderRestrictions(
            property_types=(P.SINGLE_FAMILY, P.MULTI_FAMILY),
        ),
    ),
    ProviderCoverage(
        provider_id="swimply",
        name="Swimply",
        service_category=SC.POOL,
        areas=CoverageAreas(
            countries=("US",),
            states=("CA", "TX", "FL", "AZ", "NV", "GA", "NC", "SC", "TN", "AL",
                    "LA", "AR", "OK"),
        ),
        restrictions=ProviderRestrictions(
            permits=("pool-rental-permit",),
            property_types=(P.SINGLE_FAMILY,),
        ),
    ),
    ProviderCoverage(
        provider_id="sniffspot",
        name="Sniffspot",
        service_category=SC.GARDEN,
        areas=CoverageAreas(
            countries=("US",),
            zones=(
                CoverageZone(47.6062, -122.3321, radius_miles=40),  # Seattle
                CoverageZone(45.5152, -122.6784, radius_miles=30),  # Portland
                CoverageZone(30.2672, -97.7431, radius_miles=30),   # Austin
                CoverageZone(39.7392, -104.9903, radius_miles=30),  # Denver
            ),
        ),
        restrictions=ProviderRestrictions(
            property_types=(P.SINGLE_FAMILY,),
        ),
    ),
    ProviderCoverage(
        provider_id="honeygain",
        name="Honeygain",
        service_category=SC.BANDWIDTH,
        areas=CoverageAreas(countries=_EU_AND_ANGLO),
    ),
    ProviderCoverage(
        provider_id="airbnb",
        name="Airbnb",
        service_category=SC.RENTAL,
        areas=CoverageAreas(countries=_EU_AND_ANGLO + ("JP", "KR")),
        restrictions=ProviderRestrictions(
            hoa_approval=True,
            permits=("short-term-rental-permit",),
            property_types=(P.SINGLE_FAMILY, P.MULTI_FAMILY, P.APARTMENT),
        ),
    ),
)

# City name (as returned by the geocoder) -> metro code.
CITY_METRO_MAP = MappingProxyType({
    "New York": "NYC",
    "Brooklyn": "NYC",
    "Manhattan": "NYC",
    "Queens": "NYC",
    "Chicago": "CHI",
    "Los Angeles": "LA",
    "San Francisco": "SF",
    "Boston": "BOS",
    "Washington": "DC",
    "Philadelphia": "PHI",
    "Seattle": "SEA",
    "Denver": "DEN",
    "Atlanta": "ATL",
    "Miami": "MIA",
    "Dallas": "DAL",
})


def providers_for(category: ServiceCategory) -> tuple[ProviderCoverage, ...]:
    """All registered providers for *category*, in registry order."""
    return tuple(p for p in PROVIDER_COVERAGE if p.service_category == category)
