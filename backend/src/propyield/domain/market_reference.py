"""Market reference configuration shared by rate estimation and revenue validation.

A single immutable ``MarketReference`` instance is injected into both
``GeoRateEstimator`` and ``RevenueValidator`` so the two can never disagree
on the authoritative parking rate or on the revenue ceilings.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ReferenceMetro:
    """A major metro with known market rates."""

    name: str
    lat: float
    lng: float
    parking_rate_per_day: float
    average_rent: float


@dataclass(frozen=True)
class RevenueCeilings:
    """Hard monthly ceilings (USD) per asset, split residential / commercial."""

    solar_residential: float = 200.0
    solar_commercial: float = 500.0
    parking_residential: float = 1000.0
    parking_commercial: float = 1500.0
    parking_spaces_residential: int = 3
    parking_spaces_commercial: int = 20
    pool: float = 800.0
    garden: float = 200.0
    bandwidth: float = 50.0
    storage: float = 300.0


DEFAULT_METROS: tuple[ReferenceMetro, ...] = (
    ReferenceMetro("New York", 40.7128, -74.0060, parking_rate_per_day=40.0, average_rent=3500.0),
    ReferenceMetro("Los Angeles", 34.0522, -118.2437, parking_rate_per_day=25.0, average_rent=2800.0),
    ReferenceMetro("San Francisco", 37.7749, -122.4194, parking_rate_per_day=30.0, average_rent=4200.0),
    ReferenceMetro("Chicago", 41.8781, -87.6298, parking_rate_per_day=25.0, average_rent=2200.0),
    ReferenceMetro("Boston", 42.3601, -71.0589, parking_rate_per_day=30.0, average_rent=3200.0),
    ReferenceMetro("Washington", 38.9072, -77.0369, parking_rate_per_day=28.0, average_rent=2700.0),
    ReferenceMetro("Seattle", 47.6062, -122.3321, parking_rate_per_day=25.0, average_rent=2600.0),
    ReferenceMetro("Miami", 25.7617, -80.1918, parking_rate_per_day=20.0, average_rent=2500.0),
)


@dataclass(frozen=True)
class MarketReference:
    """Immutable market configuration.

    Attributes:
        metros: Reference points used for nearest-metro interpolation.
        base_parking_rate: National baseline parking rate ($/day).
        base_rent: National baseline monthly rent ($).
        parking_rate_band: Sane (min, max) for any parking rate ($/day).
        rent_band: Sane (min, max) for any monthly rent ($).
        base_solar_savings: Monthly solar savings at the optimal latitude ($).
        optimal_solar_latitude: Latitude at which solar savings peak.
        parking_days_per_month: Rentable days assumed per month.
        ceilings: Revenue ceilings applied by the validator.
    """

    metros: tuple[ReferenceMetro, ...] = DEFAULT_METROS
    base_parking_rate: float = 15.0
    base_rent: float = 1500.0
    parking_rate_band: tuple[float, float] = (8.0, 50.0)
    rent_band: tuple[float, float] = (800.0, 6000.0)
    base_solar_savings: float = 150.0
    optimal_solar_latitude: float = 35.0
    parking_days_per_month: int = 20
    ceilings: RevenueCeilings = field(default_factory=RevenueCeilings)


DEFAULT_MARKET_REFERENCE = MarketReference()
