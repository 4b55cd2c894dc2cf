"""Domain enumerations for the PropYield analysis pipeline.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum


class AssetCategory(str, Enum):
    """Monetizable asset categories reported for a property."""

    ROOFTOP = "rooftop"
    GARDEN = "garden"
    PARKING = "parking"
    POOL = "pool"
    STORAGE = "storage"
    BANDWIDTH = "bandwidth"
    SHORT_TERM_RENTAL = "shortTermRental"


class ServiceCategory(str, Enum):
    """Provider service categories used by the coverage table."""

    SOLAR = "solar"
    GARDEN = "garden"
    PARKING = "parking"
    POOL = "pool"
    STORAGE = "storage"
    BANDWIDTH = "bandwidth"
    RENTAL = "rental"


# Which provider service category serves each asset category.
ASSET_SERVICE_CATEGORY: dict[AssetCategory, ServiceCategory] = {
    AssetCategory.ROOFTOP: ServiceCategory.SOLAR,
    AssetCategory.GARDEN: ServiceCategory.GARDEN,
    AssetCategory.PARKING: ServiceCategory.PARKING,
    AssetCategory.POOL: ServiceCategory.POOL,
    AssetCategory.STORAGE: ServiceCategory.STORAGE,
    AssetCategory.BANDWIDTH: ServiceCategory.BANDWIDTH,
    AssetCategory.SHORT_TERM_RENTAL: ServiceCategory.RENTAL,
}


class PropertyType(str, Enum):
    """Property class that drives revenue ceilings and provider eligibility."""

    SINGLE_FAMILY = "single_family"
    APARTMENT = "apartment"
    COMMERCIAL = "commercial"
    MULTI_FAMILY = "multi_family"


class Coverage(str, Enum):
    """How well a provider services a location."""

    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"
    # Suggested by the analysis model but absent from the coverage registry.
    UNVERIFIED = "unverified"


class MarketTrend(str, Enum):
    """Direction of the local rental market."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class MeasurementUnit(str, Enum):
    """Unit attached to an extracted measurement."""

    SQFT = "sqft"
    COUNT = "count"
    PERCENT = "percent"


class PipelineStep(str, Enum):
    """Steps of the analysis orchestrator, in execution order."""

    RECEIVE_REQUEST = "receive_request"
    RESOLVE_COORDINATES = "resolve_coordinates"
    RESOLVE_LOCATION = "resolve_location"
    FETCH_NARRATIVE = "fetch_narrative"
    EXTRACT_MEASUREMENTS = "extract_measurements"
    REQUEST_STRUCTURED_ANALYSIS = "request_structured_analysis"
    VALIDATE_REVENUE = "validate_revenue"
    VERIFY_COVERAGE = "verify_coverage"
    COMPOSE_RESULT = "compose_result"
