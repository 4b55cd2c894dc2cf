"""Pydantic v2 schemas for the analysis pipeline and its API surface.

Wire names are camelCase for UI compatibility (``rooftop``, ``shortTermRental``,
``topOpportunities``, ``propertyValuation`` ...). Python code uses the
snake_case attribute names; both spellings are accepted on input.
"""

import re
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from propyield.domain.enums import (
    AssetCategory,
    Coverage,
    MarketTrend,
    MeasurementUnit,
    PropertyType,
)


# ---------------------------------------------------------------------------
# Lenient numeric coercion for model-produced JSON
# ---------------------------------------------------------------------------


def _coerce_number(value: Any) -> float:
    """Turn LLM-style numbers ("$1,200", None, "n/a") into floats."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = re.search(r"-?\d[\d,]*(?:\.\d+)?", value)
        if match:
            return float(match.group(0).replace(",", ""))
    return 0.0


def _coerce_count(value: Any) -> int:
    return int(round(_coerce_number(value)))


Money = Annotated[float, BeforeValidator(_coerce_number)]
Quantity = Annotated[float, BeforeValidator(_coerce_number)]
Count = Annotated[int, BeforeValidator(_coerce_count)]


def slugify_provider(name: str) -> str:
    """Provider id convention: lowercase, whitespace collapsed to hyphens."""
    return re.sub(r"\s+", "-", name.strip().lower())


class CamelModel(BaseModel):
    """Base model emitting camelCase keys and accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Geography
# ---------------------------------------------------------------------------


class Coordinates(CamelModel):
    """A WGS84 latitude/longitude pair."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class LocationInfo(CamelModel):
    """Resolved location of the property. Immutable once resolved."""

    model_config = ConfigDict(frozen=True)

    country: str = "US"
    state: str | None = None
    city: str | None = None
    zip_code: str | None = None
    coordinates: Coordinates

    def describe(self) -> str:
        return f"{self.city or 'Unknown'}, {self.state or self.country}"


class MarketData(CamelModel):
    """Location-derived market rates. Deterministic for a coordinate pair."""

    model_config = ConfigDict(frozen=True)

    average_rent: float
    solar_savings_per_month: float
    parking_rate_per_day: float
    trend: MarketTrend
    confidence: float = Field(ge=0, le=1)
    estimated_data: bool = True
    reference_metro: str = ""


class PropertyDetails(CamelModel):
    """Property attributes used for ceilings and provider eligibility."""

    model_config = ConfigDict(frozen=True)

    type: PropertyType = PropertyType.SINGLE_FAMILY
    size_sqft: float | None = None
    has_hoa: bool | None = Field(default=None, alias="hasHOA")


# ---------------------------------------------------------------------------
# Measurements extracted from narrative text
# ---------------------------------------------------------------------------


class Measurement(CamelModel):
    """A single numeric feature read out of the vision narrative."""

    model_config = ConfigDict(frozen=True)

    value: float | None = None
    unit: MeasurementUnit
    confidence_score: float | None = Field(default=None, ge=0, le=100)


class ImageAnalysis(CamelModel):
    """Structured view of the vision narrative. Absent features are None."""

    roof_size: Measurement | None = None
    roof_type: str | None = None
    roof_orientation: str | None = None
    solar_potential_score: Measurement | None = None
    parking_spaces: Measurement | None = None
    parking_dimensions: Measurement | None = None
    garden_area: Measurement | None = None
    garden_potential_score: Measurement | None = None
    pool_present: bool | None = None
    pool_dimensions: Measurement | None = None
    pool_type: str | None = None
    overall_reliability: Measurement | None = None
    raw_text: str = ""

    def found_fields(self) -> list[str]:
        """Names of the features that were present in the narrative."""
        return [
            name for name in type(self).model_fields
            if name != "raw_text" and getattr(self, name) is not None
        ]


# ---------------------------------------------------------------------------
# Providers and opportunities
# ---------------------------------------------------------------------------


class ProviderCandidate(CamelModel):
    """A provider evaluated for one property. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    name: str = ""
    coverage: Coverage = Coverage.NONE
    available: bool = False
    restrictions: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _from_upstream(cls, data: Any) -> Any:
        # The structured-analysis model lists providers as names or
        # {"name": ...} objects without an id.
        if isinstance(data, str):
            return {"provider_id": slugify_provider(data), "name": data}
        if isinstance(data, dict) and not (data.get("provider_id") or data.get("providerId")):
            name = str(data.get("name") or "")
            data = {**data, "provider_id": slugify_provider(name) if name else "unknown"}
        return data


class Opportunity(CamelModel):
    """UI-facing projection of an asset's revenue potential."""

    category: AssetCategory | None = None
    title: str = ""
    icon: str = ""
    monthly_revenue: Money = 0.0
    description: str = ""
    setup_cost: Money = 0.0
    roi: Money = 0.0


# ---------------------------------------------------------------------------
# Asset records
# ---------------------------------------------------------------------------


class AssetAnalysis(CamelModel):
    """One monetizable asset category of the property."""

    category: ClassVar[AssetCategory]

    providers: list[ProviderCandidate] = Field(default_factory=list)

    @property
    def monthly_revenue(self) -> float:
        return self.revenue


class RooftopAsset(AssetAnalysis):
    category: ClassVar[AssetCategory] = AssetCategory.ROOFTOP

    area: Quantity = 0.0
    type: str | None = None
    solar_capacity: Quantity = 0.0
    revenue: Money = 0.0
    setup_cost: Money = 0.0


class GardenAsset(AssetAnalysis):
    category: ClassVar[AssetCategory] = AssetCategory.GARDEN

    area: Quantity = 0.0
    opportunity: str = ""
    revenue: Money = 0.0


class ParkingAsset(AssetAnalysis):
    category: ClassVar[AssetCategory] = AssetCategory.PARKING

    spaces: Count = 0
    rate: Money = 0.0
    revenue: Money = 0.0
    ev_charger_potential: bool | None = None


class PoolAsset(AssetAnalysis):
    category: ClassVar[AssetCategory] = AssetCategory.POOL

    present: bool = False
    area: Quantity = 0.0
    type: str = ""
    revenue: Money = 0.0


class StorageAsset(AssetAnalysis):
    category: ClassVar[AssetCategory] = AssetCategory.STORAGE

    volume: Quantity = 0.0
    revenue: Money = 0.0


class BandwidthAsset(AssetAnalysis):
    category: ClassVar[AssetCategory] = AssetCategory.BANDWIDTH

    available: Quantity = 0.0
    revenue: Money = 0.0


class ShortTermRentalAsset(AssetAnalysis):
    category: ClassVar[AssetCategory] = AssetCategory.SHORT_TERM_RENTAL

    nightly_rate: Money = 0.0
    monthly_projection: Money = 0.0

    @property
    def monthly_revenue(self) -> float:
        return self.monthly_projection


class PropertyValuation(CamelModel):
    """Property-level revenue totals. Always recomputed from the assets."""

    total_monthly_revenue: Money = 0.0
    total_annual_revenue: Money = 0.0
    total_setup_costs: Money = 0.0
    average_roi: Money = Field(default=0.0, alias="averageROI")
    best_opportunity: str = ""


class PropertyAnalysis(CamelModel):
    """Opportunity analysis in the shape returned by the structured-analysis model."""

    property_type: str = ""
    amenities: list[str] = Field(default_factory=list)
    rooftop: RooftopAsset = Field(default_factory=RooftopAsset)
    garden: GardenAsset = Field(default_factory=GardenAsset)
    parking: ParkingAsset = Field(default_factory=ParkingAsset)
    pool: PoolAsset = Field(default_factory=PoolAsset)
    storage: StorageAsset = Field(default_factory=StorageAsset)
    bandwidth: BandwidthAsset = Field(default_factory=BandwidthAsset)
    short_term_rental: ShortTermRentalAsset = Field(default_factory=ShortTermRentalAsset)
    permits: list[str] = Field(default_factory=list)
    restrictions: str | None = None
    top_opportunities: list[Opportunity] = Field(default_factory=list)
    image_analysis_summary: str | None = None
    property_valuation: PropertyValuation | None = None

    def assets(self) -> list[AssetAnalysis]:
        """All asset records, in wire order."""
        return [
            self.rooftop,
            self.garden,
            self.parking,
            self.pool,
            self.storage,
            self.bandwidth,
            self.short_term_rental,
        ]

    def asset(self, category: AssetCategory) -> AssetAnalysis:
        for record in self.assets():
            if record.category == category:
                return record
        raise KeyError(category)


class RevenueAdjustment(CamelModel):
    """Audit entry for one correction applied by the revenue validator."""

    category: AssetCategory
    field: str
    original: float
    corrected: float
    reason: str


# ---------------------------------------------------------------------------
# API request / response
# ---------------------------------------------------------------------------


class AnalysisRequest(CamelModel):
    """Request accepted by the analysis orchestrator."""

    address: str | None = None
    coordinates: Coordinates | None = None
    satellite_image_ref: str | None = None
    property_type: str | None = None
    property_size_sqft: float | None = None
    has_hoa: bool | None = Field(default=None, alias="hasHOA")


class AnalysisResult(PropertyAnalysis):
    """Validated composite result returned to the caller."""

    location_info: LocationInfo
    property_details: PropertyDetails
    service_availability: str = ""
    # Asset category -> registered providers available here when none of the
    # suggested ones is.
    provider_alternatives: dict[str, list[str]] = Field(default_factory=dict)
    image_analysis: ImageAnalysis | None = None
    market_data: MarketData | None = None
    revenue_adjustments: list[RevenueAdjustment] = Field(default_factory=list)
    estimated_data: bool = True
    fallback_used: bool = False
