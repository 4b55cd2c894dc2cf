"""Shared test infrastructure for the PropYield test suite.

Provides:
- make_location: factory for LocationInfo
- analysis_payload: realistic structured-analysis JSON as the model returns it
- make_analysis: factory for a parsed PropertyAnalysis with overrides
"""

import copy

import pytest

from propyield.domain.schemas import Coordinates, LocationInfo, PropertyAnalysis

SF_COORDS = Coordinates(lat=37.7749, lng=-122.4194)


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------

@pytest.fixture
def make_location():
    """Factory for LocationInfo; defaults to San Francisco, CA."""

    def _make(
        city="San Francisco",
        state="CA",
        country="US",
        lat=SF_COORDS.lat,
        lng=SF_COORDS.lng,
        zip_code="94103",
    ) -> LocationInfo:
        return LocationInfo(
            country=country,
            state=state,
            city=city,
            zip_code=zip_code,
            coordinates=Coordinates(lat=lat, lng=lng),
        )

    return _make


# ---------------------------------------------------------------------------
# Structured analysis payloads
# ---------------------------------------------------------------------------

_ANALYSIS_PAYLOAD = {
    "propertyType": "single family home",
    "amenities": ["pool", "driveway", "backyard"],
    "rooftop": {
        "area": 1800,
        "type": "gabled",
        "solarCapacity": 6.5,
        "revenue": 150,
        "setupCost": 15000,
        "providers": [{"name": "Tesla Solar"}, {"name": "Sunrun"}],
    },
    "garden": {
        "area": 900,
        "opportunity": "Dog park rental",
        "revenue": 120,
        "providers": [{"name": "Sniffspot"}],
    },
    "parking": {
        "spaces": 2,
        "rate": 18,
        "revenue": 720,
        "evChargerPotential": True,
        "providers": [{"name": "SpotHero"}],
    },
    "pool": {
        "present": True,
        "area": 450,
        "type": "in-ground",
        "revenue": 600,
        "providers": [{"name": "Swimply"}],
    },
    "storage": {"volume": 300, "revenue": 100, "providers": [{"name": "Neighbor"}]},
    "bandwidth": {"available": 100, "revenue": 30, "providers": [{"name": "Honeygain"}]},
    "shortTermRental": {
        "nightlyRate": 180,
        "monthlyProjection": 2400,
        "providers": [{"name": "Airbnb"}],
    },
    "permits": ["solar-permit"],
    "restrictions": None,
    "topOpportunities": [
        {
            "title": "Rooftop Solar",
            "icon": "sun",
            "monthlyRevenue": 150,
            "description": "Install panels on the south-facing roof.",
            "setupCost": 15000,
            "roi": 100,
        },
        {
            "title": "Pool Rental",
            "icon": "waves",
            "monthlyRevenue": 600,
            "description": "Rent the pool by the hour.",
            "setupCost": 500,
            "roi": 1,
        },
        {
            "title": "Driveway Parking",
            "icon": "car",
            "monthlyRevenue": 720,
            "description": "Rent out 2 spaces.",
            "setupCost": 0,
            "roi": 0,
        },
    ],
    "imageAnalysisSummary": "Detached house with a pool and a two-car driveway.",
    "propertyValuation": {
        "totalMonthlyRevenue": 9999,
        "totalAnnualRevenue": 99999,
        "totalSetupCosts": 15500,
        "averageROI": 12,
        "bestOpportunity": "Driveway Parking",
    },
}


@pytest.fixture
def analysis_payload() -> dict:
    """A fresh copy of a realistic structured-analysis response."""
    return copy.deepcopy(_ANALYSIS_PAYLOAD)


@pytest.fixture
def make_analysis(analysis_payload):
    """Factory: parse the sample payload, applying top-level overrides first."""
    from propyield.services.opportunity_normalizer import parse_property_analysis

    def _make(**overrides) -> PropertyAnalysis:
        payload = copy.deepcopy(analysis_payload)
        payload.update(overrides)
        return parse_property_analysis(payload)

    return _make
