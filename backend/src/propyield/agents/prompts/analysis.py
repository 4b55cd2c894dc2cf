"""System prompt, template and response schema for the Property Analysis Agent."""

from propyield.domain.enums import AssetCategory

ANALYSIS_SYSTEM_PROMPT = """You are a certified property investment analyst with 15+ years experience in residential and commercial monetization strategies.

Given a satellite-image narrative, extracted measurements and local market data, estimate the monthly revenue each asset of the property could earn:
rooftop solar, garden, parking, pool rental, storage, internet bandwidth sharing and short-term rental.

Rules:
- Use the extracted measurements when present; do not invent features the narrative says are absent.
- Use the local market data for parking rates and rent levels.
- Revenues are monthly figures in USD. Use 0 for assets the property cannot monetize.
- Suggest providers for each asset by name (for example "Tesla Solar", "SpotHero", "Swimply", "Neighbor", "Sniffspot", "Honeygain", "Airbnb").
- topOpportunities MUST be an array of objects, never strings. Each has a title, icon, monthlyRevenue, description, setupCost and roi (months to pay back the setup cost).
- Set an opportunity's category only when its monthlyRevenue is the same figure as that asset's revenue (for example "Driveway Parking" -> "parking"). Omit category for separate ventures that use an asset's space, such as EV charging stations, events or advertising.
- Respond with JSON only, matching the response schema.
"""

ANALYSIS_TEMPLATE = """PROPERTY PROFILE
Address: {address}
Coordinates: {lat}, {lng}
Location: {location}
Property type: {property_type}
Property size: {property_size}

LOCAL MARKET DATA (estimated)
Parking rate: ${parking_rate}/day
Average rent: ${average_rent}/month
Solar savings: ${solar_savings}/month
Market trend: {trend}

EXTRACTED MEASUREMENTS
{measurements}

SATELLITE NARRATIVE
{narrative}

Produce the property monetization analysis as JSON.
"""

# Hand-written in Gemini's schema dialect (no anyOf / $ref / nullable).

OPPORTUNITY_CATEGORIES = [c.value for c in AssetCategory]

_PROVIDERS = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {"name": {"type": "string"}},
        "required": ["name"],
    },
}


def _asset(properties: dict, required: list[str]) -> dict:
    return {
        "type": "object",
        "properties": {**properties, "providers": _PROVIDERS},
        "required": required,
    }


PROPERTY_ANALYSIS_RESPONSE_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "propertyType": {"type": "string"},
        "amenities": {"type": "array", "items": {"type": "string"}},
        "rooftop": _asset(
            {
                "area": {"type": "number"},
                "type": {"type": "string"},
                "solarCapacity": {"type": "number"},
                "revenue": {"type": "number"},
                "setupCost": {"type": "number"},
            },
            ["area", "revenue"],
        ),
        "garden": _asset(
            {
                "area": {"type": "number"},
                "opportunity": {"type": "string"},
                "revenue": {"type": "number"},
            },
            ["area", "revenue"],
        ),
        "parking": _asset(
            {
                "spaces": {"type": "integer"},
                "rate": {"type": "number"},
                "revenue": {"type": "number"},
                "evChargerPotential": {"type": "boolean"},
            },
            ["spaces", "rate", "revenue"],
        ),
        "pool": _asset(
            {
                "present": {"type": "boolean"},
                "area": {"type": "number"},
                "type": {"type": "string"},
                "revenue": {"type": "number"},
            },
            ["present", "revenue"],
        ),
        "storage": _asset(
            {
                "volume": {"type": "number"},
                "revenue": {"type": "number"},
            },
            ["revenue"],
        ),
        "bandwidth": _asset(
            {
                "available": {"type": "number"},
                "revenue": {"type": "number"},
            },
            ["revenue"],
        ),
        "shortTermRental": _asset(
            {
                "nightlyRate": {"type": "number"},
                "monthlyProjection": {"type": "number"},
            },
            ["monthlyProjection"],
        ),
        "permits": {"type": "array", "items": {"type": "string"}},
        "restrictions": {"type": "string"},
        "topOpportunities": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "category": {"type": "string", "enum": OPPORTUNITY_CATEGORIES},
                    "title": {"type": "string"},
                    "icon": {"type": "string"},
                    "monthlyRevenue": {"type": "number"},
                    "description": {"type": "string"},
                    "setupCost": {"type": "number"},
                    "roi": {"type": "number"},
                },
                "required": ["title", "monthlyRevenue"],
            },
        },
        "imageAnalysisSummary": {"type": "string"},
        "propertyValuation": {
            "type": "object",
            "properties": {
                "totalMonthlyRevenue": {"type": "number"},
                "totalAnnualRevenue": {"type": "number"},
                "totalSetupCosts": {"type": "number"},
                "averageROI": {"type": "number"},
                "bestOpportunity": {"type": "string"},
            },
        },
    },
    "required": [
        "propertyType",
        "rooftop",
        "garden",
        "parking",
        "pool",
        "storage",
        "bandwidth",
        "shortTermRental",
        "topOpportunities",
    ],
}
