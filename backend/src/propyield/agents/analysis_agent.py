"""Property Analysis Agent - schema-constrained monetization analysis."""

import logging
from typing import Optional

from propyield.agents.base import AgentResult, BaseAgent
from propyield.agents.prompts.analysis import (
    ANALYSIS_SYSTEM_PROMPT,
    ANALYSIS_TEMPLATE,
    PROPERTY_ANALYSIS_RESPONSE_SCHEMA,
)
from propyield.domain.enums import PropertyType
from propyield.domain.schemas import ImageAnalysis, LocationInfo, MarketData

logger = logging.getLogger(__name__)


def format_measurements(analysis: ImageAnalysis) -> str:
    """Bullet list of the measurements found in the narrative."""
    lines = []
    for name in analysis.found_fields():
        value = getattr(analysis, name)
        label = type(analysis).model_fields[name].alias or name
        if hasattr(value, "unit"):
            text = f"{value.value:g} {value.unit.value}" if value.value is not None else "unknown"
            if value.confidence_score is not None:
                text += f" (confidence {value.confidence_score:g}%)"
        else:
            text = str(value)
        lines.append(f"- {label}: {text}")
    return "\n".join(lines) or "None extracted"


class PropertyAnalysisAgent(BaseAgent):
    """Produces the full ``PropertyAnalysis`` JSON from narrative, measurements and market data."""

    def __init__(self, model_name: Optional[str] = None, timeout: float = 120.0):
        if model_name is None:
            from propyield.app.config import get_settings
            model_name = get_settings().analysis_model
        super().__init__(
            agent_name="property_analysis",
            model_name=model_name,
            temperature=0.3,
            timeout=timeout,
        )

    async def analyze(
        self,
        address: str,
        location: LocationInfo,
        market: MarketData,
        measurements: ImageAnalysis,
        narrative: str,
        property_type: Optional[PropertyType] = None,
        property_size_sqft: Optional[float] = None,
    ) -> AgentResult:
        """Structured analysis; ``data`` is the parsed JSON object."""
        prompt = ANALYSIS_TEMPLATE.format(
            address=address or "Unknown",
            lat=location.coordinates.lat,
            lng=location.coordinates.lng,
            location=location.describe(),
            property_type=property_type.value if property_type else "unknown",
            property_size=f"{property_size_sqft:g} sq ft" if property_size_sqft else "unknown",
            parking_rate=f"{market.parking_rate_per_day:.2f}",
            average_rent=f"{market.average_rent:.0f}",
            solar_savings=f"{market.solar_savings_per_month:.0f}",
            trend=market.trend.value,
            measurements=format_measurements(measurements),
            narrative=narrative.strip() or "No satellite narrative available.",
        )
        result = await self.generate_json(
            prompt=prompt,
            system_instruction=ANALYSIS_SYSTEM_PROMPT,
            response_schema=PROPERTY_ANALYSIS_RESPONSE_SCHEMA,
        )
        if result.ok and not isinstance(result.data, dict):
            logger.warning("[%s] Expected a JSON object, got %s", self.agent_name, type(result.data).__name__)
            return AgentResult.failure("Structured analysis was not a JSON object", latency_ms=result.latency_ms)
        return result
