"""Normalization of the structured-analysis payload.

The analysis model is schema-constrained, but its JSON still arrives with
nulls where the schema expects values, opportunities given as bare strings,
and sometimes no ``category`` on an opportunity that plainly mirrors an
asset.  This module turns that raw payload into a ``PropertyAnalysis``.
The model's own ``category`` tag is trusted; a conservative title match
fills it in only when the title names exactly one asset and no separate
venture.  Untagged opportunities keep their own figures downstream.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from propyield.domain.enums import AssetCategory
from propyield.domain.schemas import Opportunity, PropertyAnalysis

logger = logging.getLogger(__name__)

# Fallback for untagged opportunities: a title mirrors an asset only when it
# names exactly one asset category. Rental listings mention amenities, so the
# short-term rental keywords are checked first.
SHORT_TERM_RENTAL_KEYWORDS = ("short-term", "short term", "airbnb", "vacation rental", "guest suite")

CATEGORY_KEYWORDS: list[tuple[AssetCategory, tuple[str, ...]]] = [
    (AssetCategory.POOL, ("pool",)),
    (AssetCategory.PARKING, ("parking", "driveway")),
    (AssetCategory.ROOFTOP, ("solar", "rooftop")),
    (AssetCategory.GARDEN, ("garden", "dog park", "sniffspot")),
    (AssetCategory.STORAGE, ("storage",)),
    (AssetCategory.BANDWIDTH, ("bandwidth", "internet", "wifi", "wi-fi")),
]

# Ventures with their own revenue that only use an asset's space.
SEPARATE_VENTURE_KEYWORDS = (
    "ev charg",
    "charging station",
    "charger",
    "event",
    "dining",
    "advertis",
    "billboard",
    "cell tower",
    "antenna",
    "co-working",
    "coworking",
    "logistics",
)

DEFAULT_ICONS: dict[AssetCategory, str] = {
    AssetCategory.ROOFTOP: "sun",
    AssetCategory.GARDEN: "sprout",
    AssetCategory.PARKING: "car",
    AssetCategory.POOL: "waves",
    AssetCategory.STORAGE: "package",
    AssetCategory.BANDWIDTH: "wifi",
    AssetCategory.SHORT_TERM_RENTAL: "home",
}

def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")", re.IGNORECASE)


_SHORT_TERM_RENTAL = _keyword_pattern(SHORT_TERM_RENTAL_KEYWORDS)
_SEPARATE_VENTURE = _keyword_pattern(SEPARATE_VENTURE_KEYWORDS)
_CATEGORY_PATTERNS: list[tuple[AssetCategory, re.Pattern[str]]] = [
    (category, _keyword_pattern(keywords)) for category, keywords in CATEGORY_KEYWORDS
]


def category_for_title(title: str | None) -> Optional[AssetCategory]:
    """Asset category an opportunity title unambiguously mirrors, if any.

    "Rooftop Solar" -> rooftop; "EV Charging Station" and "Rooftop Garden
    Rental" -> None (a separate venture, and two categories named).
    """
    if not title or _SEPARATE_VENTURE.search(title):
        return None
    if _SHORT_TERM_RENTAL.search(title):
        return AssetCategory.SHORT_TERM_RENTAL
    matched = [category for category, pattern in _CATEGORY_PATTERNS if pattern.search(title)]
    return matched[0] if len(matched) == 1 else None


def strip_nulls(value: Any) -> Any:
    """Recursively drop ``None`` values from dicts and lists."""
    if isinstance(value, dict):
        return {k: strip_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [strip_nulls(v) for v in value if v is not None]
    return value


def _as_category(raw: Any) -> Optional[AssetCategory]:
    if isinstance(raw, AssetCategory):
        return raw
    try:
        return AssetCategory(raw)
    except ValueError:
        return None


def normalize_opportunity(raw: Any, index: int = 0) -> Opportunity:
    """Coerce one ``topOpportunities`` entry into a tagged ``Opportunity``."""
    if isinstance(raw, Opportunity):
        data: dict[str, Any] = raw.model_dump(by_alias=True)
    elif isinstance(raw, str):
        logger.debug("Converting string opportunity %r to object", raw)
        data = {"title": raw, "description": raw}
    elif isinstance(raw, dict):
        data = dict(raw)
        if not data.get("title"):
            data["title"] = f"Opportunity {index + 1}"
    else:
        logger.debug("Converting unknown opportunity type %s at index %d", type(raw).__name__, index)
        data = {"title": f"Opportunity {index + 1}", "description": "Unknown opportunity type"}

    category = _as_category(data.get("category")) or category_for_title(data.get("title"))
    data["category"] = category
    if not data.get("icon") and category is not None:
        data["icon"] = DEFAULT_ICONS[category]
    return Opportunity.model_validate(data)


def normalize_opportunities(raw: Any) -> list[Opportunity]:
    if not isinstance(raw, list):
        if raw is not None:
            logger.info("topOpportunities is not a list (%s); using empty list", type(raw).__name__)
        return []
    return [normalize_opportunity(item, i) for i, item in enumerate(raw)]


def _as_text_list(raw: Any) -> list[str]:
    if isinstance(raw, str):
        return [raw] if raw.strip() else []
    if isinstance(raw, list):
        return [str(item) for item in raw]
    return []


def parse_property_analysis(payload: Any) -> PropertyAnalysis:
    """Validate the analysis model's JSON into a ``PropertyAnalysis``.

    Raises:
        ValueError: The payload is not an object or fails validation
            (``pydantic.ValidationError`` is a ``ValueError``).
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")

    cleaned: dict[str, Any] = strip_nulls(payload)
    opportunities = cleaned.pop("topOpportunities", cleaned.pop("top_opportunities", None))
    cleaned["topOpportunities"] = normalize_opportunities(opportunities)

    for key in ("amenities", "permits"):
        if key in cleaned:
            cleaned[key] = _as_text_list(cleaned[key])
    restrictions = cleaned.get("restrictions")
    if isinstance(restrictions, list):
        cleaned["restrictions"] = "; ".join(str(r) for r in restrictions)

    return PropertyAnalysis.model_validate(cleaned)
