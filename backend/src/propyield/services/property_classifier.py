"""Property type classification.

Pure-function module: NO AI, NO network access.

Maps the many ways a property type shows up (request field, the model's
``propertyType`` string, the street address, the vision narrative) onto the
four ``PropertyType`` classes that drive revenue ceilings and provider
eligibility.
"""

from __future__ import annotations

import re
from typing import Optional

from propyield.domain.enums import PropertyType

# ── Free-form type strings ───────────────────────────────────────────────
# Order matters: "multi-family" must win over "family", "apartment" over "home".

_TYPE_KEYWORDS: list[tuple[PropertyType, tuple[str, ...]]] = [
    (PropertyType.MULTI_FAMILY, ("multi family", "multifamily", "duplex", "triplex", "fourplex", "townhouse", "townhome")),
    (PropertyType.APARTMENT, ("apartment", "condo", "condominium", "apt", "flat", "loft")),
    (PropertyType.COMMERCIAL, ("commercial", "retail", "office", "warehouse", "industrial", "mixed use", "store", "shop", "hotel")),
    (PropertyType.SINGLE_FAMILY, ("single family", "single", "house", "home", "residential", "detached", "bungalow", "villa", "family")),
]

# ── Address patterns ─────────────────────────────────────────────────────

_ADDRESS_PATTERNS: list[tuple[PropertyType, re.Pattern[str]]] = [
    (PropertyType.COMMERCIAL, re.compile(r"\b(?:suite|ste)\.?\s*#?\s*\d+", re.IGNORECASE)),
    (PropertyType.COMMERCIAL, re.compile(r"\b(?:business|industrial|office)\s+(?:park|center|centre|district)\b", re.IGNORECASE)),
    (PropertyType.APARTMENT, re.compile(r"\b(?:apt|apartment|unit)\b\.?\s*#?\s*\w+", re.IGNORECASE)),
    (PropertyType.APARTMENT, re.compile(r"#\s*\d+\w?\b")),
]

# ── Narrative cues (weighted keyword hits) ───────────────────────────────

_NARRATIVE_CUES: dict[PropertyType, tuple[str, ...]] = {
    PropertyType.COMMERCIAL: (
        "commercial building", "office building", "warehouse", "retail", "strip mall",
        "parking lot", "loading dock", "storefront",
    ),
    PropertyType.APARTMENT: ("apartment building", "apartment complex", "condominium", "high-rise"),
    PropertyType.MULTI_FAMILY: ("duplex", "townhouse", "townhome", "multi-family", "row house"),
    PropertyType.SINGLE_FAMILY: (
        "single-family", "single family", "detached house", "residential home", "family home",
        "backyard", "driveway",
    ),
}


def _normalize_text(raw: str) -> str:
    return re.sub(r"[\s_\-]+", " ", raw.strip().lower())


def normalize_property_type(raw) -> Optional[PropertyType]:
    """Map a free-form type string to a ``PropertyType``; None when unrecognised."""
    if raw is None:
        return None
    if isinstance(raw, PropertyType):
        return raw
    text = _normalize_text(str(raw))
    if not text:
        return None
    try:
        return PropertyType(text.replace(" ", "_"))
    except ValueError:
        pass
    for property_type, keywords in _TYPE_KEYWORDS:
        for keyword in keywords:
            if re.search(rf"\b{re.escape(keyword)}\b", text):
                return property_type
    return None


def classify_address(address: str | None) -> Optional[PropertyType]:
    """Property type implied by unit/suite markers in an address."""
    if not address:
        return None
    for property_type, pattern in _ADDRESS_PATTERNS:
        if pattern.search(address):
            return property_type
    return None


def classify_narrative(narrative: str | None) -> Optional[PropertyType]:
    """Property type with the most cue hits in the narrative; None on a tie or no hits."""
    if not narrative:
        return None
    text = narrative.lower()
    scores = {
        property_type: sum(text.count(cue) for cue in cues)
        for property_type, cues in _NARRATIVE_CUES.items()
    }
    ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
    (best, best_score), (_, runner_up) = ranked[0], ranked[1]
    if best_score == 0 or best_score == runner_up:
        return None
    return best


def resolve_property_type(
    explicit=None,
    analysis_type: str | None = None,
    address: str | None = None,
    narrative: str | None = None,
) -> PropertyType:
    """First confident classification, in decreasing order of trust.

    Falls back to ``SINGLE_FAMILY`` when nothing is recognisable.
    """
    return (
        normalize_property_type(explicit)
        or normalize_property_type(analysis_type)
        or classify_address(address)
        or classify_narrative(narrative)
        or PropertyType.SINGLE_FAMILY
    )


def is_commercial(property_type: Optional[PropertyType]) -> bool:
    return property_type == PropertyType.COMMERCIAL


# ── Restriction notes ────────────────────────────────────────────────────

TYPE_RESTRICTIONS: dict[PropertyType, tuple[str, ...]] = {
    PropertyType.COMMERCIAL: ("Commercial zoning compliance required", "Business permits may be needed"),
    PropertyType.APARTMENT: ("Limited individual property control", "HOA restrictions may apply"),
}


def restriction_notes(property_type: Optional[PropertyType]) -> list[str]:
    """Advisory restrictions implied by the property class alone."""
    return list(TYPE_RESTRICTIONS.get(property_type, ())) if property_type else []
