"""Measurement extraction from vision-model narratives.

Pure-function module: NO LLM, NO network access.

Reads the free-text description a vision model produced for a satellite image
and returns an ``ImageAnalysis`` with typed, confidence-scored measurements.
The narrative may omit any feature, contradict itself, or phrase things in
many ways; a feature that cannot be found is ``None``, never an error.

Every numeric value is clamped into its feature range at extraction time:

    roofSize              sqft     [100, 10000]
    solarPotentialScore   percent  [0, 100]
    parkingSpaces         count    [0, 20]
    parkingDimensions     sqft     [0, 10000]
    gardenArea            sqft     [0, 20000]
    gardenPotentialScore  percent  [0, 100]
    poolDimensions        sqft     [0, 2000]
    overallReliability    percent  [0, 100]
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from propyield.domain.enums import MeasurementUnit
from propyield.domain.schemas import ImageAnalysis, Measurement

logger = logging.getLogger(__name__)

# ── Ranges ───────────────────────────────────────────────────────────────────

FEATURE_RANGES: dict[str, tuple[float, float]] = {
    "roof_size": (100, 10_000),
    "solar_potential_score": (0, 100),
    "parking_spaces": (0, 20),
    "parking_dimensions": (0, 10_000),
    "garden_area": (0, 20_000),
    "garden_potential_score": (0, 100),
    "pool_dimensions": (0, 2_000),
    "overall_reliability": (0, 100),
}

# ── Qualitative buckets ──────────────────────────────────────────────────────

QUALITATIVE_SCORES: dict[str, float] = {
    "excellent": 90,
    "very high": 90,
    "high": 90,
    "good": 70,
    "moderate": 50,
    "medium": 50,
    "fair": 50,
    "average": 50,
    "poor": 20,
    "low": 20,
}

NUMBER_WORDS: dict[str, int] = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18,
    "nineteen": 19, "twenty": 20,
}

# ── Pattern building blocks ──────────────────────────────────────────────────

_WORDS_ALT = "|".join(sorted(NUMBER_WORDS, key=len, reverse=True))
_QUAL_ALT = "|".join(sorted(QUALITATIVE_SCORES, key=len, reverse=True)).replace(" ", r"\s+")
_AREA_UNIT = r"(?:sq\.?\s*(?:ft|feet|foot)\.?|square\s*(?:feet|foot|ft)|sqft|ft²|ft2|sf\b)"
_FT = r"(?:ft\.?|feet|foot|')"
# No digits and no line break between a keyword and its quantity.
_GAP = r"[^\d\n]{0,60}?"


def _num(name: str) -> str:
    return rf"(?P<{name}>\d{{1,3}}(?:,\d{{3}})+(?:\.\d+)?|\d+(?:\.\d+)?)"


_AREA_OR_DIMS = (
    rf"(?:{_num('w')}\s*{_FT}?\s*(?:x|×|by)\s*{_num('l')}\s*{_FT}?"
    rf"|{_num('area')}\s*{_AREA_UNIT})"
)

_COUNT = rf"(?P<n>\d+|\b(?:{_WORDS_ALT})\b)"


def _score_patterns(keywords: str, nouns: str) -> list[re.Pattern[str]]:
    """Patterns for "<keyword> <noun> ... 85%" and "excellent <keyword> <noun>"."""
    value = rf"(?:(?P<pct>\d{{1,3}}(?:\.\d+)?)\s*(?:%|percent|/\s*100)|\b(?P<word>{_QUAL_ALT})\b)"
    return [
        re.compile(rf"\b(?:{keywords})\s+(?:{nouns})\b[^.\n\d]{{0,30}}?{value}", re.IGNORECASE),
        re.compile(rf"\b(?P<word>{_QUAL_ALT})\s+(?:{keywords})\s+(?:{nouns})\b", re.IGNORECASE),
    ]


_ROOF_SIZE = re.compile(rf"\broof(?:top)?\b{_GAP}{_AREA_OR_DIMS}", re.IGNORECASE)

_ROOF_TYPES = r"flat|pitched|gabled|gable|hipped|hip|shed|mansard|gambrel|butterfly|dome|pyramid|skillion"
_ROOF_TYPE = [
    re.compile(rf"\broof\s*(?:type|style|shape|is)?[^a-zA-Z\n]{{0,10}}(?:a\s+|an\s+)?\b(?P<t>{_ROOF_TYPES})\b", re.IGNORECASE),
    re.compile(rf"\b(?P<t>{_ROOF_TYPES})(?:[\s-]+(?:style|shaped))?[\s-]+roof", re.IGNORECASE),
]
_ROOF_TYPE_ALIASES = {"gable": "gabled", "hipped": "hip"}

_DIRECTIONS = r"south[\s-]?east|south[\s-]?west|north[\s-]?east|north[\s-]?west|south|north|east|west"
_ROOF_ORIENTATION = [
    re.compile(rf"\b(?P<d>{_DIRECTIONS})[\s-]*(?:facing|oriented)\b", re.IGNORECASE),
    re.compile(
        rf"\b(?:orientation|faces|facing|oriented)\b[^a-zA-Z\n]{{0,5}}(?:is\s+)?(?:towards?\s+|to\s+the\s+)?(?:the\s+)?\b(?P<d>{_DIRECTIONS})\b",
        re.IGNORECASE,
    ),
]

_SOLAR_SCORE = _score_patterns("solar", "potential|capacity|suitability|score|rating|exposure")
_GARDEN_SCORE = _score_patterns("garden|yard|gardening", "potential|suitability|score|rating")

_PARKING_SPACES = [
    re.compile(rf"{_COUNT}[\s-]+(?:[a-z]+[\s-]+){{0,2}}?(?:parking|car)[\s-]+(?:spaces?|spots?|stalls?)\b", re.IGNORECASE),
    re.compile(rf"{_COUNT}[\s-]+car\s+(?:garage|driveway|carport)\b", re.IGNORECASE),
    re.compile(rf"\bparking\s+(?:spaces?|spots?|stalls?)\b[^\d\n.]{{0,30}}?{_COUNT}", re.IGNORECASE),
    re.compile(rf"\b(?:driveway|garage|carport)\b[^\d\n.]{{0,40}}?{_COUNT}\s+(?:cars?|vehicles?)\b", re.IGNORECASE),
]

_PARKING_DIMENSIONS = re.compile(
    rf"\b(?:parking|driveway)\b{_GAP}{_AREA_OR_DIMS}", re.IGNORECASE,
)

_GARDEN_AREA = re.compile(
    rf"\b(?:garden|yard|backyard|lawn|outdoor\s+space)\b{_GAP}{_AREA_OR_DIMS}", re.IGNORECASE,
)

_POOL_ABSENT = [
    re.compile(r"\bno\s+(?:visible\s+|swimming\s+|private\s+)*pool\b", re.IGNORECASE),
    re.compile(r"\bpool\b[^.\n]{0,30}?\b(?:not\s+(?:present|visible|detected|identified)|absent)\b", re.IGNORECASE),
]
_POOL_PRESENT = [
    re.compile(r"\bpool\b[^.\n]{0,40}?\b(?:present|visible|identified|detected|exists|observed|yes)\b", re.IGNORECASE),
    re.compile(r"\b(?:a|an|one)\s+(?:[a-z-]+\s+){0,3}?(?:swimming\s+)?pool\b", re.IGNORECASE),
]
_POOL_DIMENSIONS = re.compile(rf"\bpool\b{_GAP}{_AREA_OR_DIMS}", re.IGNORECASE)
_POOL_TYPE = re.compile(r"\b(?P<t>in[\s-]?ground|above[\s-]?ground)\b", re.IGNORECASE)

_RELIABILITY = re.compile(
    rf"\b(?:overall\s+(?:confidence|reliability|accuracy)|reliability)(?:\s+(?:level|score|rating))?\b"
    rf"[^.\n\d]{{0,20}}?(?:(?P<pct>\d{{1,3}}(?:\.\d+)?)\s*(?:%|percent|/\s*100)|\b(?P<word>{_QUAL_ALT})\b)",
    re.IGNORECASE,
)

# Confidence markers that trail a measurement: "(85% confidence)", "confidence: high".
_CONFIDENCE_MARKERS = [
    re.compile(r"(?P<pct>\d{1,3}(?:\.\d+)?)\s*%\s*(?:confidence|confident|certainty)", re.IGNORECASE),
    re.compile(
        rf"\bconfidence(?:\s+(?:level|score))?\s*(?:[:=]|is|of)?\s*(?:(?P<pct>\d{{1,3}}(?:\.\d+)?)\s*%|\b(?P<word>{_QUAL_ALT})\b)",
        re.IGNORECASE,
    ),
    re.compile(rf"\b(?P<word>{_QUAL_ALT})\s+(?:confidence|certainty)\b", re.IGNORECASE),
]
_CONFIDENCE_WINDOW = 80
_SENTENCE_END = re.compile(r"\n|[.!?]\s")


# ── Helpers ──────────────────────────────────────────────────────────────────

def _clamp(value: float, feature: str) -> float:
    low, high = FEATURE_RANGES[feature]
    clamped = min(max(value, low), high)
    if clamped != value:
        logger.debug("Clamped %s from %s to %s", feature, value, clamped)
    return clamped


def _to_number(raw: str | None) -> Optional[float]:
    if raw is None:
        return None
    token = raw.strip().lower()
    if token in NUMBER_WORDS:
        return float(NUMBER_WORDS[token])
    try:
        return float(token.replace(",", ""))
    except ValueError:
        return None


def _qualitative(word: str | None) -> Optional[float]:
    if not word:
        return None
    return QUALITATIVE_SCORES.get(re.sub(r"\s+", " ", word.strip().lower()))


def _area_from_match(match: re.Match[str]) -> Optional[float]:
    """Area in sqft from either an explicit area or W x L dimensions."""
    area = _to_number(match.group("area"))
    if area is not None:
        return area
    width = _to_number(match.group("w"))
    length = _to_number(match.group("l"))
    if width is None or length is None:
        return None
    if width == 0 or length == 0:
        # inf * 0 would be nan.
        return 0.0
    return width * length


def _score_from_match(match: re.Match[str]) -> Optional[float]:
    groups = match.groupdict()
    pct = _to_number(groups.get("pct"))
    if pct is not None:
        return pct
    return _qualitative(groups.get("word"))


def _trailing_confidence(text: str, end: int) -> Optional[float]:
    """Confidence marker following a measurement in the same sentence, if any."""
    # Start one char early: unit patterns like "ft." may have eaten the full stop.
    window = _SENTENCE_END.split(text[max(end - 1, 0):end + _CONFIDENCE_WINDOW], maxsplit=1)[0]
    for pattern in _CONFIDENCE_MARKERS:
        match = pattern.search(window)
        if match:
            score = _score_from_match(match)
            if score is not None:
                return min(max(score, 0.0), 100.0)
    return None


def _first(patterns: list[re.Pattern[str]], text: str) -> Optional[re.Match[str]]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def _normalize_direction(raw: str) -> str:
    return re.sub(r"[\s-]+", "", raw.lower())


# ── Extractor ────────────────────────────────────────────────────────────────

class MeasurementExtractor:
    """Turns a vision narrative into an ``ImageAnalysis``.

    ``extract`` never raises; worst case every feature is ``None``, which
    downstream treats as a valid low-confidence input.
    """

    def extract(self, narrative_text: str | None) -> ImageAnalysis:
        text = narrative_text if isinstance(narrative_text, str) else ""
        if not text.strip():
            return ImageAnalysis(raw_text=text)

        pool_present = self._pool_present(text)
        pool_dimensions = self._area(_POOL_DIMENSIONS, text, "pool_dimensions")
        if pool_present is None and pool_dimensions is not None:
            pool_present = True
        if pool_present is False:
            pool_dimensions = None

        analysis = ImageAnalysis(
            roof_size=self._area(_ROOF_SIZE, text, "roof_size"),
            roof_type=self._roof_type(text),
            roof_orientation=self._roof_orientation(text),
            solar_potential_score=self._score(_SOLAR_SCORE, text, "solar_potential_score"),
            parking_spaces=self._parking_spaces(text),
            parking_dimensions=self._area(_PARKING_DIMENSIONS, text, "parking_dimensions"),
            garden_area=self._area(_GARDEN_AREA, text, "garden_area"),
            garden_potential_score=self._score(_GARDEN_SCORE, text, "garden_potential_score"),
            pool_present=pool_present,
            pool_dimensions=pool_dimensions,
            pool_type=self._pool_type(text) if pool_present else None,
            overall_reliability=self._score([_RELIABILITY], text, "overall_reliability"),
            raw_text=text,
        )
        logger.info(
            "Extracted %d measurement fields from %d chars of narrative",
            len(analysis.found_fields()),
            len(text),
        )
        return analysis

    # ------------------------------------------------------------------
    # Numeric features
    # ------------------------------------------------------------------

    def _area(self, pattern: re.Pattern[str], text: str, feature: str) -> Optional[Measurement]:
        match = pattern.search(text)
        if not match:
            return None
        area = _area_from_match(match)
        if area is None:
            return None
        return Measurement(
            value=_clamp(area, feature),
            unit=MeasurementUnit.SQFT,
            confidence_score=_trailing_confidence(text, match.end()),
        )

    def _score(self, patterns: list[re.Pattern[str]], text: str, feature: str) -> Optional[Measurement]:
        match = _first(patterns, text)
        if not match:
            return None
        score = _score_from_match(match)
        if score is None:
            return None
        return Measurement(
            value=_clamp(score, feature),
            unit=MeasurementUnit.PERCENT,
            confidence_score=_trailing_confidence(text, match.end()),
        )

    def _parking_spaces(self, text: str) -> Optional[Measurement]:
        match = _first(_PARKING_SPACES, text)
        if not match:
            return None
        count = _to_number(match.group("n"))
        if count is None:
            return None
        return Measurement(
            value=float(int(_clamp(count, "parking_spaces"))),
            unit=MeasurementUnit.COUNT,
            confidence_score=_trailing_confidence(text, match.end()),
        )

    # ------------------------------------------------------------------
    # Categorical features
    # ------------------------------------------------------------------

    def _roof_type(self, text: str) -> Optional[str]:
        match = _first(_ROOF_TYPE, text)
        if not match:
            return None
        roof_type = match.group("t").lower()
        return _ROOF_TYPE_ALIASES.get(roof_type, roof_type)

    def _roof_orientation(self, text: str) -> Optional[str]:
        match = _first(_ROOF_ORIENTATION, text)
        return _normalize_direction(match.group("d")) if match else None

    def _pool_present(self, text: str) -> Optional[bool]:
        if _first(_POOL_ABSENT, text):
            return False
        if _first(_POOL_PRESENT, text):
            return True
        return None

    def _pool_type(self, text: str) -> Optional[str]:
        match = _POOL_TYPE.search(text)
        if not match:
            return None
        return "in-ground" if match.group("t").lower().startswith("in") else "above-ground"


def extract_measurements(narrative_text: str | None) -> ImageAnalysis:
    """Convenience: extract with a default ``MeasurementExtractor``."""
    return MeasurementExtractor().extract(narrative_text)
