"""Tests for the narrative measurement extractor.

Pure regex extraction, no LLM, no network.
"""

import pytest

from propyield.domain.enums import MeasurementUnit
from propyield.services.measurement_extractor import (
    FEATURE_RANGES,
    MeasurementExtractor,
    extract_measurements,
)


@pytest.fixture
def extractor() -> MeasurementExtractor:
    return MeasurementExtractor()


FULL_NARRATIVE = """Roof size: approximately 2,400 sq ft (85% confidence).
The house has a gabled roof facing south.
Solar potential is excellent.
There are two parking spaces on a driveway of 20 x 40 ft.
Backyard garden area of about 1,200 sq ft with good gardening potential.
An in-ground swimming pool measuring 15 x 30 ft is present.
Overall confidence: 70%
"""


# ---------------------------------------------------------------------------
# Full narrative
# ---------------------------------------------------------------------------


class TestFullNarrative:
    def test_extracts_every_feature(self, extractor):
        result = extractor.extract(FULL_NARRATIVE)

        assert result.roof_size.value == 2400
        assert result.roof_size.unit == MeasurementUnit.SQFT
        assert result.roof_size.confidence_score == 85
        assert result.roof_type == "gabled"
        assert result.roof_orientation == "south"
        assert result.solar_potential_score.value == 90
        assert result.parking_spaces.value == 2
        assert result.parking_spaces.unit == MeasurementUnit.COUNT
        assert result.parking_dimensions.value == 800
        assert result.garden_area.value == 1200
        assert result.garden_potential_score.value == 70
        assert result.pool_present is True
        assert result.pool_dimensions.value == 450
        assert result.pool_type == "in-ground"
        assert result.overall_reliability.value == 70
        assert result.overall_reliability.unit == MeasurementUnit.PERCENT

    def test_raw_text_is_kept(self, extractor):
        assert extractor.extract(FULL_NARRATIVE).raw_text == FULL_NARRATIVE

    def test_module_level_helper_matches_class(self, extractor):
        assert extract_measurements(FULL_NARRATIVE) == extractor.extract(FULL_NARRATIVE)


# ---------------------------------------------------------------------------
# Absence is not an error
# ---------------------------------------------------------------------------


class TestMissingFeatures:
    @pytest.mark.parametrize("text", [None, "", "   ", "A lovely home with a red door."])
    def test_nothing_found_is_all_none(self, extractor, text):
        result = extractor.extract(text)

        assert result.found_fields() == []
        assert result.roof_size is None
        assert result.pool_present is None

    def test_non_string_input_does_not_raise(self, extractor):
        assert extractor.extract(12345).found_fields() == []

    def test_explicitly_absent_pool(self, extractor):
        result = extractor.extract("No pool is visible. The pool area is 300 sq ft of patio.")

        assert result.pool_present is False
        assert result.pool_dimensions is None
        assert result.pool_type is None


# ---------------------------------------------------------------------------
# Clamping
# ---------------------------------------------------------------------------


class TestClamping:
    def test_roof_size_clamps_to_max(self, extractor):
        result = extractor.extract("The roof size of 15000 sq ft is unusually large.")
        assert result.roof_size.value == 10000

    def test_roof_size_clamps_to_min(self, extractor):
        result = extractor.extract("A tiny roof of 50 sq ft over the shed.")
        assert result.roof_size.value == 100

    def test_parking_spaces_clamp(self, extractor):
        assert extractor.extract("There are 45 parking spaces.").parking_spaces.value == 20

    def test_huge_numbers_clamp_instead_of_overflowing(self, extractor):
        huge = "9" * 400  # float() turns this into inf
        text = (
            f"There are {huge} parking spaces. Roof size: {huge} sq ft. "
            f"Pool dimensions: {huge} x 0 ft."
        )

        result = extractor.extract(text)

        assert result.parking_spaces.value == 20
        assert result.roof_size.value == 10000
        assert result.pool_dimensions.value == 0

    def test_percent_clamp(self, extractor):
        assert extractor.extract("Solar potential: 150%").solar_potential_score.value == 100

    def test_every_feature_stays_in_range(self, extractor):
        text = (
            "Roof size: 50000 sq ft. Solar potential: 150%. There are 45 parking spaces. "
            "Parking area of 99,000 sq ft. Garden area of 50,000 sq ft. Garden potential: 120%. "
            "Pool dimensions: 100 x 100 ft. Overall confidence: 150%."
        )
        result = extractor.extract(text)

        found = result.found_fields()
        assert set(found) >= set(FEATURE_RANGES)
        for feature, (low, high) in FEATURE_RANGES.items():
            measurement = getattr(result, feature)
            assert low <= measurement.value <= high, feature
            if measurement.confidence_score is not None:
                assert 0 <= measurement.confidence_score <= 100


# ---------------------------------------------------------------------------
# Phrasing variants
# ---------------------------------------------------------------------------


class TestQualitativeScores:
    @pytest.mark.parametrize(
        "phrase,expected",
        [
            ("Solar potential is excellent.", 90),
            ("Solar potential: very high", 90),
            ("Solar potential rated good", 70),
            ("Solar potential is moderate", 50),
            ("Solar potential is fair", 50),
            ("Solar potential: poor", 20),
            ("Solar potential: 85%", 85),
            ("The roof has good solar potential.", 70),
            ("Solar score 64/100", 64),
        ],
    )
    def test_solar_buckets(self, extractor, phrase, expected):
        assert extractor.extract(phrase).solar_potential_score.value == expected

    def test_garden_potential_low(self, extractor):
        assert extractor.extract("Yard potential is low.").garden_potential_score.value == 20


class TestParkingPhrasing:
    @pytest.mark.parametrize(
        "phrase,expected",
        [
            ("two parking spaces", 2),
            ("3 covered parking spots", 3),
            ("a 3-car garage", 3),
            ("Parking spaces: 4", 4),
            ("The driveway can fit 2 cars.", 2),
            ("twelve parking stalls along the side", 12),
        ],
    )
    def test_space_counts(self, extractor, phrase, expected):
        assert extractor.extract(phrase).parking_spaces.value == expected

    def test_dimensions_are_converted_to_area(self, extractor):
        result = extractor.extract("Parking area 10 by 20 feet.")
        assert result.parking_dimensions.value == 200


class TestRoofPhrasing:
    @pytest.mark.parametrize(
        "phrase,expected",
        [
            ("Roof type: flat", "flat"),
            ("a hipped roof", "hip"),
            ("The roof is pitched.", "pitched"),
            ("gable roof", "gabled"),
        ],
    )
    def test_roof_type(self, extractor, phrase, expected):
        assert extractor.extract(phrase).roof_type == expected

    @pytest.mark.parametrize(
        "phrase,expected",
        [
            ("a south-facing roof", "south"),
            ("The roof faces south-west.", "southwest"),
            ("Orientation: North East", "northeast"),
        ],
    )
    def test_roof_orientation(self, extractor, phrase, expected):
        assert extractor.extract(phrase).roof_orientation == expected

    def test_rooftop_square_feet(self, extractor):
        result = extractor.extract("Rooftop area is roughly 1,850.5 square feet.")
        assert result.roof_size.value == 1850.5


class TestConfidenceMarkers:
    def test_qualitative_marker(self, extractor):
        result = extractor.extract("Roof size: approximately 2,400 sq ft (high confidence)")
        assert result.roof_size.confidence_score == 90

    def test_labelled_marker(self, extractor):
        result = extractor.extract("Garden area: 600 sq ft, confidence: moderate")
        assert result.garden_area.confidence_score == 50

    def test_marker_in_next_sentence_is_ignored(self, extractor):
        result = extractor.extract("Roof size: 2,000 sq ft. Confidence in the pool estimate: 40%.")
        assert result.roof_size.confidence_score is None

    def test_no_marker(self, extractor):
        assert extractor.extract("Roof size: 2,000 sq ft").roof_size.confidence_score is None


class TestPool:
    def test_above_ground(self, extractor):
        result = extractor.extract("There is an above-ground pool of 200 sq ft.")

        assert result.pool_present is True
        assert result.pool_type == "above-ground"
        assert result.pool_dimensions.value == 200

    def test_dimensions_imply_presence(self, extractor):
        result = extractor.extract("Pool: 12 x 24 ft")

        assert result.pool_present is True
        assert result.pool_dimensions.value == 288
