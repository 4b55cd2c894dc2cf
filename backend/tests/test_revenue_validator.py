"""Tests for revenue validation: ceilings, parking recompute, opportunity sync, totals."""

import pytest

from propyield.domain.enums import AssetCategory, PropertyType
from propyield.domain.market_reference import MarketReference
from propyield.domain.schemas import (
    Coordinates,
    Opportunity,
    ParkingAsset,
    PropertyAnalysis,
    RooftopAsset,
)
from propyield.services.geo_rate_estimator import GeoRateEstimator
from propyield.services.revenue_validator import RevenueValidator

SF = Coordinates(lat=37.7749, lng=-122.4194)  # authoritative parking rate: $30/day


@pytest.fixture
def validator() -> RevenueValidator:
    return RevenueValidator()


def _adjusted(adjustments, category, field):
    return [a for a in adjustments if a.category == category and a.field == field]


# ---------------------------------------------------------------------------
# Parking
# ---------------------------------------------------------------------------


class TestParking:
    def test_single_family_space_count_reset(self, validator, make_analysis):
        analysis = make_analysis(parking={"spaces": 10, "rate": 80, "revenue": 16000})

        result, adjustments = validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)

        assert result.parking.spaces == 2
        assert result.parking.rate == 30.0
        # min(2 * 30 * 20, 1000)
        assert result.parking.revenue == 1000.0
        space_adj = _adjusted(adjustments, AssetCategory.PARKING, "spaces")
        assert space_adj[0].original == 10
        assert space_adj[0].corrected == 2

    def test_rate_replaced_and_revenue_recomputed(self, validator, make_analysis):
        analysis = make_analysis(parking={"spaces": 1, "rate": 18, "revenue": 100})

        result, _ = validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)

        assert result.parking.rate == 30.0
        assert result.parking.revenue == 600.0

    def test_apartment_capped_at_three_spaces(self, validator, make_analysis):
        analysis = make_analysis(parking={"spaces": 5, "rate": 30, "revenue": 3000})

        result, _ = validator.validate(analysis, SF, "apartment")

        assert result.parking.spaces == 3
        assert result.parking.revenue == 1000.0

    def test_commercial_limits(self, validator, make_analysis):
        analysis = make_analysis(parking={"spaces": 10, "rate": 80, "revenue": 16000})

        result, _ = validator.validate(analysis, SF, PropertyType.COMMERCIAL)

        assert result.parking.spaces == 10
        # min(10 * 30 * 20, 1500)
        assert result.parking.revenue == 1500.0

    def test_without_coordinates_uses_base_rate(self, validator, make_analysis):
        analysis = make_analysis(parking={"spaces": 2, "rate": 40, "revenue": 500})

        result, _ = validator.validate(analysis, None, PropertyType.SINGLE_FAMILY)

        assert result.parking.rate == 15.0
        assert result.parking.revenue == 600.0

    def test_falls_back_to_analysis_property_type(self, validator, make_analysis):
        analysis = make_analysis(propertyType="Apartment building", parking={"spaces": 8, "rate": 20, "revenue": 10})

        result, _ = validator.validate(analysis, SF)

        assert result.parking.spaces == 3


# ---------------------------------------------------------------------------
# Ceilings
# ---------------------------------------------------------------------------


class TestCeilings:
    def test_pool_cap_flows_into_opportunity(self, validator, make_analysis):
        pool = {"present": True, "area": 450, "type": "in-ground", "revenue": 1500}
        analysis = make_analysis(pool=pool)

        result, adjustments = validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)

        assert result.pool.revenue == 800.0
        pool_opp = next(o for o in result.top_opportunities if o.title == "Pool Rental")
        assert pool_opp.monthly_revenue == 800.0
        assert pool_opp.roi == 1.0  # ceil(500 / 800)
        assert _adjusted(adjustments, AssetCategory.POOL, "revenue")[0].reason == "pool ceiling"

    def test_residential_solar_cap(self, validator, make_analysis):
        analysis = make_analysis(rooftop={"area": 2000, "revenue": 450, "setupCost": 12000})

        result, _ = validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)

        assert result.rooftop.revenue == 200.0

    def test_commercial_solar_cap(self, validator, make_analysis):
        analysis = make_analysis(rooftop={"area": 8000, "revenue": 900})

        result, _ = validator.validate(analysis, SF, PropertyType.COMMERCIAL)

        assert result.rooftop.revenue == 500.0

    @pytest.mark.parametrize(
        "asset,payload,expected",
        [
            ("garden", {"area": 500, "revenue": 450}, 200.0),
            ("bandwidth", {"available": 500, "revenue": 120}, 50.0),
            ("storage", {"volume": 900, "revenue": 700}, 300.0),
        ],
    )
    def test_other_caps(self, validator, make_analysis, asset, payload, expected):
        result, _ = validator.validate(make_analysis(**{asset: payload}), SF, PropertyType.SINGLE_FAMILY)
        assert getattr(result, asset).revenue == expected

    def test_negative_revenue_floored(self, validator, make_analysis):
        result, _ = validator.validate(
            make_analysis(garden={"area": 500, "revenue": -50}), SF, PropertyType.SINGLE_FAMILY
        )
        assert result.garden.revenue == 0.0

    def test_custom_ceilings(self, make_analysis):
        from propyield.domain.market_reference import RevenueCeilings

        reference = MarketReference(ceilings=RevenueCeilings(pool=300.0))
        result, _ = RevenueValidator(reference).validate(make_analysis(), SF, PropertyType.SINGLE_FAMILY)

        assert result.pool.revenue == 300.0


# ---------------------------------------------------------------------------
# Opportunities and totals
# ---------------------------------------------------------------------------


class TestOpportunitiesAndTotals:
    def test_sample_totals(self, validator, make_analysis):
        result, adjustments = validator.validate(make_analysis(), SF, PropertyType.SINGLE_FAMILY)

        valuation = result.property_valuation
        # 150 + 120 + 1000 + 600 + 100 + 30; short-term rental excluded
        assert valuation.total_monthly_revenue == 2000.0
        assert valuation.total_annual_revenue == 24000.0
        assert valuation.total_setup_costs == 15500.0
        assert valuation.best_opportunity == "Driveway Parking"
        assert valuation.average_roi == 50.5
        assert {(a.category, a.field) for a in adjustments} == {
            (AssetCategory.PARKING, "rate"),
            (AssetCategory.PARKING, "revenue"),
        }

    def test_parking_opportunity_description_regenerated(self, validator, make_analysis):
        result, _ = validator.validate(make_analysis(), SF, PropertyType.SINGLE_FAMILY)

        parking_opp = next(o for o in result.top_opportunities if o.category == AssetCategory.PARKING)
        assert parking_opp.monthly_revenue == 1000.0
        assert parking_opp.description == "Rent out 2 parking spaces at $30.00/day for about 20 days a month."

    def test_unchanged_opportunity_keeps_model_fields(self, validator, make_analysis):
        result, _ = validator.validate(make_analysis(), SF, PropertyType.SINGLE_FAMILY)

        solar_opp = next(o for o in result.top_opportunities if o.category == AssetCategory.ROOFTOP)
        assert solar_opp.roi == 100.0
        assert solar_opp.description == "Install panels on the south-facing roof."

    def test_untagged_opportunity_is_tagged_and_synced(self, validator):
        analysis = PropertyAnalysis(
            rooftop=RooftopAsset(revenue=180),
            top_opportunities=[Opportunity(title="Solar panels", monthly_revenue=999, setup_cost=9000)],
        )

        result, _ = validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)

        opp = result.top_opportunities[0]
        assert opp.category == AssetCategory.ROOFTOP
        assert opp.monthly_revenue == 180.0
        assert opp.roi == 50.0  # ceil(9000 / 180)

    def test_unrelated_opportunity_untouched(self, validator):
        analysis = PropertyAnalysis(
            top_opportunities=[Opportunity(title="Host photo shoots", monthly_revenue=250)],
        )

        result, _ = validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)

        assert result.top_opportunities[0].category is None
        assert result.top_opportunities[0].monthly_revenue == 250.0

    def test_separate_ventures_keep_their_figures(self, validator, make_analysis):
        analysis = make_analysis(
            topOpportunities=[
                {"title": "Driveway Parking", "monthlyRevenue": 600, "description": "Rent out 2 spaces."},
                {
                    "title": "EV Charging Station",
                    "monthlyRevenue": 400,
                    "description": "Install a Level 2 charger",
                    "setupCost": 1200,
                    "roi": 3,
                },
                {"title": "Rooftop Garden Rental", "monthlyRevenue": 150, "description": "Lease the roof terrace."},
            ]
        )

        result, _ = validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)

        parking_opp, ev_opp, garden_opp = result.top_opportunities
        assert parking_opp.category == AssetCategory.PARKING
        assert parking_opp.monthly_revenue == 1000.0

        assert ev_opp.category is None
        assert ev_opp.monthly_revenue == 400.0
        assert ev_opp.description == "Install a Level 2 charger"
        assert ev_opp.roi == 3.0

        assert garden_opp.category is None
        assert garden_opp.monthly_revenue == 150.0
        assert garden_opp.description == "Lease the roof terrace."

        assert result.property_valuation.best_opportunity == "Driveway Parking"
        assert result.property_valuation.average_roi == 3.0

    def test_only_mirroring_opportunities_change(self, validator, make_analysis):
        tagged = [
            {
                "category": category.value,
                "title": f"{category.value} offer {n}",
                "monthlyRevenue": revenue,
                "description": f"model text {category.value} {n}",
            }
            for category in AssetCategory
            for n, revenue in enumerate((1, 99999))
        ]
        untagged = [
            {"title": title, "monthlyRevenue": 321, "description": f"model text {title}"}
            for title in ("EV Charging Station", "Rooftop Garden Rental", "Host photo shoots", "Billboard advertising")
        ]
        analysis = make_analysis(topOpportunities=tagged + untagged)

        result, _ = validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)

        assert len(result.top_opportunities) == len(tagged) + len(untagged)
        for before, after in zip(analysis.top_opportunities, result.top_opportunities):
            if before.category is None:
                assert after.category is None
                assert after.monthly_revenue == before.monthly_revenue
                assert after.description == before.description
            else:
                assert after.category == before.category
                assert after.monthly_revenue == result.asset(after.category).monthly_revenue
                if after.category != AssetCategory.PARKING:
                    assert after.description == before.description

    def test_valuation_created_when_missing(self, validator):
        analysis = PropertyAnalysis(parking=ParkingAsset(spaces=1, rate=30, revenue=600))

        result, _ = validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)

        assert result.property_valuation is not None
        assert result.property_valuation.total_monthly_revenue == 600.0
        assert result.property_valuation.best_opportunity == ""


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class TestContract:
    def test_input_not_mutated(self, validator, make_analysis):
        analysis = make_analysis()
        before = analysis.model_dump()

        validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)

        assert analysis.model_dump() == before

    def test_idempotent(self, validator, make_analysis):
        analysis = make_analysis(
            parking={"spaces": 12, "rate": 90, "revenue": 20000},
            pool={"present": True, "revenue": 5000},
        )
        once, _ = validator.validate(analysis, SF, PropertyType.SINGLE_FAMILY)
        twice, adjustments = validator.validate(once, SF, PropertyType.SINGLE_FAMILY)

        assert adjustments == []
        assert twice == once

    def test_estimator_must_share_reference(self):
        with pytest.raises(ValueError):
            RevenueValidator(MarketReference(), GeoRateEstimator(MarketReference()))

    def test_shared_reference_accepted(self):
        reference = MarketReference()
        validator = RevenueValidator(reference, GeoRateEstimator(reference))
        assert validator is not None
