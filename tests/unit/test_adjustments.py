"""
Unit tests for comparable price adjustments.
"""

from datetime import datetime

import pytest

from appraisalcore.core.models import (
    ComparableSale,
    ConstructionMaterials,
    MarketStatistics,
    SubjectProperty,
)
from appraisalcore.valuation.adjustments import (
    PriceAdjustmentOptions,
    age_adjustment,
    bedroom_adjustment,
    calculate_adjusted_prices,
    condition_quality,
    monthly_growth_rate,
)

REFERENCE_DATE = datetime(2024, 7, 15)
NO_SEASONAL = PriceAdjustmentOptions(seasonal_adjustment=False)


def _adjust(subject, comp, market_stats=None, options=None):
    result = calculate_adjusted_prices(
        [comp], subject, market_stats, options=options, reference_date=REFERENCE_DATE
    )
    return result.adjusted_comparables[0]


class TestBedroomAdjustment:
    """Tests for bedroom_adjustment function."""

    @pytest.mark.parametrize("difference,expected", [
        (0, 0.0),
        (1, 0.05),
        (2, 0.09),
        (3, 0.12),
        (4, 0.15),
        (-1, -0.05),
        (-2, -0.09),
    ])
    def test_diminishing_steps(self, difference, expected):
        assert bedroom_adjustment(difference) == pytest.approx(expected)


class TestAgeAdjustment:
    """Tests for age_adjustment function."""

    def test_modern_subject_older_comparable(self):
        assert age_adjustment(2015, 2000) == pytest.approx(0.075)

    def test_modern_subject_capped(self):
        assert age_adjustment(2015, 1980) == pytest.approx(0.10)

    def test_modern_subject_modern_comparable(self):
        assert age_adjustment(2020, 2012) == 0

    def test_mid_era_subject(self):
        assert age_adjustment(2000, 1980) == pytest.approx(0.04)
        assert age_adjustment(2000, 1950) == pytest.approx(0.05)
        assert age_adjustment(2000, 2015) == pytest.approx(-0.075)
        assert age_adjustment(2000, 1995) == 0

    def test_character_subject(self):
        assert age_adjustment(1920, 1970) == pytest.approx(0.05)
        assert age_adjustment(1920, 2005) == 0
        assert age_adjustment(1920, 1910) == 0

    def test_other_eras_linear(self):
        assert age_adjustment(1970, 1960) == pytest.approx(0.03)


class TestConditionQuality:
    """Tests for condition_quality function."""

    def test_known_labels(self):
        assert condition_quality("Excellent") == 1.0
        assert condition_quality(" very good ") == 0.9

    def test_unknown_label_is_average(self):
        assert condition_quality("tidy") == 0.7


class TestMonthlyGrowthRate:
    """Tests for monthly_growth_rate function."""

    def test_from_annual_growth(self):
        stats = MarketStatistics(annual_growth=0.1)
        assert monthly_growth_rate(stats) == pytest.approx(1.1 ** (1 / 12) - 1)

    def test_default_without_statistics(self):
        assert monthly_growth_rate(None) == pytest.approx(0.004)

    def test_trends_disabled(self):
        stats = MarketStatistics(annual_growth=0.1)
        assert monthly_growth_rate(stats, consider_market_trends=False) == pytest.approx(0.004)


class TestCalculateAdjustedPrices:
    """Tests for calculate_adjusted_prices function."""

    def test_identical_comparable_is_unadjusted(self):
        attributes = dict(
            suburb="Riverton",
            city="Springfield",
            property_type="house",
            bedrooms=3,
            bathrooms=2,
            land_size=500,
            floor_area=180,
            year_built=2005,
            car_spaces=2,
            condition="Good",
            architectural_style="Bungalow",
            construction_materials=ConstructionMaterials(walls="Brick"),
        )
        subject = SubjectProperty(**attributes)
        comp = ComparableSale(sale_price=650000, sale_date=REFERENCE_DATE, **attributes)

        adjusted = _adjust(subject, comp)
        assert adjusted.adjustment_factor == pytest.approx(1.0)
        assert adjusted.adjusted_price == pytest.approx(650000)

    def test_extra_bedroom(self):
        subject = SubjectProperty(bedrooms=4)
        comp = ComparableSale(bedrooms=3, sale_price=500000)
        adjusted = _adjust(subject, comp)
        assert adjusted.adjustment_factor == pytest.approx(1.05)
        assert adjusted.adjusted_price == pytest.approx(525000)
        assert adjusted.adjustment_breakdown == {"bedrooms": pytest.approx(0.05)}

    def test_missing_attribute_skips_dimension(self):
        subject = SubjectProperty(bedrooms=4, bathrooms=2)
        comp = ComparableSale(bathrooms=1, sale_price=500000)
        adjusted = _adjust(subject, comp)
        assert "bedrooms" not in adjusted.adjustment_breakdown
        assert adjusted.adjustment_factor == pytest.approx(1.035)

    def test_car_spaces(self):
        adjusted = _adjust(SubjectProperty(car_spaces=1), ComparableSale(car_spaces=3, sale_price=400000))
        assert adjusted.adjustment_factor == pytest.approx(0.95)

    def test_land_size_same_type(self):
        subject = SubjectProperty(property_type="house", land_size=600)
        comp = ComparableSale(property_type="house", land_size=500, sale_price=500000)
        assert _adjust(subject, comp).adjustment_factor == pytest.approx(1.03)

    def test_land_size_for_sections(self):
        subject = SubjectProperty(property_type="section", land_size=1000)
        comp = ComparableSale(property_type="land", land_size=800, sale_price=300000)
        assert _adjust(subject, comp).adjustment_factor == pytest.approx(1.2)

    def test_type_mismatch(self):
        subject = SubjectProperty(property_type="house")
        comp = ComparableSale(property_type="apartment", sale_price=500000)
        adjusted = _adjust(subject, comp)
        assert adjusted.adjustment_factor == pytest.approx(0.9)
        assert adjusted.adjustment_breakdown["property_type"] == 0.9

    def test_type_mismatch_uses_default_land_factor(self):
        subject = SubjectProperty(property_type="house", land_size=600)
        comp = ComparableSale(property_type="townhouse", land_size=500, sale_price=500000)
        # (1.2 - 1) * 0.10, then the mismatch multiplier
        assert _adjust(subject, comp).adjustment_factor == pytest.approx(1.02 * 0.9)

    def test_floor_area_for_apartments(self):
        subject = SubjectProperty(property_type="apartment", floor_area=100)
        comp = ComparableSale(property_type="unit", floor_area=80, sale_price=400000)
        assert _adjust(subject, comp).adjustment_factor == pytest.approx(1 + 0.25 * 0.25)

    def test_condition(self):
        subject = SubjectProperty(condition="Excellent")
        comp = ComparableSale(condition="Good", sale_price=500000)
        assert _adjust(subject, comp).adjustment_factor == pytest.approx(1.04)

    def test_condition_toggle(self):
        subject = SubjectProperty(condition="Excellent")
        comp = ComparableSale(condition="Poor", sale_price=500000)
        adjusted = _adjust(subject, comp, options=PriceAdjustmentOptions(consider_condition=False))
        assert adjusted.adjustment_factor == 1.0

    def test_premium_style(self):
        subject = SubjectProperty(architectural_style="Heritage Villa")
        comp = ComparableSale(architectural_style="Modern", sale_price=500000)
        assert _adjust(subject, comp).adjustment_factor == pytest.approx(1.03)
        reverse = _adjust(
            SubjectProperty(architectural_style="Modern"),
            ComparableSale(architectural_style="character bungalow", sale_price=500000),
        )
        assert reverse.adjustment_factor == pytest.approx(0.97)

    def test_premium_walls(self):
        subject = SubjectProperty(construction_materials=ConstructionMaterials(walls="Double Brick"))
        comp = ComparableSale(
            construction_materials=ConstructionMaterials(walls="Weatherboard"), sale_price=500000
        )
        assert _adjust(subject, comp).adjustment_factor == pytest.approx(1.02)

    def test_age(self):
        subject = SubjectProperty(year_built=2015)
        comp = ComparableSale(year_built=2000, sale_price=500000)
        assert _adjust(subject, comp).adjustment_factor == pytest.approx(1.075)

    def test_location_multipliers(self):
        subject = SubjectProperty(suburb="Riverton", city="Springfield")
        other_suburb = ComparableSale(suburb="Hillcrest", city="springfield", sale_price=500000)
        other_city = ComparableSale(suburb="Hillcrest", city="Shelbyville", sale_price=500000)
        assert _adjust(subject, other_suburb).adjustment_factor == pytest.approx(0.95)
        assert _adjust(subject, other_city).adjustment_factor == pytest.approx(0.855)

    def test_location_case_insensitive(self):
        subject = SubjectProperty(suburb="Riverton")
        comp = ComparableSale(suburb="RIVERTON ", sale_price=500000)
        assert _adjust(subject, comp).adjustment_factor == 1.0

    def test_market_growth(self):
        comp = ComparableSale(sale_price=500000, sale_date=datetime(2024, 1, 15))
        stats = MarketStatistics(annual_growth=0.1)
        adjusted = _adjust(SubjectProperty(), comp, stats, options=NO_SEASONAL)
        assert adjusted.adjustment_factor == pytest.approx(1 + 6 * (1.1 ** (1 / 12) - 1))

    def test_default_growth_without_statistics(self):
        comp = ComparableSale(sale_price=500000, sale_date=datetime(2024, 1, 15))
        adjusted = _adjust(SubjectProperty(), comp, options=NO_SEASONAL)
        assert adjusted.adjustment_factor == pytest.approx(1.024)

    def test_seasonal(self):
        comp = ComparableSale(sale_price=500000, sale_date=datetime(2024, 1, 15))
        stats = MarketStatistics(annual_growth=0.0)
        adjusted = _adjust(SubjectProperty(), comp, stats)
        # July (-0.03) less January (+0.01)
        assert adjusted.adjustment_breakdown["seasonal"] == pytest.approx(-0.04)
        assert adjusted.adjustment_factor == pytest.approx(0.96)

    def test_future_sale_gets_no_growth(self):
        comp = ComparableSale(sale_price=500000, sale_date=datetime(2024, 9, 1))
        adjusted = _adjust(SubjectProperty(), comp, options=NO_SEASONAL)
        assert adjusted.adjustment_factor == 1.0

    def test_unpriced_comparable(self):
        adjusted = _adjust(SubjectProperty(bedrooms=4), ComparableSale(bedrooms=2))
        assert adjusted.adjusted_price is None
        assert adjusted.adjustment_factor == 1.0
        assert adjusted.adjustment_breakdown == {}

    def test_input_not_mutated(self):
        comp = ComparableSale(bedrooms=3, sale_price=500000)
        _adjust(SubjectProperty(bedrooms=4), comp)
        assert comp.adjusted_price is None
        assert comp.adjustment_factor == 1.0

    def test_adjustment_factor_summary(self):
        subject = SubjectProperty(bedrooms=4, bathrooms=2)
        comps = [
            ComparableSale(bedrooms=3, bathrooms=1, sale_price=500000),
            ComparableSale(bedrooms=2, bathrooms=2, sale_price=600000),
        ]
        result = calculate_adjusted_prices(comps, subject, reference_date=REFERENCE_DATE)
        factors = result.adjustment_factors
        # 500000 * 0.05 per bedroom; 600000 * 0.09 / 2 per bedroom
        assert factors.bedroom_value == pytest.approx((25000 + 27000) / 2)
        assert factors.bathroom_value == pytest.approx((500000 + 600000) / 2 * 0.035)
        assert factors.land_size_value is None
        assert "land_size_value" not in factors.to_dict()
