"""
Unit tests for the valuation orchestrator.
"""

import pytest

from appraisalcore.core.models import AVMEstimate, MarketStatistics, ValuationOptions, ValuationRequest
from appraisalcore.valuation.orchestrator import (
    assign_weights,
    calculate_valuation,
    range_spread,
    value_property,
)


def _assert_valid(data):
    assert data.valuation_low <= data.valuation_estimate <= data.valuation_high
    assert 0.0 <= data.valuation_confidence <= 1.0


class TestComparableValuation:
    """Tests for comparable-only valuations."""

    def test_end_to_end_with_outlier(self, subject, market_comparables, reference_date):
        request = ValuationRequest(subject=subject, comparables=market_comparables)
        result = calculate_valuation(request, reference_date)

        assert result.success
        data = result.data
        _assert_valid(data)
        assert 470000 <= data.valuation_estimate <= 560000
        assert data.confidence_level in ("Moderate", "High", "Very High")
        assert data.approach.method == "Comparable"

        outlier = data.adjusted_comparables[5]
        assert outlier.sale_price == 1200000
        assert outlier.outlier_score > 0.5
        assert outlier.is_excluded or outlier.weight < 0.1
        assert all(c.weight > outlier.weight for c in data.adjusted_comparables[:5])

    def test_comparables_retained_in_order(self, subject, market_comparables, reference_date):
        result = calculate_valuation(ValuationRequest(subject, market_comparables), reference_date)
        assert [c.id for c in result.data.adjusted_comparables] == [c.id for c in market_comparables]

    def test_all_comparables_excluded_falls_back(self, subject, make_comparable, reference_date):
        comps = [
            make_comparable(sale_price=price, sale_date=reference_date, similarity_score=0.0)
            for price in (490000, 500000, 510000)
        ]
        result = calculate_valuation(ValuationRequest(subject, comps), reference_date)

        assert result.success
        assert all(c.is_excluded for c in result.data.adjusted_comparables)
        assert result.data.valuation_estimate == pytest.approx(500000)
        assert result.data.confidence_breakdown.comparable_count == 0
        _assert_valid(result.data)

    def test_missing_similarity_still_downweights_outlier(self, sample_request_data, reference_date):
        sales = [
            (480000, "2024-06-02"),
            (490000, "2024-05-20"),
            (500000, "2024-04-11"),
            (510000, "2024-06-28"),
            (520000, "2024-03-30"),
            (1200000, "2024-05-05"),
        ]
        sample_request_data["comparableProperties"] = [
            {
                "id": f"s{i}",
                "address": f"{i} Rimu Road",
                "propertyType": "house",
                "bedrooms": 3,
                "bathrooms": 2,
                "landSize": 500,
                "yearBuilt": 2005,
                "salePrice": price,
                "saleDate": sold,
            }
            for i, (price, sold) in enumerate(sales)
        ]
        del sample_request_data["avmEstimate"]

        result = value_property(sample_request_data, reference_date)

        assert result.success
        data = result.data
        _assert_valid(data)
        assert data.approach.method == "Comparable"
        assert all(c.is_excluded for c in data.adjusted_comparables)
        assert data.adjusted_comparables[5].outlier_score > 0.5
        assert 470000 <= data.valuation_estimate <= 560000

    def test_single_comparable(self, subject, make_comparable, reference_date):
        comps = [make_comparable(sale_price=500000, sale_date=reference_date)]
        result = calculate_valuation(ValuationRequest(subject, comps), reference_date)
        assert result.success
        data = result.data
        assert data.valuation_estimate == pytest.approx(500000)
        # Minimum spread applies to a zero-variance sample
        assert data.valuation_low == pytest.approx(500000 * 0.97)
        assert data.valuation_high == pytest.approx(500000 * 1.03)

    def test_market_analysis_reported(self, subject, market_comparables, reference_date):
        stats = MarketStatistics(median_price=505000, annual_growth=0.09)
        result = calculate_valuation(
            ValuationRequest(subject, market_comparables, market_stats=stats), reference_date
        )
        assert result.data.market_analysis.median_price == 505000
        assert result.data.market_analysis.market_strength == "Seller"
        assert result.data.reference_date == reference_date


class TestAvmBlending:
    """Tests for AVM handling in the orchestrator."""

    @pytest.fixture
    def avm(self):
        return AVMEstimate(value=520000, low=500000, high=540000, confidence=0.8, source="test")

    def test_hybrid(self, subject, market_comparables, avm, reference_date):
        request = ValuationRequest(subject, market_comparables[:5], avm=avm)
        result = calculate_valuation(request, reference_date)

        assert result.success
        approach = result.data.approach
        assert approach.method == "Hybrid"
        assert approach.comparable_weight + approach.avm_weight == pytest.approx(1.0)
        assert approach.avm_confidence == pytest.approx(0.8)
        assert result.data.confidence_breakdown.avm_confidence == pytest.approx(0.8)
        _assert_valid(result.data)

    def test_avm_weight_scales_confidence(self, subject, market_comparables, avm, reference_date):
        request = ValuationRequest(
            subject, market_comparables[:5], avm=avm, options=ValuationOptions(avm_weight=0.5)
        )
        result = calculate_valuation(request, reference_date)
        assert result.data.approach.avm_confidence == pytest.approx(0.4)

    def test_low_confidence_avm_ignored(self, subject, market_comparables, reference_date):
        avm = AVMEstimate(value=900000, confidence=0.3)
        result = calculate_valuation(ValuationRequest(subject, market_comparables, avm=avm), reference_date)
        assert result.data.approach.method == "Comparable"
        assert result.data.confidence_breakdown.avm_confidence is None

    def test_threshold_option(self, subject, market_comparables, reference_date):
        avm = AVMEstimate(value=520000, confidence=0.3)
        request = ValuationRequest(
            subject, market_comparables, avm=avm, options=ValuationOptions(confidence_threshold=0.2)
        )
        assert calculate_valuation(request, reference_date).data.approach.method == "Hybrid"

    def test_use_avm_disabled(self, subject, market_comparables, avm, reference_date):
        request = ValuationRequest(
            subject, market_comparables, avm=avm, options=ValuationOptions(use_avm=False)
        )
        assert calculate_valuation(request, reference_date).data.approach.method == "Comparable"

    def test_zero_avm_weight_is_comparable_only(self, subject, market_comparables, avm, reference_date):
        comparable_only = calculate_valuation(ValuationRequest(subject, market_comparables[:5]), reference_date)
        request = ValuationRequest(
            subject, market_comparables[:5], avm=avm, options=ValuationOptions(avm_weight=0.0)
        )
        result = calculate_valuation(request, reference_date)

        assert result.data.approach.method == "Comparable"
        assert result.data.approach.avm_weight == 0.0
        assert result.data.confidence_breakdown.avm_confidence is None
        assert result.data.valuation_confidence == pytest.approx(comparable_only.data.valuation_confidence)
        assert result.data.valuation_estimate == pytest.approx(comparable_only.data.valuation_estimate)

    def test_avm_only_when_every_comparable_excluded(self, subject, make_comparable, reference_date):
        comps = [
            make_comparable(sale_price=price, sale_date=reference_date, similarity_score=0.0)
            for price in (490000, 500000, 510000)
        ]
        avm = AVMEstimate(value=800000, confidence=0.9)
        result = calculate_valuation(ValuationRequest(subject, comps, avm=avm), reference_date)

        assert result.success
        data = result.data
        assert data.approach.method == "AVM"
        assert data.approach.comparable_weight == 0.0
        assert data.valuation_estimate == 800000
        assert data.valuation_low == pytest.approx(760000)
        assert data.valuation_high == pytest.approx(840000)
        assert len(data.adjusted_comparables) == 3
        assert all(c.is_excluded for c in data.adjusted_comparables)

    def test_zero_avm_weight_without_comparables_fails(self, subject, avm, reference_date):
        request = ValuationRequest(subject, [], avm=avm, options=ValuationOptions(avm_weight=0.0))
        assert not calculate_valuation(request, reference_date).success

    def test_avm_only(self, subject, reference_date):
        avm = AVMEstimate(value=800000, confidence=0.9)
        result = calculate_valuation(ValuationRequest(subject, [], avm=avm), reference_date)

        assert result.success
        data = result.data
        assert data.approach.method == "AVM"
        assert data.valuation_estimate == 800000
        assert data.valuation_low == pytest.approx(760000)
        assert data.valuation_high == pytest.approx(840000)
        assert data.valuation_confidence == pytest.approx(0.825)
        assert data.confidence_level == "High"


class TestFailures:
    """Tests for insufficient-evidence failures."""

    def test_no_evidence(self, subject, reference_date):
        result = calculate_valuation(ValuationRequest(subject, []), reference_date)
        assert not result.success
        assert result.error
        assert result.data is None

    def test_unusable_avm_and_no_comparables(self, subject, reference_date):
        avm = AVMEstimate(value=800000, confidence=0.2)
        result = calculate_valuation(ValuationRequest(subject, [], avm=avm), reference_date)
        assert not result.success

    def test_only_unpriced_comparables(self, subject, make_comparable, reference_date):
        comps = [make_comparable(), make_comparable()]
        result = calculate_valuation(ValuationRequest(subject, comps), reference_date)
        assert not result.success
        assert "no priced comparable" in result.error

    def test_failure_dict(self, subject, reference_date):
        result = calculate_valuation(ValuationRequest(subject, []), reference_date).to_dict()
        assert result["success"] is False
        assert "data" not in result
        assert result["error"]


class TestHelpers:
    """Tests for weighting and range helpers."""

    def test_assign_weights(self, make_comparable):
        comps = [
            make_comparable(sale_price=500000, adjusted_price=500000, similarity_score=0.8, outlier_score=0.25),
            make_comparable(sale_price=500000, adjusted_price=500000, similarity_score=0.8, outlier_score=1.0),
            make_comparable(),
        ]
        weighted = assign_weights(comps)
        assert weighted[0].weight == pytest.approx(0.6)
        assert not weighted[0].is_excluded
        assert weighted[1].weight == 0 and weighted[1].is_excluded
        assert weighted[2].weight == 0 and weighted[2].is_excluded

    def test_range_spread_bounds(self):
        assert range_spread([500000] * 5, [1] * 5) == pytest.approx(0.03)
        assert range_spread([100000, 2000000], [1, 1]) == pytest.approx(0.5)

    def test_range_spread_sample_multipliers(self):
        prices = [450000, 550000]
        # CV 0.1, widened for a small sample
        assert range_spread(prices, [1, 1]) == pytest.approx(0.12)
        assert range_spread(prices * 5, [1] * 10) == pytest.approx(0.09)


class TestValueProperty:
    """Tests for the dictionary entry point."""

    def test_camel_case_request(self, sample_request_data, reference_date):
        result = value_property(sample_request_data, reference_date)
        assert result.success
        assert result.data.approach.method == "Hybrid"
        _assert_valid(result.data)

        payload = result.to_dict()
        assert payload["success"] is True
        assert payload["data"]["reference_date"] == "2024-07-15"
        assert len(payload["data"]["adjusted_comparables"]) == 3

    def test_invalid_request(self, sample_request_data, reference_date):
        sample_request_data["comparableProperties"][0]["saleDate"] = "sometime last spring"
        result = value_property(sample_request_data, reference_date)
        assert not result.success
        assert result.error.startswith("Invalid request")

    def test_missing_subject(self):
        result = value_property({"comparableProperties": []})
        assert not result.success

    def test_invalid_option(self, sample_request_data):
        sample_request_data["options"]["outlierMethod"] = "Grubbs"
        result = value_property(sample_request_data)
        assert not result.success
