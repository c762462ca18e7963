"""
Valuation Orchestrator

Produces the final ValuationResult for a subject property:

1. Score outliers, then adjust every priced comparable to the subject.
2. Weight each comparable by ``similarity * (1 - outlier_score)``; weight 0
   marks it excluded (it stays in the output).
3. Weighted-average the adjusted prices and size the range from their
   weighted coefficient of variation.
4. Blend with the AVM when one is supplied, enabled and confident enough.
5. Score confidence and map it to a level.

The only fatal condition is having neither a priced comparable nor a usable
AVM; that comes back as ``success=False`` rather than an exception.
"""

from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from appraisalcore.config import get_config
from appraisalcore.core.constants import (
    APPROACH_AVM,
    APPROACH_COMPARABLE,
    APPROACH_HYBRID,
    LARGE_SAMPLE_SIZE,
    LARGE_SAMPLE_RANGE_MULTIPLIER,
    SMALL_SAMPLE_SIZE,
    SMALL_SAMPLE_RANGE_MULTIPLIER,
)
from appraisalcore.core.models import (
    AdjustedComparable,
    ComparableSale,
    ValuationApproach,
    ValuationData,
    ValuationRequest,
    ValuationResult,
)
from appraisalcore.exceptions import InsufficientEvidenceError, ValidationError, ValuationError
from appraisalcore.logging_config import get_logger
from appraisalcore.stats import (
    ConfidenceRange,
    confidence_blend,
    confidence_range_blend,
    weighted_average,
    weighted_coefficient_of_variation,
)
from appraisalcore.valuation.adjustments import calculate_adjusted_prices
from appraisalcore.valuation.avm import avm_range, resolve_avm_confidence
from appraisalcore.valuation.confidence import calculate_confidence, estimation_pool
from appraisalcore.valuation.market import analyze_market
from appraisalcore.valuation.outliers import OutlierDetectionOptions, detect_outliers

logger = get_logger(__name__)


def assign_weights(comparables: Sequence[ComparableSale]) -> List[ComparableSale]:
    """Set ``weight`` and ``is_excluded`` on every comparable.

    Unpriced comparables always get weight 0 and are excluded.
    """
    weighted = []
    for comp in comparables:
        if comp.adjusted_price is None:
            weight = 0.0
        else:
            weight = max(0.0, comp.similarity_score * (1.0 - comp.outlier_score))
        weighted.append(replace(comp, weight=weight, is_excluded=weight == 0))
    return weighted


def range_spread(prices: Sequence[float], weights: Sequence[float]) -> float:
    """Relative half-width of the comparable range.

    Weighted CV of the prices, tightened for large samples and widened for
    small ones, bounded by the configured minimum and maximum spread.
    """
    config = get_config().valuation
    spread = weighted_coefficient_of_variation(prices, weights)

    if len(prices) >= LARGE_SAMPLE_SIZE:
        spread *= LARGE_SAMPLE_RANGE_MULTIPLIER
    elif len(prices) <= SMALL_SAMPLE_SIZE:
        spread *= SMALL_SAMPLE_RANGE_MULTIPLIER

    return min(config.max_range_spread, max(config.min_range_spread, spread))


def comparable_estimate(comparables: Sequence[ComparableSale]) -> Tuple[float, float, float]:
    """(point, low, high) from the priced comparables.

    Falls back to outlier-only weights when every priced comparable is excluded.
    """
    pool = estimation_pool(comparables)
    if all(c.is_excluded for c in pool):
        logger.warning("Every priced comparable excluded, weighting %d by outlier score only", len(pool))

    point = weighted_average(pool, "adjusted_price", "weight")
    spread = range_spread([c.adjusted_price for c in pool], [c.weight for c in pool])
    return point, point * (1 - spread), point * (1 + spread)


def _usable_avm_confidence(request: ValuationRequest) -> Optional[float]:
    """Resolved AVM confidence, or None when the AVM should not be used."""
    avm = request.avm
    if avm is None or not request.options.use_avm:
        return None
    if not avm.value or avm.value <= 0:
        logger.info("AVM estimate ignored: no positive value")
        return None

    threshold = request.options.confidence_threshold
    if threshold is None:
        threshold = get_config().valuation.confidence_threshold

    confidence = resolve_avm_confidence(avm)
    if confidence < threshold:
        logger.info("AVM estimate ignored: confidence %.2f below threshold %.2f", confidence, threshold)
        return None

    effective = avm_range(avm, request.options.avm_weight).confidence
    if effective <= 0:
        logger.info("AVM estimate ignored: avm_weight %s leaves no confidence", request.options.avm_weight)
        return None
    return effective


def _summarise(comp: ComparableSale) -> AdjustedComparable:
    return AdjustedComparable(
        id=comp.id,
        address=comp.address,
        sale_price=comp.sale_price,
        adjusted_price=comp.adjusted_price,
        adjustment_factor=comp.adjustment_factor,
        weight=comp.weight,
        outlier_score=comp.outlier_score,
        outlier_method=comp.outlier_method,
        is_excluded=comp.is_excluded,
    )


def calculate_valuation(
    request: ValuationRequest,
    reference_date: Optional[datetime] = None,
) -> ValuationResult:
    """Value the subject property of a request.

    Args:
        request: Subject, comparables, optional AVM / market statistics and options.
        reference_date: "Today" for recency and seasonality. Defaults to now.

    Returns:
        ValuationResult with data on success, or ``success=False`` and an
        error message when there is no evidence to value from.
    """
    if reference_date is None:
        reference_date = datetime.now()

    try:
        data = _value(request, reference_date)
    except (ValuationError, ValidationError) as e:
        logger.warning("Valuation failed for %s: %s", request.subject.address or "subject", e.message)
        return ValuationResult.failure(e.message)

    logger.info(
        "Valued %s at %.0f (%.0f-%.0f) via %s, confidence %.2f (%s)",
        request.subject.address or "subject",
        data.valuation_estimate, data.valuation_low, data.valuation_high,
        data.approach.method, data.valuation_confidence, data.confidence_level,
    )
    return ValuationResult.ok(data)


def _value(request: ValuationRequest, reference_date: datetime) -> ValuationData:
    options = request.options
    market_stats = request.market_stats

    scored = detect_outliers(
        request.comparables,
        request.subject,
        OutlierDetectionOptions(method=options.outlier_method),
    )
    adjustment = calculate_adjusted_prices(
        scored, request.subject, market_stats, reference_date=reference_date
    )
    comparables = assign_weights(adjustment.adjusted_comparables)

    priced_count = sum(1 for c in comparables if c.adjusted_price is not None)
    usable_count = sum(1 for c in comparables if c.adjusted_price is not None and not c.is_excluded)
    avm_confidence = _usable_avm_confidence(request)

    if priced_count == 0 and avm_confidence is None:
        raise InsufficientEvidenceError(
            "Cannot value property: no priced comparable sales and no usable AVM estimate",
            required=1,
            available=0,
        )

    if usable_count == 0 and avm_confidence is not None:
        if priced_count:
            logger.info("No usable comparables, valuing from the AVM alone")
        avm_estimate = avm_range(request.avm, options.avm_weight)
        confidence = calculate_confidence(
            comparables, market_stats, avm_estimate.confidence, reference_date, include_comparables=False
        )
        point, low, high = request.avm.value, avm_estimate.low, avm_estimate.high
        approach = ValuationApproach(
            method=APPROACH_AVM,
            comparable_weight=0.0,
            avm_weight=1.0,
            avm_confidence=avm_estimate.confidence,
        )
    else:
        point, low, high = comparable_estimate(comparables)
        comparable_confidence = calculate_confidence(comparables, market_stats, None, reference_date)

        if avm_confidence is None:
            confidence = comparable_confidence
            approach = ValuationApproach(method=APPROACH_COMPARABLE, comparable_weight=1.0, avm_weight=0.0)
        else:
            avm_estimate = avm_range(request.avm, options.avm_weight)
            comp_estimate = ConfidenceRange(low=low, high=high, confidence=comparable_confidence.overall)
            blended = confidence_range_blend(comp_estimate, avm_estimate)
            point = confidence_blend(
                point, comp_estimate.confidence, request.avm.value, avm_estimate.confidence
            )
            low, high = blended.low, blended.high

            total = comp_estimate.confidence + avm_estimate.confidence
            comparable_share = comp_estimate.confidence / total if total else 1.0
            confidence = calculate_confidence(
                comparables, market_stats, avm_estimate.confidence, reference_date
            )
            approach = ValuationApproach(
                method=APPROACH_HYBRID,
                comparable_weight=comparable_share,
                avm_weight=1.0 - comparable_share,
                avm_confidence=avm_estimate.confidence,
            )

    low = min(low, point)
    high = max(high, point)

    return ValuationData(
        valuation_low=low,
        valuation_high=high,
        valuation_estimate=point,
        valuation_confidence=confidence.overall,
        confidence_level=confidence.level,
        confidence_breakdown=confidence,
        approach=approach,
        adjusted_comparables=[_summarise(c) for c in comparables],
        adjustment_factors=adjustment.adjustment_factors,
        market_analysis=analyze_market(comparables, market_stats),
        reference_date=reference_date,
    )


def value_property(data: Dict[str, Any], reference_date: Optional[datetime] = None) -> ValuationResult:
    """Value a property from a raw request mapping (snake_case or camelCase keys).

    Malformed input comes back as ``success=False`` with the parse error.
    """
    try:
        request = ValuationRequest.from_dict(data)
    except ValidationError as e:
        logger.warning("Rejected valuation request: %s", e.message)
        return ValuationResult.failure(f"Invalid request: {e.message}")
    return calculate_valuation(request, reference_date)
