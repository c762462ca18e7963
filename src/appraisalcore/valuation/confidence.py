"""
Confidence scoring for valuations.

Builds the confidence breakdown from the final comparable set and optional
market statistics / AVM confidence, combines the factors into one 0-1 score
and maps that score onto a named level.
"""

from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from appraisalcore.config import get_config
from appraisalcore.core.constants import (
    CONFIDENCE_FACTOR_WEIGHTS,
    CONFIDENCE_LEVELS,
    FULL_SAMPLE_SIZE,
    LOWEST_CONFIDENCE_LEVEL,
    MARKET_VOLATILITY_SCALE,
    NEUTRAL_RECENCY_SCORE,
    NEUTRAL_VOLATILITY_SCORE,
)
from appraisalcore.core.models import ComparableSale, ConfidenceBreakdown, MarketStatistics
from appraisalcore.logging_config import get_logger
from appraisalcore.stats import coefficient_of_variation, mean, weighted_coefficient_of_variation
from appraisalcore.utils.date_parser import months_between

logger = get_logger(__name__)


def estimation_pool(comparables: Sequence[ComparableSale]) -> List[ComparableSale]:
    """Priced comparables the point estimate is drawn from.

    Normally the non-excluded ones with their assigned weights. When every
    priced comparable is excluded they are re-weighted by ``1 - outlier_score``
    alone, leaving out certain outliers; if that leaves nothing, all priced
    comparables get an equal weight.
    """
    priced = [c for c in comparables if c.has_price and c.adjusted_price is not None]
    usable = [c for c in priced if not c.is_excluded]
    if usable:
        return usable

    pool = [replace(c, weight=1.0 - c.outlier_score) for c in priced if c.outlier_score < 1.0]
    return pool or [replace(c, weight=1.0) for c in priced]


def confidence_level(score: float) -> str:
    """Very High (>=0.85), High (>=0.7), Moderate (>=0.5), Low (>=0.3), else Very Low."""
    for minimum, level in CONFIDENCE_LEVELS:
        if score >= minimum:
            return level
    return LOWEST_CONFIDENCE_LEVEL


def market_volatility_score(market_stats: Optional[MarketStatistics]) -> float:
    """Inverse of the variation between current, last-quarter and last-year medians."""
    if market_stats is None:
        return NEUTRAL_VOLATILITY_SCORE

    medians = [
        value
        for value in (
            market_stats.median_price,
            market_stats.median_price_last_quarter,
            market_stats.median_price_last_year,
        )
        if value
    ]
    if len(medians) < 2:
        return NEUTRAL_VOLATILITY_SCORE

    return 1.0 / (1.0 + MARKET_VOLATILITY_SCALE * coefficient_of_variation(medians))


def data_recency_score(comparables: Sequence[ComparableSale], reference_date: datetime) -> float:
    """``1 / (1 + mean months since sale / 12)``; neutral 0.5 without sale dates."""
    months = [
        max(0, months_between(c.sale_date, reference_date))
        for c in comparables
        if c.sale_date is not None
    ]
    if not months:
        return NEUTRAL_RECENCY_SCORE
    return 1.0 / (1.0 + mean(months) / 12.0)


def _combine(factors: Dict[str, float]) -> float:
    total_weight = sum(CONFIDENCE_FACTOR_WEIGHTS[name] for name in factors)
    if total_weight == 0:
        return 0.0
    score = sum(CONFIDENCE_FACTOR_WEIGHTS[name] * value for name, value in factors.items())
    return min(1.0, max(0.0, score / total_weight))


def calculate_confidence(
    comparables: Sequence[ComparableSale],
    market_stats: Optional[MarketStatistics] = None,
    avm_confidence: Optional[float] = None,
    reference_date: Optional[datetime] = None,
    include_comparables: bool = True,
) -> ConfidenceBreakdown:
    """Confidence breakdown for a valuation.

    Args:
        comparables: Final comparables (weights and exclusions set).
        market_stats: Optional market statistics for the volatility factor.
        avm_confidence: Effective AVM confidence when an AVM contributes.
        reference_date: "Today" for the recency factor.
        include_comparables: False for AVM-only valuations.

    Returns:
        ConfidenceBreakdown whose ``overall`` is the weighted mean of the
        factors that apply.
    """
    if reference_date is None:
        reference_date = datetime.now()
    flag_threshold = get_config().valuation.outlier_flag_threshold

    volatility = market_volatility_score(market_stats)
    priced = [c for c in comparables if c.has_price and c.adjusted_price is not None]
    usable = [c for c in priced if not c.is_excluded]

    factors: Dict[str, float] = {"market_volatility": volatility}
    breakdown = ConfidenceBreakdown(overall=0.0, level=LOWEST_CONFIDENCE_LEVEL, market_volatility=volatility)

    if include_comparables and priced:
        pool = estimation_pool(priced)
        weights = [c.weight for c in pool]
        consistency = max(
            0.0,
            1.0 - weighted_coefficient_of_variation([c.adjusted_price for c in pool], weights),
        )
        flagged = sum(1 for c in priced if c.outlier_score >= flag_threshold)

        breakdown.data_quality = (
            0.4 * min(1.0, len(pool) / FULL_SAMPLE_SIZE)
            + 0.4 * (1.0 - flagged / len(priced))
            + 0.2 * consistency
        )
        breakdown.comparable_count = len(usable) / len(comparables)
        breakdown.comparable_similarity = mean([c.similarity_score for c in pool])
        breakdown.outlier_impact = mean([1.0 - c.outlier_score for c in priced])
        breakdown.data_recency = data_recency_score(pool, reference_date)

        factors.update({
            "data_quality": breakdown.data_quality,
            "comparable_count": breakdown.comparable_count,
            "comparable_similarity": breakdown.comparable_similarity,
            "outlier_impact": breakdown.outlier_impact,
            "data_recency": breakdown.data_recency,
        })

    if avm_confidence is not None:
        breakdown.avm_confidence = avm_confidence
        factors["avm_confidence"] = avm_confidence

    breakdown.overall = _combine(factors)
    breakdown.level = confidence_level(breakdown.overall)
    logger.debug("Confidence factors %s -> %.3f (%s)", factors, breakdown.overall, breakdown.level)
    return breakdown
