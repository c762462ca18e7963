"""
Valuation pipeline: outlier scoring, price adjustment, AVM handling,
market analysis, confidence scoring and orchestration.
"""

from appraisalcore.valuation.adjustments import (
    PriceAdjustmentOptions,
    PriceAdjustmentResult,
    calculate_adjusted_prices,
)
from appraisalcore.valuation.avm import avm_range, resolve_avm_confidence
from appraisalcore.valuation.confidence import calculate_confidence, confidence_level, estimation_pool
from appraisalcore.valuation.market import analyze_market
from appraisalcore.valuation.orchestrator import calculate_valuation, value_property
from appraisalcore.valuation.outliers import (
    OUTLIER_STRATEGIES,
    OutlierDetectionOptions,
    OutlierScore,
    detect_outliers,
    detect_outliers_chauvenets_method,
    detect_outliers_combined,
    detect_outliers_context_aware,
    detect_outliers_iqr,
    detect_outliers_modified_z_score,
)

__all__ = [
    "PriceAdjustmentOptions",
    "PriceAdjustmentResult",
    "calculate_adjusted_prices",
    "avm_range",
    "resolve_avm_confidence",
    "calculate_confidence",
    "confidence_level",
    "estimation_pool",
    "analyze_market",
    "calculate_valuation",
    "value_property",
    "OUTLIER_STRATEGIES",
    "OutlierDetectionOptions",
    "OutlierScore",
    "detect_outliers",
    "detect_outliers_chauvenets_method",
    "detect_outliers_combined",
    "detect_outliers_context_aware",
    "detect_outliers_iqr",
    "detect_outliers_modified_z_score",
]
