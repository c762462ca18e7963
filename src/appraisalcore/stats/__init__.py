"""
Statistics kernel: pure numeric primitives for valuation.
"""

from appraisalcore.stats.kernel import (
    ChauvenetResult,
    ConfidenceRange,
    ModifiedZResult,
    Quartiles,
    coefficient_of_variation,
    confidence_blend,
    confidence_range_blend,
    detect_outliers_chauvenets,
    detect_outliers_modified_z,
    erf,
    interquartile_range,
    mean,
    median,
    median_absolute_deviation,
    modified_z_scores,
    standard_deviation,
    weighted_average,
    weighted_coefficient_of_variation,
)

__all__ = [
    "ChauvenetResult",
    "ConfidenceRange",
    "ModifiedZResult",
    "Quartiles",
    "coefficient_of_variation",
    "confidence_blend",
    "confidence_range_blend",
    "detect_outliers_chauvenets",
    "detect_outliers_modified_z",
    "erf",
    "interquartile_range",
    "mean",
    "median",
    "median_absolute_deviation",
    "modified_z_scores",
    "standard_deviation",
    "weighted_average",
    "weighted_coefficient_of_variation",
]
