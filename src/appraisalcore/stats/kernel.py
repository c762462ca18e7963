"""
Statistics Kernel for Property Valuation

Pure numeric primitives used by the outlier detector, the price adjuster and
the orchestrator: central tendency, dispersion, robust outlier scores
(modified Z-score, Chauvenet's criterion), interquartile range, weighted
averages and confidence-weighted blending.

Every function is total: empty or degenerate input yields a neutral result
(0, or "no outliers") rather than an exception, because comparable sets in
practice are often only 3-8 sales.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, List, Sequence, Union

import numpy as np

from appraisalcore.core.constants import MIN_OUTLIER_SAMPLE, MODIFIED_Z_CONSTANT

Number = Union[int, float]


@dataclass(frozen=True)
class Quartiles:
    """First and third quartile with their spread."""

    q1: float = 0.0
    q3: float = 0.0
    iqr: float = 0.0


@dataclass(frozen=True)
class ModifiedZResult:
    """Modified Z-scores with the outlier / non-outlier index split."""

    scores: List[float]
    outlier_indices: List[int]
    non_outlier_indices: List[int]


@dataclass(frozen=True)
class ChauvenetResult:
    """Two-sided tail probabilities with the outlier / non-outlier index split."""

    probabilities: List[float]
    outlier_indices: List[int]
    non_outlier_indices: List[int]
    rejection_threshold: float


@dataclass(frozen=True)
class ConfidenceRange:
    """A low/high range carrying a confidence in [0, 1]."""

    low: float
    high: float
    confidence: float


def _as_array(values: Sequence[Number]) -> np.ndarray:
    return np.asarray(list(values), dtype=float)


def median(values: Sequence[Number]) -> float:
    """Median of values; 0 for empty input."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.median(arr))


def mean(values: Sequence[Number]) -> float:
    """Arithmetic mean of values; 0 for empty input."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.mean(arr))


def standard_deviation(values: Sequence[Number], use_sample_correction: bool = False) -> float:
    """Population (or, with correction, sample) standard deviation.

    Returns 0 for fewer than two values.
    """
    arr = _as_array(values)
    if arr.size <= 1:
        return 0.0
    return float(np.std(arr, ddof=1 if use_sample_correction else 0))


def median_absolute_deviation(values: Sequence[Number]) -> float:
    """Median of absolute deviations from the median."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.median(np.abs(arr - np.median(arr))))


def modified_z_scores(values: Sequence[Number]) -> List[float]:
    """Modified Z-score ``0.6745 * (x - median) / MAD`` for each value.

    All scores are 0 when MAD is 0 (identical values).
    """
    arr = _as_array(values)
    if arr.size == 0:
        return []

    mad = median_absolute_deviation(arr)
    if mad == 0:
        return [0.0] * arr.size

    return (MODIFIED_Z_CONSTANT * (arr - np.median(arr)) / mad).tolist()


def detect_outliers_modified_z(values: Sequence[Number], threshold: float = 3.5) -> ModifiedZResult:
    """Split indices on ``|modified Z| > threshold``."""
    scores = modified_z_scores(values)
    outliers = [i for i, score in enumerate(scores) if abs(score) > threshold]
    flagged = set(outliers)
    return ModifiedZResult(
        scores=scores,
        outlier_indices=outliers,
        non_outlier_indices=[i for i in range(len(scores)) if i not in flagged],
    )


def interquartile_range(values: Sequence[Number]) -> Quartiles:
    """Q1/Q3 taken at sorted indices floor(n*0.25) and floor(n*0.75).

    All zero for fewer than four values.
    """
    arr = _as_array(values)
    if arr.size < MIN_OUTLIER_SAMPLE:
        return Quartiles()

    ordered = np.sort(arr)
    q1 = float(ordered[int(math.floor(ordered.size * 0.25))])
    q3 = float(ordered[int(math.floor(ordered.size * 0.75))])
    return Quartiles(q1=q1, q3=q3, iqr=q3 - q1)


def erf(x: float) -> float:
    """Error function, Abramowitz & Stegun 7.1.26 (max error ~1.5e-7)."""
    a1 = 0.254829592
    a2 = -0.284496736
    a3 = 1.421413741
    a4 = -1.453152027
    a5 = 1.061405429
    p = 0.3275911

    sign = -1.0 if x < 0 else 1.0
    x = abs(x)

    t = 1.0 / (1.0 + p * x)
    y = 1.0 - (((((a5 * t + a4) * t) + a3) * t + a2) * t + a1) * t * math.exp(-x * x)
    return sign * y


def detect_outliers_chauvenets(values: Sequence[Number]) -> ChauvenetResult:
    """Chauvenet's criterion: reject a value when ``P(|Z| >= z) < 1/(2n)``.

    Uses the sample standard deviation. With fewer than four values or zero
    spread nothing is rejected and every probability is 1.
    """
    arr = _as_array(values)
    n = int(arr.size)
    threshold = 1.0 / (2 * n) if n else 0.0

    std = standard_deviation(arr, use_sample_correction=True)
    if n < MIN_OUTLIER_SAMPLE or std == 0:
        return ChauvenetResult(
            probabilities=[1.0] * n,
            outlier_indices=[],
            non_outlier_indices=list(range(n)),
            rejection_threshold=threshold,
        )

    avg = float(np.mean(arr))
    probabilities = [1.0 - erf((abs(v - avg) / std) / math.sqrt(2)) for v in arr.tolist()]
    outliers = [i for i, prob in enumerate(probabilities) if prob < threshold]
    flagged = set(outliers)
    return ChauvenetResult(
        probabilities=probabilities,
        outlier_indices=outliers,
        non_outlier_indices=[i for i in range(n) if i not in flagged],
        rejection_threshold=threshold,
    )


def _getter(key: Union[str, Callable[[Any], Number]]) -> Callable[[Any], Number]:
    if callable(key):
        return key

    def get(item: Any) -> Number:
        if isinstance(item, dict):
            return item[key]
        return getattr(item, key)

    return get


def weighted_average(
    items: Sequence[Any],
    value_key: Union[str, Callable[[Any], Number]],
    weight_key: Union[str, Callable[[Any], Number]],
) -> float:
    """Sum(value * weight) / Sum(weight) over items; 0 when total weight is 0.

    Keys may be attribute / dict key names or accessor callables.
    """
    if not items:
        return 0.0

    get_value = _getter(value_key)
    get_weight = _getter(weight_key)
    values = np.array([float(get_value(item)) for item in items])
    weights = np.array([float(get_weight(item)) for item in items])

    total_weight = float(weights.sum())
    if total_weight == 0:
        return 0.0
    return float((values * weights).sum() / total_weight)


def coefficient_of_variation(values: Sequence[Number]) -> float:
    """Population standard deviation over mean; 0 when the mean is 0."""
    avg = mean(values)
    if avg == 0:
        return 0.0
    return standard_deviation(values) / avg


def weighted_coefficient_of_variation(values: Sequence[Number], weights: Sequence[Number]) -> float:
    """Weighted standard deviation over weighted mean.

    0 when the values are empty, the total weight is 0 or the weighted mean is 0.
    """
    arr = _as_array(values)
    w = _as_array(weights)
    if arr.size == 0 or arr.size != w.size or float(w.sum()) == 0:
        return 0.0

    avg = float(np.average(arr, weights=w))
    if avg == 0:
        return 0.0
    variance = float(np.average((arr - avg) ** 2, weights=w))
    return math.sqrt(variance) / avg


def confidence_blend(value1: float, confidence1: float, value2: float, confidence2: float) -> float:
    """Confidence-weighted average of two values.

    When one confidence is 0 the other value is returned unchanged.
    """
    if confidence1 == 0:
        return value2
    if confidence2 == 0:
        return value1

    total = confidence1 + confidence2
    return value1 * (confidence1 / total) + value2 * (confidence2 / total)


def confidence_range_blend(range1: ConfidenceRange, range2: ConfidenceRange) -> ConfidenceRange:
    """Blend two ranges bound by bound via ``confidence_blend``.

    The two estimates are treated as independent evidence, so the combined
    confidence ``min(1, c1 + c2 * (1 - c1))`` is never below either input.
    """
    if range1.confidence == 0:
        return range2
    if range2.confidence == 0:
        return range1

    low = confidence_blend(range1.low, range1.confidence, range2.low, range2.confidence)
    high = confidence_blend(range1.high, range1.confidence, range2.high, range2.confidence)
    confidence = min(1.0, range1.confidence + range2.confidence * (1 - range1.confidence))
    return ConfidenceRange(low=low, high=high, confidence=confidence)
