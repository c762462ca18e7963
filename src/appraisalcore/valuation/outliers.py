"""
Outlier Detection for Comparable Sales

Scores every comparable with a continuous outlier score in [0, 1] (0 = not
an outlier) instead of a binary flag. Each detection method is a pure
function over the comparable list returning one ``OutlierScore`` per
comparable, selected through ``OUTLIER_STRATEGIES``. A context-aware pass
groups comparables by structural similarity so sales resembling the subject
are judged more leniently.

Comparables without a sale price always score 0 with method "none"; they are
left out of every statistical pool but kept in the returned list.
"""

from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from appraisalcore.config import get_config
from appraisalcore.core.constants import (
    BEDROOM_GROUP_MAX,
    BEDROOM_GROUP_MIN,
    CONTEXT_OTHER_GROUP_SENSITIVITY,
    CONTEXT_SUBJECT_GROUP_SENSITIVITY,
    IQR_FENCE_MULTIPLIER,
    LAND_SIZE_MEDIUM_MAX,
    LAND_SIZE_SMALL_MAX,
    METHOD_CHAUVENETS,
    METHOD_COMBINED,
    METHOD_IQR,
    METHOD_MODIFIED_Z,
    METHOD_NONE,
    MIN_OUTLIER_SAMPLE,
    UNKNOWN_GROUP,
)
from appraisalcore.core.models import ComparableSale, PropertyDetails, SubjectProperty
from appraisalcore.exceptions import ValidationError
from appraisalcore.logging_config import get_logger
from appraisalcore.stats import (
    detect_outliers_chauvenets,
    interquartile_range,
    modified_z_scores,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class OutlierScore:
    """Outlier score for one comparable and the method that produced it."""

    score: float = 0.0
    method: str = METHOD_NONE


NO_OUTLIER = OutlierScore()


@dataclass
class OutlierDetectionOptions:
    """Options for ``detect_outliers``.

    ``threshold`` defaults to the configured modified Z threshold.
    ``sensitivity_factor`` scales the 1.5 IQR fence multiplier.
    """

    method: str = METHOD_COMBINED
    threshold: Optional[float] = None
    sensitivity_factor: float = 1.0
    consider_property_attributes: bool = True


def _priced(comparables: Sequence[ComparableSale]) -> Tuple[List[int], List[float]]:
    """Positions and sale prices of comparables that carry a price."""
    positions = [i for i, comp in enumerate(comparables) if comp.has_price]
    return positions, [float(comparables[i].sale_price) for i in positions]


def _scored(label: str, score: float) -> OutlierScore:
    score = min(1.0, max(0.0, score))
    return OutlierScore(score=score, method=label if score > 0 else METHOD_NONE)


def detect_outliers_iqr(
    comparables: Sequence[ComparableSale],
    sensitivity_factor: float = IQR_FENCE_MULTIPLIER,
) -> List[OutlierScore]:
    """Score prices by their distance outside ``[Q1 - k*IQR, Q3 + k*IQR]``.

    The distance is normalised by half the fence width and capped at 1.
    Needs at least four priced comparables, otherwise every score is 0.
    """
    positions, prices = _priced(comparables)
    results = [NO_OUTLIER] * len(comparables)
    if len(prices) < MIN_OUTLIER_SAMPLE:
        return results

    quartiles = interquartile_range(prices)
    lower = quartiles.q1 - quartiles.iqr * sensitivity_factor
    upper = quartiles.q3 + quartiles.iqr * sensitivity_factor
    half_width = (upper - lower) / 2

    for position, price in zip(positions, prices):
        if price < lower:
            distance = lower - price
        elif price > upper:
            distance = price - upper
        else:
            continue
        # Collapsed fences (IQR of 0): anything outside them is a full outlier
        score = distance / half_width if half_width > 0 else 1.0
        results[position] = _scored(METHOD_IQR, score)

    return results


def detect_outliers_modified_z_score(
    comparables: Sequence[ComparableSale],
    threshold: float = 3.5,
) -> List[OutlierScore]:
    """Score ``min(1, (|z| - threshold) / threshold)`` where ``|z| > threshold``."""
    positions, prices = _priced(comparables)
    results = [NO_OUTLIER] * len(comparables)
    if len(prices) < MIN_OUTLIER_SAMPLE:
        return results

    for position, z in zip(positions, modified_z_scores(prices)):
        z = abs(z)
        if z > threshold:
            results[position] = _scored(METHOD_MODIFIED_Z, (z - threshold) / threshold)

    return results


def detect_outliers_chauvenets_method(comparables: Sequence[ComparableSale]) -> List[OutlierScore]:
    """Score by how far a price's tail probability falls below ``1/(2n)``."""
    positions, prices = _priced(comparables)
    results = [NO_OUTLIER] * len(comparables)
    if len(prices) < MIN_OUTLIER_SAMPLE:
        return results

    chauvenet = detect_outliers_chauvenets(prices)
    rejection = chauvenet.rejection_threshold
    for position, probability in zip(positions, chauvenet.probabilities):
        if probability < rejection:
            results[position] = _scored(METHOD_CHAUVENETS, (rejection - probability) / rejection)

    return results


def detect_outliers_combined(
    comparables: Sequence[ComparableSale],
    threshold: float = 3.5,
    sensitivity_factor: float = 1.0,
) -> List[OutlierScore]:
    """Maximum score across IQR, modified Z and Chauvenet per comparable.

    Ties go to the earlier method in that order.
    """
    per_method = (
        detect_outliers_iqr(comparables, sensitivity_factor * IQR_FENCE_MULTIPLIER),
        detect_outliers_modified_z_score(comparables, threshold),
        detect_outliers_chauvenets_method(comparables),
    )

    results = []
    for candidates in zip(*per_method):
        best = NO_OUTLIER
        for candidate in candidates:
            if candidate.score > best.score:
                best = candidate
        results.append(best)
    return results


def _run_primary(
    method: str,
    comparables: Sequence[ComparableSale],
    threshold: float,
    sensitivity_factor: float,
) -> List[OutlierScore]:
    strategy = OUTLIER_STRATEGIES.get(method)
    if strategy is None:
        raise ValidationError(f"Unknown outlier method: {method}", field="method", value=method)
    return strategy(comparables, threshold, sensitivity_factor)


OUTLIER_STRATEGIES: Dict[str, Callable[[Sequence[ComparableSale], float, float], List[OutlierScore]]] = {
    METHOD_IQR: lambda comps, threshold, k: detect_outliers_iqr(comps, k * IQR_FENCE_MULTIPLIER),
    METHOD_MODIFIED_Z: lambda comps, threshold, k: detect_outliers_modified_z_score(comps, threshold),
    METHOD_CHAUVENETS: lambda comps, threshold, k: detect_outliers_chauvenets_method(comps),
    METHOD_COMBINED: detect_outliers_combined,
}


def attribute_group_key(prop: PropertyDetails) -> str:
    """Grouping key ``type-bedrooms-landsize`` for context-aware detection.

    Bedrooms are clamped to 1-5; land size falls in small (<500m2),
    medium (<1000m2) or large buckets. Missing attributes become "unknown".
    """
    type_group = prop.property_type or UNKNOWN_GROUP

    if prop.bedrooms is None:
        bedroom_group = UNKNOWN_GROUP
    else:
        bedroom_group = str(min(BEDROOM_GROUP_MAX, max(BEDROOM_GROUP_MIN, prop.bedrooms)))

    if prop.land_size is None:
        size_group = UNKNOWN_GROUP
    elif prop.land_size < LAND_SIZE_SMALL_MAX:
        size_group = "small"
    elif prop.land_size < LAND_SIZE_MEDIUM_MAX:
        size_group = "medium"
    else:
        size_group = "large"

    return f"{type_group}-{bedroom_group}-{size_group}"


def detect_outliers_context_aware(
    comparables: Sequence[ComparableSale],
    subject: SubjectProperty,
    leniency: Optional[float] = None,
) -> List[OutlierScore]:
    """Run the IQR method separately inside each attribute group.

    The subject's own group uses the looser 1.5 sensitivity and has its
    scores reduced by ``leniency``; every other group uses 1.2.
    """
    if leniency is None:
        leniency = get_config().valuation.subject_group_leniency

    results = [NO_OUTLIER] * len(comparables)
    positions, _ = _priced(comparables)
    if not positions:
        return results

    subject_key = attribute_group_key(subject)
    frame = pd.DataFrame({
        "position": positions,
        "group": [attribute_group_key(comparables[i]) for i in positions],
    })

    for group_key, members in frame.groupby("group", sort=False):
        group_positions = members["position"].tolist()
        group = [comparables[i] for i in group_positions]
        is_subject_group = group_key == subject_key
        sensitivity = (
            CONTEXT_SUBJECT_GROUP_SENSITIVITY if is_subject_group else CONTEXT_OTHER_GROUP_SENSITIVITY
        )

        for position, scored in zip(group_positions, detect_outliers_iqr(group, sensitivity)):
            if is_subject_group:
                scored = _scored(METHOD_IQR, scored.score - leniency)
            results[position] = scored

        logger.debug(
            "Context group %s: %d comparables, subject group=%s",
            group_key, len(group_positions), is_subject_group,
        )

    return results


def detect_outliers(
    comparables: Sequence[ComparableSale],
    subject: SubjectProperty,
    options: Optional[OutlierDetectionOptions] = None,
) -> List[ComparableSale]:
    """Annotate comparables with outlier scores.

    Args:
        comparables: Comparable sales, priced or not.
        subject: The property being valued.
        options: Method selection and tuning.

    Returns:
        New comparable records with ``outlier_score`` and ``outlier_method``
        set, in the input order.
    """
    options = options or OutlierDetectionOptions()
    config = get_config().valuation
    threshold = options.threshold if options.threshold is not None else config.modified_z_threshold

    scores = _run_primary(options.method, comparables, threshold, options.sensitivity_factor)

    if options.consider_property_attributes:
        context_scores = detect_outliers_context_aware(comparables, subject)
        weight = (
            config.context_weight_combined
            if options.method == METHOD_COMBINED
            else config.context_weight_single
        )

        blended = []
        for primary, context in zip(scores, context_scores):
            score = primary.score * (1 - weight) + context.score * weight
            if score <= 0:
                blended.append(NO_OUTLIER)
                continue
            method = primary.method if primary.method != METHOD_NONE else context.method
            blended.append(OutlierScore(score=min(1.0, score), method=method))
        scores = blended

    annotated = [
        replace(comp, outlier_score=scored.score, outlier_method=scored.method)
        for comp, scored in zip(comparables, scores)
    ]

    flagged = sum(1 for scored in scores if scored.score > 0)
    logger.debug(
        "Outlier detection (%s): %d of %d comparables scored above 0",
        options.method, flagged, len(annotated),
    )
    return annotated
