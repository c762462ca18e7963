"""
AVM estimate normalisation.

Resolves a third-party AVM into a confidence-bearing range: numeric
confidence wins over a provider label, and a missing range is derived from
the confidence (tighter for more confident estimates).
"""

from typing import Optional

from appraisalcore.core.constants import (
    AVM_CONFIDENCE_LABELS,
    AVM_RANGE_SPREADS,
    DEFAULT_AVM_CONFIDENCE,
    DEFAULT_AVM_RANGE_SPREAD,
)
from appraisalcore.core.models import AVMEstimate
from appraisalcore.logging_config import get_logger
from appraisalcore.stats import ConfidenceRange

logger = get_logger(__name__)


def resolve_avm_confidence(avm: AVMEstimate) -> float:
    """Numeric confidence for an AVM estimate.

    Example:
        >>> resolve_avm_confidence(AVMEstimate(value=800000, confidence_label="High"))
        0.9
    """
    if avm.confidence is not None:
        return avm.confidence
    if avm.confidence_label:
        return AVM_CONFIDENCE_LABELS.get(avm.confidence_label.strip().lower(), DEFAULT_AVM_CONFIDENCE)
    return DEFAULT_AVM_CONFIDENCE


def derived_range_spread(confidence: float) -> float:
    """Half-width of a derived AVM range: 5%, 8% or 12% by confidence."""
    for minimum, spread in AVM_RANGE_SPREADS:
        if confidence >= minimum:
            return spread
    return DEFAULT_AVM_RANGE_SPREAD


def avm_range(avm: AVMEstimate, weight: Optional[float] = None) -> ConfidenceRange:
    """Confidence range for an AVM estimate.

    Args:
        avm: The AVM estimate.
        weight: Optional 0-1 scale applied to the AVM's confidence.

    Returns:
        ConfidenceRange with ``low <= value <= high``.
    """
    confidence = resolve_avm_confidence(avm)

    low, high = avm.low, avm.high
    if not low or not high:
        spread = derived_range_spread(confidence)
        low = avm.value * (1 - spread)
        high = avm.value * (1 + spread)
        logger.debug("AVM range derived at +/-%.0f%%", spread * 100)

    if weight is not None:
        confidence *= weight

    return ConfidenceRange(
        low=min(low, avm.value),
        high=max(high, avm.value),
        confidence=confidence,
    )
