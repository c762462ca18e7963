"""
Core modules for the Appraisal Valuation Core.

Contains data models and shared constants.
"""

from appraisalcore.core.constants import (
    OUTLIER_METHODS,
    PROPERTY_TYPES,
)
from appraisalcore.core.models import (
    AVMEstimate,
    ComparableSale,
    MarketStatistics,
    SubjectProperty,
    ValuationOptions,
    ValuationRequest,
    ValuationResult,
)

__all__ = [
    "OUTLIER_METHODS",
    "PROPERTY_TYPES",
    "AVMEstimate",
    "ComparableSale",
    "MarketStatistics",
    "SubjectProperty",
    "ValuationOptions",
    "ValuationRequest",
    "ValuationResult",
]
