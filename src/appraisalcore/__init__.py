"""
Appraisal Valuation Core

Values a residential property from comparable sales, an optional automated
valuation model (AVM) estimate and optional market statistics.

Main components:
- stats: numeric primitives (median, MAD, IQR, Chauvenet, blends)
- valuation.outliers: continuous outlier scoring of comparables
- valuation.adjustments: per-dimension price adjustment to the subject
- valuation.orchestrator: weighting, AVM blending and confidence scoring

Usage:
    from appraisalcore import value_property
    result = value_property({"subject_property": {...}, "comparable_properties": [...]})
"""

__version__ = "1.0.0"

from appraisalcore.config import get_config
from appraisalcore.logging_config import setup_logging
from appraisalcore.valuation.orchestrator import calculate_valuation, value_property

__all__ = [
    "__version__",
    "get_config",
    "setup_logging",
    "calculate_valuation",
    "value_property",
]
