"""
Utility modules for the Appraisal Valuation Core.

Provides unified implementations for common parsing operations.
"""

from appraisalcore.utils.date_parser import (
    parse_date,
    parse_to_iso,
    months_between,
)
from appraisalcore.utils.property_types import (
    consolidate_property_type,
    get_property_categories,
    PROPERTY_TYPE_MAP,
)

__all__ = [
    "parse_date",
    "parse_to_iso",
    "months_between",
    "consolidate_property_type",
    "get_property_categories",
    "PROPERTY_TYPE_MAP",
]
