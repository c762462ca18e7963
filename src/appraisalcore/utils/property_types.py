"""
Property Type Utilities

Maps the many property type spellings supplied by data providers onto the
six consolidated categories used by the valuation engine.
"""

from typing import List, Optional

from appraisalcore.core.constants import (
    PROPERTY_TYPE_APARTMENT,
    PROPERTY_TYPE_COMMERCIAL,
    PROPERTY_TYPE_HOUSE,
    PROPERTY_TYPE_LAND,
    PROPERTY_TYPE_OTHER,
    PROPERTY_TYPE_TOWNHOUSE,
    PROPERTY_TYPES,
)
from appraisalcore.logging_config import get_logger

logger = get_logger(__name__)

# Maps raw provider property types to consolidated categories
PROPERTY_TYPE_MAP = {
    # House types
    "house": PROPERTY_TYPE_HOUSE,
    "free-standing": PROPERTY_TYPE_HOUSE,
    "duplex": PROPERTY_TYPE_HOUSE,
    "semi-detached": PROPERTY_TYPE_HOUSE,
    "terrace": PROPERTY_TYPE_HOUSE,
    "villa": PROPERTY_TYPE_HOUSE,
    "acreage": PROPERTY_TYPE_HOUSE,
    "lifestyle": PROPERTY_TYPE_HOUSE,
    # Apartment types
    "apartment": PROPERTY_TYPE_APARTMENT,
    "unit": PROPERTY_TYPE_APARTMENT,
    "apartment-unit-flat": PROPERTY_TYPE_APARTMENT,
    "studio": PROPERTY_TYPE_APARTMENT,
    "penthouse": PROPERTY_TYPE_APARTMENT,
    "pent-house": PROPERTY_TYPE_APARTMENT,
    "flat": PROPERTY_TYPE_APARTMENT,
    # Townhouse types
    "townhouse": PROPERTY_TYPE_TOWNHOUSE,
    "town-house": PROPERTY_TYPE_TOWNHOUSE,
    # Land types
    "land": PROPERTY_TYPE_LAND,
    "section": PROPERTY_TYPE_LAND,
    "vacant-land": PROPERTY_TYPE_LAND,
    "bare land": PROPERTY_TYPE_LAND,
    "development-site": PROPERTY_TYPE_LAND,
    # Commercial types
    "commercial": PROPERTY_TYPE_COMMERCIAL,
    "retail": PROPERTY_TYPE_COMMERCIAL,
    "office": PROPERTY_TYPE_COMMERCIAL,
    "industrial": PROPERTY_TYPE_COMMERCIAL,
    # Other types
    "other": PROPERTY_TYPE_OTHER,
    "retirement": PROPERTY_TYPE_OTHER,
}


def consolidate_property_type(prop_type: Optional[str]) -> Optional[str]:
    """Map a raw property type to its consolidated category.

    A missing type stays missing so that the type comparison can be skipped;
    an unrecognised one becomes "other".

    Example:
        >>> consolidate_property_type("Apartment-Unit-Flat")
        "apartment"
        >>> consolidate_property_type("section")
        "land"
        >>> consolidate_property_type(None) is None
        True
    """
    if prop_type is None:
        return None

    prop_type_lower = str(prop_type).lower().strip()
    if not prop_type_lower:
        return None

    consolidated = PROPERTY_TYPE_MAP.get(prop_type_lower)
    if consolidated is None:
        logger.debug("Unrecognised property type %r, treating as other", prop_type)
        return PROPERTY_TYPE_OTHER
    return consolidated


def get_property_categories() -> List[str]:
    """Get the consolidated property categories."""
    return list(PROPERTY_TYPES)
