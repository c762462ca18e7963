"""
Shared Constants for the Appraisal Valuation Core

Read-only lookup tables used by the outlier detector, the price adjuster and
the orchestrator.
"""

from types import MappingProxyType
from typing import Mapping, Tuple

# Consolidated property types
PROPERTY_TYPE_HOUSE: str = "house"
PROPERTY_TYPE_APARTMENT: str = "apartment"
PROPERTY_TYPE_TOWNHOUSE: str = "townhouse"
PROPERTY_TYPE_LAND: str = "land"
PROPERTY_TYPE_COMMERCIAL: str = "commercial"
PROPERTY_TYPE_OTHER: str = "other"

PROPERTY_TYPES: Tuple[str, ...] = (
    PROPERTY_TYPE_HOUSE,
    PROPERTY_TYPE_APARTMENT,
    PROPERTY_TYPE_TOWNHOUSE,
    PROPERTY_TYPE_LAND,
    PROPERTY_TYPE_COMMERCIAL,
    PROPERTY_TYPE_OTHER,
)

# Outlier detection method labels
METHOD_IQR: str = "IQR"
METHOD_MODIFIED_Z: str = "ModifiedZ"
METHOD_CHAUVENETS: str = "Chauvenets"
METHOD_COMBINED: str = "Combined"
METHOD_NONE: str = "none"

OUTLIER_METHODS: Tuple[str, ...] = (
    METHOD_IQR,
    METHOD_MODIFIED_Z,
    METHOD_CHAUVENETS,
    METHOD_COMBINED,
)

# Modified Z-score normalisation (MAD -> standard deviation under normality)
MODIFIED_Z_CONSTANT: float = 0.6745

# IQR fence multiplier applied on top of the sensitivity factor
IQR_FENCE_MULTIPLIER: float = 1.5

# Minimum priced sample for any outlier test
MIN_OUTLIER_SAMPLE: int = 4

# Context-aware grouping
CONTEXT_SUBJECT_GROUP_SENSITIVITY: float = 1.5
CONTEXT_OTHER_GROUP_SENSITIVITY: float = 1.2
BEDROOM_GROUP_MIN: int = 1
BEDROOM_GROUP_MAX: int = 5
LAND_SIZE_SMALL_MAX: float = 500.0
LAND_SIZE_MEDIUM_MAX: float = 1000.0
UNKNOWN_GROUP: str = "unknown"

# Condition label -> quality score
CONDITION_QUALITY: Mapping[str, float] = MappingProxyType({
    "excellent": 1.0,
    "very good": 0.9,
    "good": 0.8,
    "average": 0.7,
    "fair": 0.6,
    "poor": 0.5,
    "very poor": 0.4,
    "derelict": 0.3,
})
DEFAULT_CONDITION_QUALITY: float = 0.7
CONDITION_WEIGHT: float = 0.2

# Premium keyword lists (substring match)
PREMIUM_STYLES: Tuple[str, ...] = ("Character", "Heritage", "Architect Designed")
PREMIUM_WALL_MATERIALS: Tuple[str, ...] = ("Brick", "Stone", "Concrete", "Solid")
PREMIUM_STYLE_ADJUSTMENT: float = 0.03
PREMIUM_WALL_ADJUSTMENT: float = 0.02

# Per-unit adjustment rates
BEDROOM_STEP_RATES: Tuple[float, ...] = (0.05, 0.04, 0.03)  # 1st, 2nd, 3rd+
BATHROOM_RATE: float = 0.035
CAR_SPACE_RATE: float = 0.025

# Property type / location multipliers
PROPERTY_TYPE_MISMATCH_MULTIPLIER: float = 0.9
DIFFERENT_SUBURB_MULTIPLIER: float = 0.95
DIFFERENT_CITY_MULTIPLIER: float = 0.9

# Monthly seasonal factors, January first (Southern Hemisphere:
# peak Oct-Feb, low May-Aug)
SEASONAL_FACTORS: Tuple[float, ...] = (
    0.01,   # Jan
    0.01,   # Feb
    0.0,    # Mar
    -0.01,  # Apr
    -0.02,  # May
    -0.03,  # Jun
    -0.03,  # Jul
    -0.02,  # Aug
    -0.01,  # Sep
    0.01,   # Oct
    0.02,   # Nov
    0.02,   # Dec
)

# AVM confidence labels
AVM_CONFIDENCE_LABELS: Mapping[str, float] = MappingProxyType({
    "high": 0.9,
    "medium": 0.7,
    "moderate": 0.7,
    "low": 0.5,
})
DEFAULT_AVM_CONFIDENCE: float = 0.7

# Valuation approaches
APPROACH_COMPARABLE: str = "Comparable"
APPROACH_AVM: str = "AVM"
APPROACH_HYBRID: str = "Hybrid"

# Confidence levels, highest first
CONFIDENCE_LEVELS: Tuple[Tuple[float, str], ...] = (
    (0.85, "Very High"),
    (0.7, "High"),
    (0.5, "Moderate"),
    (0.3, "Low"),
)
LOWEST_CONFIDENCE_LEVEL: str = "Very Low"

# Overall confidence factor weights
CONFIDENCE_FACTOR_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "data_quality": 0.25,
    "comparable_count": 0.10,
    "comparable_similarity": 0.20,
    "outlier_impact": 0.15,
    "data_recency": 0.15,
    "market_volatility": 0.15,
    "avm_confidence": 0.15,
})
NEUTRAL_RECENCY_SCORE: float = 0.5
NEUTRAL_VOLATILITY_SCORE: float = 0.75
MARKET_VOLATILITY_SCALE: float = 10.0
FULL_SAMPLE_SIZE: int = 10

# Range multipliers by usable comparable count
LARGE_SAMPLE_SIZE: int = 10
SMALL_SAMPLE_SIZE: int = 3
LARGE_SAMPLE_RANGE_MULTIPLIER: float = 0.9
SMALL_SAMPLE_RANGE_MULTIPLIER: float = 1.2

# Market strength
MARKET_BUYER: str = "Buyer"
MARKET_NEUTRAL: str = "Neutral"
MARKET_SELLER: str = "Seller"
MIN_DATED_SALES_FOR_GROWTH: int = 5

# Derived AVM range spread by confidence, highest first
AVM_RANGE_SPREADS: Tuple[Tuple[float, float], ...] = (
    (0.85, 0.05),
    (0.6, 0.08),
)
DEFAULT_AVM_RANGE_SPREAD: float = 0.12
