"""
Price Adjustments for Comparable Sales

Turns each priced comparable's sale price into an estimate of what it would
have sold for had it matched the subject property, today:

    adjusted_price = sale_price * adjustment_factor

The factor starts at 1.0. Attribute differences (bedrooms, bathrooms, land,
floor area, car spaces, condition, style, walls, age) add signed deltas; a
property type mismatch multiplies by 0.9; sale recency and seasonality then
add their deltas; location finally multiplies (0.95 for another suburb,
0.9 for another city).

A dimension is skipped whenever the subject or the comparable lacks the
attribute it needs. Missing values are never replaced by defaults.
"""

from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from appraisalcore.config import get_config
from appraisalcore.core.constants import (
    BATHROOM_RATE,
    BEDROOM_STEP_RATES,
    CAR_SPACE_RATE,
    CONDITION_QUALITY,
    CONDITION_WEIGHT,
    DEFAULT_CONDITION_QUALITY,
    DIFFERENT_CITY_MULTIPLIER,
    DIFFERENT_SUBURB_MULTIPLIER,
    PREMIUM_STYLE_ADJUSTMENT,
    PREMIUM_STYLES,
    PREMIUM_WALL_ADJUSTMENT,
    PREMIUM_WALL_MATERIALS,
    PROPERTY_TYPE_MISMATCH_MULTIPLIER,
    SEASONAL_FACTORS,
)
from appraisalcore.core.models import (
    AdjustmentFactors,
    ComparableSale,
    MarketStatistics,
    SubjectProperty,
)
from appraisalcore.logging_config import get_logger
from appraisalcore.stats import mean
from appraisalcore.utils.date_parser import months_between

logger = get_logger(__name__)


@dataclass
class PriceAdjustmentOptions:
    """Toggles for the optional adjustment dimensions."""

    consider_condition: bool = True
    consider_architectural_style: bool = True
    consider_construction_materials: bool = True
    consider_location_factors: bool = True
    consider_market_trends: bool = True
    seasonal_adjustment: bool = True


@dataclass
class PriceAdjustmentResult:
    """Adjusted comparables plus the explanatory factor summary."""

    adjusted_comparables: List[ComparableSale]
    adjustment_factors: AdjustmentFactors = field(default_factory=AdjustmentFactors)


def bedroom_adjustment(difference: int) -> float:
    """Diminishing value per bedroom: 1st 5%, 2nd 4%, 3rd and later 3% each."""
    total = 0.0
    for step in range(abs(difference)):
        total += BEDROOM_STEP_RATES[min(step, len(BEDROOM_STEP_RATES) - 1)]
    return total if difference >= 0 else -total


def condition_quality(label: str) -> float:
    """Quality score for a condition label, Average (0.7) when unrecognised."""
    return CONDITION_QUALITY.get(label.strip().lower(), DEFAULT_CONDITION_QUALITY)


def _has_keyword(text: str, keywords: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def _premium_delta(subject_premium: bool, comp_premium: bool, rate: float) -> float:
    if subject_premium and not comp_premium:
        return rate
    if comp_premium and not subject_premium:
        return -rate
    return 0.0


def age_adjustment(subject_year: int, comp_year: int) -> float:
    """Non-linear year-built adjustment.

    - Subject built 2010+: +0.5%/year for an older comparable, capped at 10%.
    - Subject 1990-2009: +0.2%/year (cap 5%) for a pre-1990 comparable,
      -0.5%/year (floor -10%) for a 2010+ comparable.
    - Subject pre-1950 (character): +5% for a 1950-1999 comparable,
      nothing for any other.
    - Otherwise 0.3% per year of difference.
    """
    difference = subject_year - comp_year

    if subject_year >= 2010:
        if comp_year < 2010:
            return min(0.10, difference * 0.005)
        return 0.0
    if subject_year >= 1990:
        if comp_year < 1990:
            return min(0.05, difference * 0.002)
        if comp_year >= 2010:
            return max(-0.10, difference * 0.005)
        return 0.0
    if subject_year < 1950:
        if 1950 <= comp_year < 2000:
            return 0.05
        return 0.0
    return difference * 0.003


def monthly_growth_rate(
    market_stats: Optional[MarketStatistics],
    consider_market_trends: bool = True,
) -> float:
    """Monthly growth ``(1 + annual)^(1/12) - 1`` from market statistics.

    Falls back to the configured default (0.4%/month) without statistics.
    """
    if consider_market_trends and market_stats is not None and market_stats.annual_growth is not None:
        return (1 + market_stats.annual_growth) ** (1 / 12) - 1
    return get_config().valuation.default_monthly_growth


def _same_text(a: str, b: str) -> bool:
    return a.strip().lower() == b.strip().lower()


def _adjust_one(
    comp: ComparableSale,
    subject: SubjectProperty,
    market_stats: Optional[MarketStatistics],
    options: PriceAdjustmentOptions,
    reference_date: datetime,
    impacts: Dict[str, List[float]],
) -> ComparableSale:
    price = float(comp.sale_price)
    adjustment_config = get_config().adjustment
    breakdown: Dict[str, float] = {}
    factor = 1.0

    if subject.bedrooms is not None and comp.bedrooms is not None:
        difference = subject.bedrooms - comp.bedrooms
        delta = bedroom_adjustment(difference)
        factor += delta
        breakdown["bedrooms"] = delta
        if difference != 0:
            impacts["bedroom_value"].append(price * delta / difference)

    if subject.bathrooms is not None and comp.bathrooms is not None:
        delta = (subject.bathrooms - comp.bathrooms) * BATHROOM_RATE
        factor += delta
        breakdown["bathrooms"] = delta
        impacts["bathroom_value"].append(price * BATHROOM_RATE)

    same_type = subject.property_type is not None and comp.property_type == subject.property_type

    if subject.land_size is not None and comp.land_size is not None and comp.land_size > 0:
        rate = (
            adjustment_config.land_size_factor(subject.property_type)
            if same_type
            else adjustment_config.default_land_size_factor
        )
        delta = (subject.land_size / comp.land_size - 1) * rate
        factor += delta
        breakdown["land_size"] = delta
        impacts["land_size_value"].append(price * rate / comp.land_size)

    if subject.floor_area is not None and comp.floor_area is not None and comp.floor_area > 0:
        rate = (
            adjustment_config.floor_area_factor(subject.property_type)
            if same_type
            else adjustment_config.default_floor_area_factor
        )
        delta = (subject.floor_area / comp.floor_area - 1) * rate
        factor += delta
        breakdown["floor_area"] = delta
        impacts["floor_area_value"].append(price * rate / comp.floor_area)

    if subject.car_spaces is not None and comp.car_spaces is not None:
        delta = (subject.car_spaces - comp.car_spaces) * CAR_SPACE_RATE
        factor += delta
        breakdown["car_spaces"] = delta
        impacts["car_space_value"].append(price * CAR_SPACE_RATE)

    if options.consider_condition and subject.condition and comp.condition:
        difference = condition_quality(subject.condition) - condition_quality(comp.condition)
        delta = difference * CONDITION_WEIGHT
        factor += delta
        breakdown["condition"] = delta
        if difference != 0:
            impacts["condition_factor"].append(price * CONDITION_WEIGHT)

    if options.consider_architectural_style and subject.architectural_style and comp.architectural_style:
        delta = _premium_delta(
            _has_keyword(subject.architectural_style, PREMIUM_STYLES),
            _has_keyword(comp.architectural_style, PREMIUM_STYLES),
            PREMIUM_STYLE_ADJUSTMENT,
        )
        factor += delta
        breakdown["architectural_style"] = delta
        if delta:
            impacts["architectural_style_factor"].append(price * PREMIUM_STYLE_ADJUSTMENT)

    subject_walls = subject.construction_materials.walls if subject.construction_materials else None
    comp_walls = comp.construction_materials.walls if comp.construction_materials else None
    if options.consider_construction_materials and subject_walls and comp_walls:
        delta = _premium_delta(
            _has_keyword(subject_walls, PREMIUM_WALL_MATERIALS),
            _has_keyword(comp_walls, PREMIUM_WALL_MATERIALS),
            PREMIUM_WALL_ADJUSTMENT,
        )
        factor += delta
        breakdown["construction_materials"] = delta
        if delta:
            impacts["construction_materials_factor"].append(price * PREMIUM_WALL_ADJUSTMENT)

    if subject.year_built is not None and comp.year_built is not None:
        delta = age_adjustment(subject.year_built, comp.year_built)
        factor += delta
        breakdown["year_built"] = delta
        if delta:
            years = max(1, abs(subject.year_built - comp.year_built))
            impacts["age_adjustment"].append(price * delta / years)

    if subject.property_type is not None and comp.property_type is not None and not same_type:
        factor *= PROPERTY_TYPE_MISMATCH_MULTIPLIER
        breakdown["property_type"] = PROPERTY_TYPE_MISMATCH_MULTIPLIER

    if comp.sale_date is not None:
        # Future-dated sales get no growth
        months = max(0, months_between(comp.sale_date, reference_date))
        delta = months * monthly_growth_rate(market_stats, options.consider_market_trends)
        factor += delta
        breakdown["market_trend"] = delta
        impacts["market_trend_factor"].append(price * delta)

        if options.seasonal_adjustment:
            delta = (
                SEASONAL_FACTORS[reference_date.month - 1]
                - SEASONAL_FACTORS[comp.sale_date.month - 1]
            )
            factor += delta
            breakdown["seasonal"] = delta
            impacts["seasonal_factor"].append(price * delta)

    if options.consider_location_factors:
        location = 1.0
        if subject.suburb and comp.suburb and not _same_text(subject.suburb, comp.suburb):
            location *= DIFFERENT_SUBURB_MULTIPLIER
        if subject.city and comp.city and not _same_text(subject.city, comp.city):
            location *= DIFFERENT_CITY_MULTIPLIER
        if location != 1.0:
            factor *= location
            breakdown["location"] = location
            impacts["location_factor"].append(price * (1 - location))

    logger.debug("Comparable %s: factor %.4f from %s", comp.id or comp.address, factor, breakdown)

    return replace(
        comp,
        adjustment_factor=factor,
        adjusted_price=price * factor,
        adjustment_breakdown=breakdown,
    )


def calculate_adjusted_prices(
    comparables: Sequence[ComparableSale],
    subject: SubjectProperty,
    market_stats: Optional[MarketStatistics] = None,
    options: Optional[PriceAdjustmentOptions] = None,
    reference_date: Optional[datetime] = None,
) -> PriceAdjustmentResult:
    """Adjust every priced comparable towards the subject property.

    Args:
        comparables: Comparable sales, typically already outlier-scored.
        subject: The property being valued.
        market_stats: Optional market statistics for the growth rate.
        options: Dimension toggles (all on by default).
        reference_date: "Today" for recency and seasonality.

    Returns:
        PriceAdjustmentResult with new comparable records (``adjustment_factor``,
        ``adjusted_price`` and ``adjustment_breakdown`` populated) and the
        average per-dimension dollar impact. Unpriced comparables come back with
        factor 1.0 and no adjusted price. The breakdown holds additive deltas,
        except ``property_type`` and ``location`` which hold multipliers.
    """
    options = options or PriceAdjustmentOptions()
    if reference_date is None:
        reference_date = datetime.now()

    impacts: Dict[str, List[float]] = defaultdict(list)
    adjusted = []
    for comp in comparables:
        if not comp.has_price:
            adjusted.append(replace(
                comp, adjustment_factor=1.0, adjusted_price=None, adjustment_breakdown={}
            ))
            continue
        adjusted.append(_adjust_one(comp, subject, market_stats, options, reference_date, impacts))

    factors = AdjustmentFactors(**{name: mean(values) for name, values in impacts.items()})
    return PriceAdjustmentResult(adjusted_comparables=adjusted, adjustment_factors=factors)
