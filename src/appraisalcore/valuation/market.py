"""
Market analysis reported alongside a valuation.
"""

from typing import Optional, Sequence, Tuple

import pandas as pd

from appraisalcore.config import get_config
from appraisalcore.core.constants import (
    MARKET_BUYER,
    MARKET_NEUTRAL,
    MARKET_SELLER,
    MIN_DATED_SALES_FOR_GROWTH,
)
from appraisalcore.core.models import ComparableSale, MarketAnalysis, MarketStatistics
from appraisalcore.logging_config import get_logger
from appraisalcore.stats import mean, median

logger = get_logger(__name__)


def estimate_growth_from_sales(
    comparables: Sequence[ComparableSale],
) -> Optional[Tuple[float, float]]:
    """Estimate (annual, quarterly) growth from dated adjusted sales.

    Averages adjusted prices per calendar month and compounds the average
    monthly change between the first and last month. Needs at least five
    dated sales spread over two or more months.
    """
    dated = [c for c in comparables if c.sale_date is not None and c.adjusted_price is not None]
    if len(dated) < MIN_DATED_SALES_FOR_GROWTH:
        return None

    frame = pd.DataFrame({
        "month": [pd.Period(c.sale_date, freq="M") for c in dated],
        "price": [c.adjusted_price for c in dated],
    })
    monthly = frame.groupby("month")["price"].mean().sort_index()
    if len(monthly) < 2:
        return None

    first_month, last_month = monthly.index[0], monthly.index[-1]
    months = (last_month - first_month).n
    first_price = float(monthly.iloc[0])
    if months <= 0 or first_price == 0:
        return None

    monthly_growth = (float(monthly.iloc[-1]) - first_price) / first_price / months
    annual = (1 + monthly_growth) ** 12 - 1
    quarterly = (1 + monthly_growth) ** 3 - 1
    return annual, quarterly


def market_strength(market_stats: MarketStatistics, annual_growth: float) -> str:
    """Buyer / Neutral / Seller characterisation of the market."""
    if market_stats.market_type:
        return market_stats.market_type

    if market_stats.demand_index is not None and market_stats.supply_index:
        ratio = market_stats.demand_index / market_stats.supply_index
        if ratio > 1.1:
            return MARKET_SELLER
        if ratio < 0.9:
            return MARKET_BUYER
        return MARKET_NEUTRAL

    if annual_growth > 0.08:
        return MARKET_SELLER
    if annual_growth < 0.02:
        return MARKET_BUYER
    return MARKET_NEUTRAL


def analyze_market(
    comparables: Sequence[ComparableSale],
    market_stats: Optional[MarketStatistics] = None,
) -> MarketAnalysis:
    """Summarise market context from statistics and adjusted comparables.

    Args:
        comparables: Price-adjusted comparables.
        market_stats: Optional suburb/city statistics.

    Returns:
        MarketAnalysis; statistics take precedence over values derived from
        the comparables.
    """
    adjusted_prices = [c.adjusted_price for c in comparables if c.adjusted_price is not None]

    median_price = None
    if market_stats is not None and market_stats.median_price is not None:
        median_price = market_stats.median_price
    elif adjusted_prices:
        median_price = median(adjusted_prices)

    per_sqm = [
        c.adjusted_price / c.floor_area
        for c in comparables
        if c.adjusted_price is not None and c.floor_area
    ]
    price_per_sqm = mean(per_sqm) if per_sqm else None

    annual_growth = None
    quarterly_growth = None
    if market_stats is not None:
        annual_growth = market_stats.annual_growth
        quarterly_growth = market_stats.quarterly_growth

    if annual_growth is None:
        estimated = estimate_growth_from_sales(comparables)
        if estimated is not None:
            annual_growth, estimated_quarterly = estimated
            if quarterly_growth is None:
                quarterly_growth = estimated_quarterly
            logger.debug("Annual growth estimated from sales: %.4f", annual_growth)
        else:
            annual_growth = get_config().valuation.default_annual_growth

    if quarterly_growth is None:
        quarterly_growth = (1 + annual_growth) ** 0.25 - 1

    return MarketAnalysis(
        median_price=median_price,
        price_per_sqm=price_per_sqm,
        annual_growth=annual_growth,
        quarterly_growth=quarterly_growth,
        sales_volume=market_stats.sales_volume if market_stats else None,
        days_on_market=market_stats.days_on_market if market_stats else None,
        market_strength=market_strength(market_stats, annual_growth) if market_stats else None,
    )
