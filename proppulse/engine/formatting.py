"""
Display formatting for derived metrics.

Numbers stay numeric inside the engine; this module renders them as the
strings the browser client shows ("$2,850,000", "6.2%", "8,400") and is
only called at the HTTP boundary.
"""

from proppulse.models import (
    ComparableProperty,
    DisplayComparable,
    DisplayMarketInsights,
    MarketInsights,
    PropertyDataResponse,
    PropertyMetrics,
)


def format_currency(amount: int) -> str:
    return f"${amount:,}"


def format_percent(value: float) -> str:
    """One decimal place and a trailing percent sign."""
    return f"{value:.1f}%"


def format_count(value: int) -> str:
    return f"{value:,}"


def format_occupancy(value: float) -> str:
    # Whole-number occupancies render without a decimal ("98%").
    if float(value).is_integer():
        return f"{int(value)}%"
    return format_percent(value)


def _display_market_insights(insights: MarketInsights) -> DisplayMarketInsights:
    return DisplayMarketInsights(
        market_trend=insights.market_trend,
        market_score=insights.market_score,
        rent_growth=format_percent(insights.rent_growth),
        vacancy_rate=format_percent(insights.vacancy_rate),
        occupancy_rate=format_percent(insights.occupancy_rate),
        cap_rate_trend=insights.cap_rate_trend,
        market_outlook=insights.market_outlook,
        key_drivers=list(insights.key_drivers),
    )


def _display_comparable(comp: ComparableProperty) -> DisplayComparable:
    return DisplayComparable(
        address=comp.address,
        price=format_currency(comp.price),
        cap_rate=format_percent(comp.cap_rate),
        distance=f"{comp.distance_miles:.1f} mi",
        sqft=format_count(comp.square_footage),
        year_built=str(comp.year_built),
        occupancy=format_occupancy(comp.occupancy),
    )


def to_display(metrics: PropertyMetrics) -> PropertyDataResponse:
    """Render a PropertyMetrics as its display-formatted HTTP payload."""
    return PropertyDataResponse(
        property_value=format_currency(metrics.property_value),
        cap_rate=format_percent(metrics.cap_rate),
        cash_on_cash=format_percent(metrics.cash_on_cash),
        irr=format_percent(metrics.irr),
        noi=format_currency(metrics.noi),
        debt_service=format_currency(metrics.debt_service),
        cash_flow=format_currency(metrics.cash_flow),
        ltv=format_occupancy(metrics.ltv),
        down_payment=format_currency(metrics.down_payment),
        loan_amount=format_currency(metrics.loan_amount),
        units=str(metrics.units),
        square_footage=format_count(metrics.square_footage),
        build_year=str(metrics.build_year),
        walk_score=str(metrics.walk_score),
        ai_reasoning=metrics.ai_reasoning,
        recommendations=list(metrics.recommendations),
        risks=list(metrics.risks),
        market_insights=_display_market_insights(metrics.market_insights),
        comparable_properties=[_display_comparable(c) for c in metrics.comparable_properties],
        data_sources=list(metrics.data_sources),
        ai_insights=metrics.ai_insights,
        data_origin=metrics.data_origin,
    )
