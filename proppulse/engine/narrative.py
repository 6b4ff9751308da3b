"""
Qualitative artifacts for derived property metrics.

Builds the narrative reasoning, recommendation and risk lists, market
insights, comparables and provenance records that accompany every
PropertyMetrics. All builders are pure templating over already computed
numbers; only ``build_data_sources`` reads the calendar.
"""

import re
from datetime import date
from typing import Optional

from proppulse.config import DerivationConfig
from proppulse.models import (
    AIInsights,
    ComparableProperty,
    DataSource,
    MarketInsights,
)
from proppulse.upstream.schema import PropertyAttributes


# =============================================================================
# Templates
# =============================================================================

STANDING_RECOMMENDATIONS = (
    "Consider value-add improvements to increase rents",
    "Negotiate favorable financing terms",
    "Implement efficient property management",
)

FALLBACK_RECOMMENDATION = "Monitor local market trends and regulations"

STANDING_RISKS = (
    "Rent control regulations may limit rent increases",
    "Rising property taxes and insurance premiums may compress NOI",
)

CALIFORNIA_RISKS = (
    "High property taxes in California",
    "Potential earthquake insurance costs",
)

FALLBACK_RISK = "Market volatility in certain neighborhoods"

# (street, price factor, cap-rate factor, distance mi, size factor, year offset, occupancy %)
COMPARABLE_TEMPLATES = (
    ("1234 Main St", 1.12, 0.94, 0.5, 1.15, 3, 98.0),
    ("5678 Oak Ave", 1.03, 0.98, 1.2, 1.05, 1, 96.0),
    ("9012 Park Blvd", 1.21, 0.89, 0.8, 1.25, 5, 99.0),
)

AI_INSIGHTS = AIInsights(
    market_analysis=(
        "Market fundamentals show limited supply and steady demand. Property-level "
        "records support reliable valuation metrics."
    ),
    investment_thesis=(
        "This property offers attractive risk-adjusted returns with good appreciation "
        "prospects for the location."
    ),
    risk_assessment=(
        "Primary risks include regulatory changes, property tax increases, and market "
        "volatility."
    ),
    exit_strategy=(
        "Consider a 5-7 year hold period with potential refinancing opportunities. Exit "
        "through sale to institutional buyers or 1031 exchange."
    ),
    value_add_opportunities=(
        "Implement energy efficiency upgrades to reduce operating costs",
        "Add amenities to increase rental rates",
        "Optimize unit mix for better market positioning",
        "Consider short-term rental potential for premium units",
    ),
)

_CALIFORNIA_PATTERN = re.compile(r"\b(ca|california|los angeles|san francisco|san diego)\b")


def is_california(location: str) -> bool:
    return bool(_CALIFORNIA_PATTERN.search(location.lower()))


# =============================================================================
# Builders
# =============================================================================


def build_ai_reasoning(
    location: str,
    cap_rate: float,
    cash_on_cash: float,
    irr: float,
    config: DerivationConfig,
    property_type: Optional[str] = None,
    live: bool = False,
) -> str:
    quality = "strong" if cap_rate >= config.strong_cap_rate else "moderate"
    cash_flow_quality = "excellent" if cash_on_cash >= config.excellent_cash_on_cash else "good"
    return_quality = "strong" if irr >= config.strong_irr else "stable"

    subject = f"This {property_type} property" if property_type else "This property"
    text = (
        f"{subject} in {location} shows {quality} fundamentals with a {cap_rate:.1f}% "
        f"cap rate. The location provides {cash_flow_quality} cash-on-cash returns and "
        f"{return_quality} total return potential."
    )
    if live:
        text += (
            " The analysis draws on ATTOM property, assessment and sales-trend records "
            "covering 150+ million properties nationwide."
        )
    return text


def build_recommendations(
    attrs: Optional[PropertyAttributes],
    build_year: int,
    config: DerivationConfig,
) -> tuple[str, ...]:
    recommendations = list(STANDING_RECOMMENDATIONS)
    if attrs is None:
        recommendations.append(FALLBACK_RECOMMENDATION)
    elif (
        attrs.assessed_value is not None
        and attrs.sale_price is not None
        and attrs.assessed_value < attrs.sale_price
    ):
        recommendations.append("Property may be overvalued - consider negotiation")

    if build_year < config.renovation_year_cutoff:
        recommendations.append("Consider renovation opportunities for older property")
    return tuple(recommendations)


def build_risks(location: str, attrs: Optional[PropertyAttributes]) -> tuple[str, ...]:
    risks = list(STANDING_RISKS)
    if is_california(location) or (attrs is not None and is_california(attrs.city)):
        risks.extend(CALIFORNIA_RISKS)

    if attrs is None:
        risks.append(FALLBACK_RISK)
    elif (
        attrs.assessed_value is not None
        and attrs.sale_price is not None
        and attrs.assessed_value > attrs.sale_price
    ):
        risks.append("Property may be undervalued - verify market conditions")
    return tuple(risks)


def build_market_insights(
    location: str,
    appreciation: Optional[float],
    config: DerivationConfig,
    live: bool,
) -> MarketInsights:
    """
    Submarket summary. Live records use the sales-trend appreciation for rent
    growth; fallback records use the configured fallback rent growth.
    """
    if live:
        trend = "Strong growth" if appreciation is not None and appreciation > 0 else "Stable market"
        rent_growth = appreciation if appreciation is not None else config.default_rent_growth
    else:
        trend = "Strong growth"
        rent_growth = config.fallback_rent_growth

    vacancy = config.default_vacancy_rate
    return MarketInsights(
        market_trend=trend,
        market_score="A-",
        rent_growth=round(rent_growth, 1),
        vacancy_rate=vacancy,
        occupancy_rate=round(100.0 - vacancy, 1),
        cap_rate_trend="Stable (-0.1% YoY)",
        market_outlook="Positive",
        key_drivers=(
            f"Limited housing supply in the {location} market",
            "Strong rental demand",
            "Transportation infrastructure improvements",
            "Economic recovery driving demand",
        ),
    )


def build_comparables(
    location: str,
    property_value: int,
    cap_rate: float,
    square_footage: int,
    build_year: int,
) -> tuple[ComparableProperty, ...]:
    return tuple(
        ComparableProperty(
            address=f"{street}, {location}",
            price=max(int(round(property_value * price_factor, -3)), 1),
            cap_rate=round(cap_rate * cap_factor, 1),
            distance_miles=distance,
            square_footage=int(round(square_footage * size_factor, -2)),
            year_built=build_year + year_offset,
            occupancy=occupancy,
        )
        for street, price_factor, cap_factor, distance, size_factor, year_offset, occupancy in (
            COMPARABLE_TEMPLATES
        )
    )


def build_data_sources(live: bool, today: Optional[date] = None) -> tuple[DataSource, ...]:
    """Provenance records stamped with the current date."""
    stamp = (today or date.today()).isoformat()
    if not live:
        return (
            DataSource(
                name="PropPulse Market Model",
                type="Estimated Data",
                last_updated=stamp,
                coverage="Location-keyed estimates used when provider data is unavailable",
                reliability="Estimated",
            ),
        )
    return (
        DataSource(
            name="ATTOM Data Solutions",
            type="Property Data",
            last_updated=stamp,
            coverage="150+ million properties across the United States",
            reliability="High",
        ),
        DataSource(
            name="County Assessor Records",
            type="Assessment Data",
            last_updated=stamp,
            coverage="Property assessments and tax records",
            reliability="High",
        ),
        DataSource(
            name="MLS Data",
            type="Sales Data",
            last_updated=stamp,
            coverage="Recent sales and market trends",
            reliability="High",
        ),
    )
