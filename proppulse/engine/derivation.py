"""
Metric derivation engine.

Turns a location string, plus an optional normalized upstream record, into
a complete PropertyMetrics. Without an upstream record the numbers come from
a deterministic generator keyed by a hash of the location, so the same
location always yields the same metrics.

All functions are:
- Pure (no side effects)
- Deterministic in every numeric field
"""

import math
from typing import Optional

from proppulse.config import DEFAULT_DERIVATION_CONFIG, DerivationConfig
from proppulse.engine.narrative import (
    AI_INSIGHTS,
    build_ai_reasoning,
    build_comparables,
    build_data_sources,
    build_market_insights,
    build_recommendations,
    build_risks,
)
from proppulse.models import DataOrigin, PropertyMetrics
from proppulse.upstream.schema import PropertyAttributes


# =============================================================================
# Helpers
# =============================================================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


def location_hash(text: str) -> int:
    """
    Rolling hash ``h = h * 31 + unit`` over the UTF-16 code units of ``text``.

    The accumulator wraps to a signed 32-bit integer after every step, so the
    result is identical to the browser client's hash of the same string.
    """
    h = 0
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = _to_int32(h * 31 + unit)
    return h


def display_location(text: str) -> str:
    """Location text safe for narrative fields; unpaired surrogates become '?'."""
    return text.encode("utf-8", "replace").decode("utf-8")


def walk_score_for_city(city: str, config: DerivationConfig) -> int:
    """Base walk score plus fixed bonuses for matching city substrings."""
    lowered = city.lower()
    bonus = sum(
        points for needle, points in config.walk_score_city_bonuses.items() if needle in lowered
    )
    return min(config.walk_score_base + bonus, 100)


def financing_terms(
    property_value: int,
    noi: int,
    config: DerivationConfig,
) -> tuple[int, int, int, int]:
    """
    Down payment, loan amount, debt service and cash flow for a purchase.

    Returns:
        (down_payment, loan_amount, debt_service, cash_flow) where
        down_payment + loan_amount == property_value and
        cash_flow == noi - debt_service
    """
    down_payment = round_half_up(property_value * config.down_payment_fraction)
    loan_amount = property_value - down_payment
    debt_service = round_half_up(loan_amount * config.debt_service_rate)
    return down_payment, loan_amount, debt_service, noi - debt_service


# =============================================================================
# Live Path
# =============================================================================


def _derive_from_attributes(
    location: str,
    attrs: PropertyAttributes,
    config: DerivationConfig,
) -> PropertyMetrics:
    location = display_location(location)
    value = attrs.property_value

    annual_rent = (
        attrs.annual_rent if attrs.annual_rent is not None else value * config.imputed_rent_yield
    )
    expenses = annual_rent * config.expense_ratio
    noi_exact = annual_rent - expenses

    cap_rate = 100 * noi_exact / value
    cash_on_cash = 100 * noi_exact / (value * config.down_payment_fraction)
    appreciation = (
        attrs.appreciation_rate
        if attrs.appreciation_rate is not None
        else config.default_appreciation_rate
    )
    irr = max(cap_rate + appreciation + config.irr_premium, 0.0)

    noi = round_half_up(noi_exact)
    down_payment, loan_amount, debt_service, cash_flow = financing_terms(value, noi, config)

    return PropertyMetrics(
        property_value=value,
        cap_rate=cap_rate,
        cash_on_cash=cash_on_cash,
        irr=irr,
        noi=noi,
        debt_service=debt_service,
        cash_flow=cash_flow,
        ltv=round(100 * (1 - config.down_payment_fraction), 1),
        down_payment=down_payment,
        loan_amount=loan_amount,
        units=attrs.units,
        square_footage=attrs.square_footage,
        build_year=attrs.build_year,
        walk_score=walk_score_for_city(attrs.city, config),
        ai_reasoning=build_ai_reasoning(
            location,
            cap_rate,
            cash_on_cash,
            irr,
            config,
            property_type=attrs.property_type,
            live=True,
        ),
        recommendations=build_recommendations(attrs, attrs.build_year, config),
        risks=build_risks(location, attrs),
        market_insights=build_market_insights(
            location, attrs.appreciation_rate, config, live=True
        ),
        comparable_properties=build_comparables(
            location, value, cap_rate, attrs.square_footage, attrs.build_year
        ),
        data_sources=build_data_sources(live=True),
        ai_insights=AI_INSIGHTS,
        data_origin=DataOrigin.LIVE,
    )


# =============================================================================
# Deterministic Fallback
# =============================================================================


def fallback_base_values(location: str, config: DerivationConfig) -> dict[str, float]:
    """
    Base quantities for a location: ``base + (hash mod modulus) / divisor``.

    The modulus is always taken as a non-negative remainder.
    """
    h = location_hash(location)
    return {
        name: rng.base + (h % rng.modulus) / rng.divisor
        for name, rng in config.fallback_ranges.items()
    }


def generate_fallback_metrics(
    location: str,
    config: DerivationConfig = DEFAULT_DERIVATION_CONFIG,
) -> PropertyMetrics:
    """
    Build complete, plausible metrics from the location string alone.

    Every numeric field is a pure function of ``location``; only the
    ``last_updated`` date on the provenance records varies with the clock.
    """
    base = fallback_base_values(location, config)
    location = display_location(location)

    value = int(base["property_value"])
    cap_rate = round(base["cap_rate"], 1)
    cash_on_cash = round(base["cash_on_cash"], 1)
    irr = round(base["irr"], 1)
    units = int(base["units"])
    square_footage = int(base["square_footage"])
    build_year = int(base["build_year"])
    walk_score = int(base["walk_score"])

    noi = round_half_up(value * cap_rate / 100)
    down_payment, loan_amount, debt_service, cash_flow = financing_terms(value, noi, config)

    return PropertyMetrics(
        property_value=value,
        cap_rate=cap_rate,
        cash_on_cash=cash_on_cash,
        irr=irr,
        noi=noi,
        debt_service=debt_service,
        cash_flow=cash_flow,
        ltv=round(100 * (1 - config.down_payment_fraction), 1),
        down_payment=down_payment,
        loan_amount=loan_amount,
        units=units,
        square_footage=square_footage,
        build_year=build_year,
        walk_score=walk_score,
        ai_reasoning=build_ai_reasoning(location, cap_rate, cash_on_cash, irr, config),
        recommendations=build_recommendations(None, build_year, config),
        risks=build_risks(location, None),
        market_insights=build_market_insights(location, None, config, live=False),
        comparable_properties=build_comparables(
            location, value, cap_rate, square_footage, build_year
        ),
        data_sources=build_data_sources(live=False),
        ai_insights=AI_INSIGHTS,
        data_origin=DataOrigin.FALLBACK,
    )


# =============================================================================
# Main Entry Point
# =============================================================================


def derive_metrics(
    location: str,
    attributes: Optional[PropertyAttributes] = None,
    config: DerivationConfig = DEFAULT_DERIVATION_CONFIG,
) -> PropertyMetrics:
    """
    Derive a full PropertyMetrics for a location.

    Args:
        location: Address or market text entered by the user
        attributes: Normalized upstream record, or None when the provider had
            no usable record
        config: Underwriting assumptions

    Returns:
        PropertyMetrics derived from the upstream record when present,
        otherwise from the deterministic fallback generator
    """
    if attributes is None:
        return generate_fallback_metrics(location, config)
    return _derive_from_attributes(location, attributes, config)
