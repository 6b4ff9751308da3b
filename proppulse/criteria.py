"""
Buy-box criteria parsing.

Buyers pick criteria as short phrases ("Cap Rate > 6.5%", "Asking Price <
$15M"), either one by one or from a named template. This module turns those
phrases into the two structured forms the service uses:
- UserCriteria: text targets forwarded to the generative model
- CriteriaThresholds: numeric thresholds for the rule-based scorer
"""

import re
from dataclasses import dataclass
from typing import Optional

from proppulse.models import CriteriaThresholds, UserCriteria


@dataclass(frozen=True)
class BuyBoxTemplate:
    name: str
    criteria: tuple[str, ...]
    description: str


BUY_BOX_TEMPLATES: dict[str, BuyBoxTemplate] = {
    t.name: t
    for t in (
        BuyBoxTemplate(
            name="PropPulse Standard",
            criteria=(
                "Cap Rate > 6.5%",
                "Cash-on-Cash > 8%",
                "IRR > 14%",
                "DSCR > 1.3",
                "Year Built > 1985",
                "Occupancy > 90%",
                "Asking Price < $15M",
            ),
            description="Standard PropPulse AI investment criteria",
        ),
        BuyBoxTemplate(
            name="Conservative",
            criteria=(
                "Cap Rate > 7.0%",
                "Cash-on-Cash > 9%",
                "IRR > 16%",
                "DSCR > 1.4",
                "Year Built > 1990",
                "Occupancy > 95%",
                "Asking Price < $10M",
            ),
            description="Conservative criteria for lower risk investments",
        ),
        BuyBoxTemplate(
            name="Value Add",
            criteria=(
                "Cap Rate > 5.5%",
                "Cash-on-Cash > 7%",
                "IRR > 12%",
                "DSCR > 1.25",
                "Year Built > 1980",
                "Occupancy > 85%",
                "Asking Price < $20M",
            ),
            description="Value-add opportunities with renovation potential",
        ),
        BuyBoxTemplate(
            name="Growth",
            criteria=(
                "Cap Rate > 6.0%",
                "Cash-on-Cash > 8%",
                "IRR > 15%",
                "DSCR > 1.3",
                "Year Built > 1985",
                "Occupancy > 90%",
                "Asking Price < $25M",
            ),
            description="Growth-focused criteria for emerging markets",
        ),
    )
}


_PERCENT = re.compile(r"([\d.]+)%")
_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")
_YEAR = re.compile(r"(\d{4})")
_HOLD = re.compile(r"(\d+-?\d*)")
_MONEY = re.compile(r"\$?\s*([\d,]+(?:\.\d+)?)\s*(k|m|mm|b)?\b", re.IGNORECASE)

_MONEY_SCALE = {"k": 1e3, "m": 1e6, "mm": 1e6, "b": 1e9}


def _after_colon(text: str) -> str:
    _, sep, rest = text.partition(":")
    return rest.strip() if sep and rest.strip() else text


def parse_money(text: str) -> Optional[float]:
    """Parse "$15M", "$1.5B", "$900K" or "$15,000,000" into dollars."""
    match = _MONEY.search(text)
    if not match:
        return None
    amount = float(match.group(1).replace(",", ""))
    suffix = (match.group(2) or "").lower()
    return amount * _MONEY_SCALE.get(suffix, 1.0)


def parse_user_criteria(selected: list[str]) -> UserCriteria:
    """
    Map selected criteria phrases onto the text targets sent to the model.

    Unrecognized phrases are ignored; the last phrase for a factor wins.
    """
    values: dict[str, str] = {}
    for phrase in selected:
        lowered = phrase.lower()
        if "cash-on-cash" in lowered:
            match = _PERCENT.search(phrase)
            if match:
                values["min_coc_return"] = f"{float(match.group(1)):g}"
        elif "cap rate" in lowered:
            matches = [m.group(0) for m in _PERCENT.finditer(phrase)]
            if len(matches) == 2:
                values["cap_rate_range"] = "-".join(matches)
            elif len(matches) == 1:
                values["cap_rate_range"] = matches[0]
        elif "year built" in lowered:
            match = _YEAR.search(phrase)
            if match:
                values["year_built_threshold"] = match.group(1)
        elif "hold" in lowered or "timeframe" in lowered:
            match = _HOLD.search(phrase)
            if match:
                values["hold_period"] = match.group(1)
        elif "dscr" in lowered:
            match = _NUMBER.search(phrase)
            if match:
                values["min_dscr"] = match.group(1)
        elif "market" in lowered:
            values["market_conditions"] = _after_colon(phrase)
        elif "property condition" in lowered:
            values["property_condition"] = _after_colon(phrase)
    return UserCriteria(**values)


def thresholds_from_strings(
    selected: list[str],
    base: Optional[CriteriaThresholds] = None,
) -> CriteriaThresholds:
    """
    Map selected criteria phrases onto numeric scorer thresholds.

    Thresholds without a matching phrase keep their value from ``base``
    (the PropPulse Standard defaults when not given). For a cap-rate range
    the lower bound is the threshold.
    """
    updates: dict[str, float] = {}
    for phrase in selected:
        lowered = phrase.lower()
        if "cash-on-cash" in lowered or "coc" in lowered:
            match = _NUMBER.search(phrase)
            if match:
                updates["min_cash_on_cash"] = float(match.group(1))
        elif "cap rate" in lowered:
            match = _NUMBER.search(phrase)
            if match:
                updates["min_cap_rate"] = float(match.group(1))
        elif "irr" in lowered:
            match = _NUMBER.search(phrase)
            if match:
                updates["min_irr"] = float(match.group(1))
        elif "dscr" in lowered:
            match = _NUMBER.search(phrase)
            if match:
                updates["min_dscr"] = float(match.group(1))
        elif "year built" in lowered:
            match = _YEAR.search(phrase)
            if match:
                updates["min_year_built"] = int(match.group(1))
        elif "occupancy" in lowered:
            match = _NUMBER.search(phrase)
            if match:
                updates["min_occupancy"] = float(match.group(1))
        elif "price" in lowered:
            amount = parse_money(phrase)
            if amount:
                updates["max_price"] = amount

    return (base or CriteriaThresholds()).model_copy(update=updates)
