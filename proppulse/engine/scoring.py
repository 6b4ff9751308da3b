"""
Deal evaluation scorer.

Scores a property against a buyer's criteria thresholds using a fixed
seven-criterion weighted rule set. Every criterion is always evaluated;
the overall score is the weighted share of passed criteria.
"""

import math
from typing import Any, Callable, Optional, Union

from proppulse.config import DEAL_PASS_THRESHOLD
from proppulse.models import (
    CriteriaThresholds,
    DealEvaluation,
    DealInputs,
    EvaluationCriterion,
    PropertyMetrics,
)


# =============================================================================
# Criterion Table
# =============================================================================

# Evaluation order is also the remediation order.
CRITERION_WEIGHTS: dict[str, float] = {
    "capRate": 0.20,
    "cashOnCash": 0.20,
    "irr": 0.20,
    "dscr": 0.15,
    "yearBuilt": 0.10,
    "occupancy": 0.10,
    "maxPrice": 0.05,
}

CRITERIA_ORDER: tuple[str, ...] = tuple(CRITERION_WEIGHTS)

PROCEED_MESSAGE = "Deal meets all PropPulse AI criteria - proceed with due diligence"


def _fmt(value: float) -> str:
    return f"{value:g}"


REMEDIATIONS: dict[str, Callable[[CriteriaThresholds], str]] = {
    "capRate": lambda c: (
        f"Consider negotiating a lower purchase price to improve cap rate above "
        f"{_fmt(c.min_cap_rate)}%"
    ),
    "cashOnCash": lambda c: (
        f"Explore financing options with better terms to improve cash-on-cash return "
        f"above {_fmt(c.min_cash_on_cash)}%"
    ),
    "irr": lambda c: f"Look for value-add opportunities to improve IRR above {_fmt(c.min_irr)}%",
    "dscr": lambda c: (
        f"Improve NOI or negotiate better debt terms to meet DSCR requirements above "
        f"{_fmt(c.min_dscr)}"
    ),
    "yearBuilt": lambda c: (
        f"Consider properties built after {c.min_year_built} for better condition and "
        f"fewer maintenance issues"
    ),
    "occupancy": lambda c: (
        f"Focus on properties with occupancy rates above {_fmt(c.min_occupancy)}% for "
        f"stable cash flow"
    ),
    "maxPrice": lambda c: (
        f"Consider properties under ${c.max_price:,.0f} to stay within investment budget"
    ),
}


# =============================================================================
# Input Parsing
# =============================================================================

_STRIP_CHARS = str.maketrans("", "", "$,%")


def parse_metric_number(text: Any) -> float:
    """
    Parse a display-formatted metric ("$2,850,000", "6.2%") into a float.

    ``$``, ``,`` and ``%`` are stripped first. Anything unparseable, including
    None, yields 0.0; a zero then fails its criterion naturally.
    """
    if text is None or isinstance(text, bool):
        return 0.0
    if isinstance(text, (int, float)):
        return float(text) if math.isfinite(text) else 0.0
    try:
        value = float(str(text).translate(_STRIP_CHARS).strip())
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def inputs_from_metrics(metrics: PropertyMetrics) -> DealInputs:
    return DealInputs(
        cap_rate=metrics.cap_rate,
        cash_on_cash=metrics.cash_on_cash,
        irr=metrics.irr,
        noi=metrics.noi,
        debt_service=metrics.debt_service,
        year_built=metrics.build_year,
        occupancy=metrics.market_insights.occupancy_rate,
        property_value=metrics.property_value,
    )


def inputs_from_display(payload: dict[str, Any]) -> DealInputs:
    """
    Read scorer inputs out of a display-formatted property-data payload.

    Missing or malformed fields default to zero.
    """
    insights = payload.get("marketInsights")
    occupancy = insights.get("occupancyRate") if isinstance(insights, dict) else None
    return DealInputs(
        cap_rate=parse_metric_number(payload.get("capRate")),
        cash_on_cash=parse_metric_number(payload.get("cashOnCash")),
        irr=parse_metric_number(payload.get("irr")),
        noi=parse_metric_number(payload.get("noi")),
        debt_service=parse_metric_number(payload.get("debtService")),
        year_built=int(parse_metric_number(payload.get("buildYear"))),
        occupancy=parse_metric_number(occupancy),
        property_value=parse_metric_number(payload.get("propertyValue")),
    )


def compute_dscr(noi: float, debt_service: float) -> float:
    """noi / debt_service, or 0 when there is no debt service."""
    if debt_service > 0:
        return noi / debt_service
    return 0.0


# =============================================================================
# Main Entry Point
# =============================================================================


def generate_remediations(
    evaluation: dict[str, EvaluationCriterion],
    criteria: CriteriaThresholds,
) -> list[str]:
    """One remediation per failed criterion in fixed order, or the proceed message."""
    recommendations = [
        REMEDIATIONS[name](criteria) for name in CRITERIA_ORDER if not evaluation[name].passed
    ]
    if not recommendations:
        recommendations.append(PROCEED_MESSAGE)
    return recommendations


def evaluate_deal(
    metrics: Union[PropertyMetrics, DealInputs],
    criteria: Optional[CriteriaThresholds] = None,
    pass_threshold: float = DEAL_PASS_THRESHOLD,
) -> DealEvaluation:
    """
    Score a property against investment criteria.

    Args:
        metrics: Derived PropertyMetrics, or pre-extracted DealInputs
        criteria: Buyer thresholds (defaults to the PropPulse Standard buy box)
        pass_threshold: Minimum overall score for the deal to pass

    Returns:
        DealEvaluation with per-criterion detail, weighted score and
        remediation recommendations
    """
    criteria = criteria or CriteriaThresholds()
    inputs = inputs_from_metrics(metrics) if isinstance(metrics, PropertyMetrics) else metrics

    dscr = compute_dscr(inputs.noi, inputs.debt_service)

    checks: dict[str, tuple[float, float, bool]] = {
        "capRate": (inputs.cap_rate, criteria.min_cap_rate, inputs.cap_rate >= criteria.min_cap_rate),
        "cashOnCash": (
            inputs.cash_on_cash,
            criteria.min_cash_on_cash,
            inputs.cash_on_cash >= criteria.min_cash_on_cash,
        ),
        "irr": (inputs.irr, criteria.min_irr, inputs.irr >= criteria.min_irr),
        # A zero DSCR (no debt service) never passes.
        "dscr": (dscr, criteria.min_dscr, dscr > 0 and dscr >= criteria.min_dscr),
        "yearBuilt": (
            inputs.year_built,
            criteria.min_year_built,
            inputs.year_built >= criteria.min_year_built,
        ),
        "occupancy": (
            inputs.occupancy,
            criteria.min_occupancy,
            inputs.occupancy >= criteria.min_occupancy,
        ),
        "maxPrice": (
            inputs.property_value,
            criteria.max_price,
            inputs.property_value <= criteria.max_price,
        ),
    }

    evaluation = {
        name: EvaluationCriterion(
            value=value,
            required=required,
            passed=passed,
            weight=CRITERION_WEIGHTS[name],
        )
        for name, (value, required, passed) in checks.items()
    }

    total_weight = math.fsum(c.weight for c in evaluation.values())
    passed_weight = math.fsum(c.weight for c in evaluation.values() if c.passed)
    overall_score = round(100 * passed_weight / total_weight, 2)
    deal_passes = overall_score >= pass_threshold

    passed_count = sum(1 for c in evaluation.values() if c.passed)
    total_count = len(evaluation)
    if deal_passes:
        summary = (
            f"Deal PASSES with {overall_score:.1f}% score. "
            f"{passed_count}/{total_count} criteria met."
        )
    else:
        summary = (
            f"Deal FAILS with {overall_score:.1f}% score. "
            f"Only {passed_count}/{total_count} criteria met."
        )

    return DealEvaluation(
        evaluation=evaluation,
        overall_score=overall_score,
        deal_passes=deal_passes,
        passed_criteria=passed_count,
        total_criteria=total_count,
        summary=summary,
        recommendations=generate_remediations(evaluation, criteria),
    )
