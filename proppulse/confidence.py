"""
Confidence assessment contract.

The generative model's output is untrusted. This module parses it
strictly and then enforces the parts of the contract that are decided
locally:
- dealPasses and the summary sentence are recomputed from confidenceScore
- each factor's target reflects the buyer's own criteria when given
"""

import copy
import json
import logging
import math
import re
from typing import Any

from pydantic import ValidationError

from proppulse.config import DEAL_PASS_THRESHOLD
from proppulse.exceptions import InvalidUpstreamResponseError
from proppulse.llm.interface import LLMClient
from proppulse.models import AnalysisRequest, ConfidenceAssessment, UserCriteria


logger = logging.getLogger(__name__)


# Confidence factor -> UserCriteria field holding the buyer's target
FACTOR_TARGET_FIELDS: dict[str, str] = {
    "cocReturn": "min_coc_return",
    "capRate": "cap_rate_range",
    "yearBuilt": "year_built_threshold",
    "holdPeriod": "hold_period",
    "dscr": "min_dscr",
    "marketConditions": "market_conditions",
    "propertyCondition": "property_condition",
}

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence (```json ... ```), if present."""
    clean = text.strip()
    if clean.startswith("```"):
        clean = _FENCE_OPEN.sub("", clean, count=1)
        clean = _FENCE_CLOSE.sub("", clean, count=1)
    return clean


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-JSON constant {name}")


def parse_model_output(text: str) -> dict[str, Any]:
    """
    Parse model text into a JSON object.

    NaN and Infinity literals are rejected like any other invalid JSON.

    Raises:
        InvalidUpstreamResponseError: If the text is not a JSON object, even
            after fence stripping
    """
    try:
        parsed = json.loads(strip_code_fences(text), parse_constant=_reject_constant)
    except ValueError as e:
        logger.error(f"Failed to parse model response: {e}")
        raise InvalidUpstreamResponseError("Invalid response from Gemini API") from e

    if not isinstance(parsed, dict):
        raise InvalidUpstreamResponseError("Invalid response from Gemini API: expected an object")
    return parsed


def deal_summary(score: float, deal_passes: bool) -> str:
    verdict = "PASSES" if deal_passes else "FAILS"
    return f"Deal {verdict} with {score:g}% confidence."


def enforce_confidence_contract(
    raw: dict[str, Any],
    criteria: UserCriteria,
    pass_threshold: float = DEAL_PASS_THRESHOLD,
) -> ConfidenceAssessment:
    """
    Apply the locally owned parts of the contract to parsed model output.

    Args:
        raw: Parsed model output (not modified)
        criteria: Buyer criteria from the request
        pass_threshold: Minimum confidence score for the deal to pass

    Returns:
        ConfidenceAssessment with recomputed pass/fail and buyer targets

    Raises:
        InvalidUpstreamResponseError: If the output does not fit the
            assessment shape (e.g. a non-numeric factor score)
    """
    result = copy.deepcopy(raw)

    score = result.get("confidenceScore")
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        if not math.isfinite(score):
            raise InvalidUpstreamResponseError(
                "Invalid response from Gemini API: confidenceScore is not finite"
            )
        result["dealPasses"] = score >= pass_threshold
        result["summary"] = deal_summary(score, result["dealPasses"])

    factors = result.get("confidenceFactors")
    if isinstance(factors, dict):
        for factor_name, field_name in FACTOR_TARGET_FIELDS.items():
            target = getattr(criteria, field_name)
            factor = factors.get(factor_name)
            if target and isinstance(factor, dict):
                factor["target"] = target

    try:
        return ConfidenceAssessment.model_validate(result)
    except ValidationError as e:
        logger.error(f"Model response does not fit the assessment shape: {e.error_count()} errors")
        raise InvalidUpstreamResponseError(
            "Invalid response from Gemini API: unexpected structure"
        ) from e


def run_confidence_analysis(
    request: AnalysisRequest,
    llm: LLMClient,
    pass_threshold: float = DEAL_PASS_THRESHOLD,
) -> ConfidenceAssessment:
    """
    Main entry point for the confidence analysis.

    Raises:
        InfrastructureError: If the model endpoint is unreachable
        LLMError: If the model call fails
        InvalidUpstreamResponseError: If the model output is unparseable
    """
    text = llm.generate_underwriting_analysis(request)
    raw = parse_model_output(text)
    assessment = enforce_confidence_contract(raw, request.user_criteria, pass_threshold)
    logger.info(
        f"Confidence analysis complete: score={assessment.confidence_score}, "
        f"passes={assessment.deal_passes}"
    )
    return assessment
