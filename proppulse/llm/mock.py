"""
Mock LLM Client for testing.

Provides a deterministic MockLLMClient for exercising the confidence
analysis path without real model calls. Like a real model, it can be told
to return malformed output, fenced output, or a self-reported pass/fail
that disagrees with its own score.
"""

import json
from typing import Optional

from proppulse.llm.prompts import CONFIDENCE_FACTOR_WEIGHTS
from proppulse.models import AnalysisRequest


DEFAULT_FACTOR_SCORES: dict[str, int] = {
    "cocReturn": 100,
    "capRate": 100,
    "yearBuilt": 80,
    "holdPeriod": 100,
    "dscr": 100,
    "marketConditions": 90,
    "propertyCondition": 85,
}


class MockLLMClient:
    """
    Mock LLM client for testing.

    Attributes:
        confidence_score: Score to report (None = weighted sum of factor scores)
        deal_passes: Self-reported pass/fail (None = consistent with the score)
        fenced: Wrap the JSON in a ```json fence
        custom_response: If provided, returned verbatim
        call_counts: Track method call counts for assertions

    Example:
        ```python
        mock = MockLLMClient(confidence_score=65, deal_passes=True)
        text = mock.generate_underwriting_analysis(AnalysisRequest())
        ```
    """

    def __init__(
        self,
        confidence_score: Optional[float] = None,
        deal_passes: Optional[bool] = None,
        fenced: bool = False,
        custom_response: Optional[str] = None,
    ):
        self.confidence_score = confidence_score
        self.deal_passes = deal_passes
        self.fenced = fenced
        self.custom_response = custom_response

        self.call_counts = {"generate_underwriting_analysis": 0}

    def build_payload(self, request: AnalysisRequest) -> dict:
        """Canned analysis body, consistent with the request's criteria."""
        factors = {
            name: {
                "value": None,
                "target": None,
                "score": DEFAULT_FACTOR_SCORES[name],
                "weight": weight,
            }
            for name, weight in CONFIDENCE_FACTOR_WEIGHTS.items()
        }
        factors["cocReturn"].update(value="8.4%", target="7.0%")
        factors["capRate"].update(value="6.2%", target="5.5-7.5%")
        factors["yearBuilt"].update(value="1998", target="1990+")
        factors["holdPeriod"].update(value="7 years", target="5-10 years")
        factors["dscr"].update(value="1.34", target="1.25+")
        factors["marketConditions"].update(value="Strong")
        factors["propertyCondition"].update(value="Good")

        if self.confidence_score is None:
            score = round(
                sum(f["score"] * f["weight"] for f in factors.values())
                / sum(f["weight"] for f in factors.values())
            )
        else:
            score = self.confidence_score

        deal_passes = self.deal_passes if self.deal_passes is not None else score >= 80
        address = request.property_info.get("address", "the subject property")

        return {
            "financialMetrics": {
                "capRate": "6.2%",
                "cashOnCash": "8.4%",
                "irr": "14.7%",
                "dscr": "1.34",
                "noi": "$187,200",
                "grm": "8.2",
                "purchasePrice": "$2,850,000",
                "grossRent": "$312,000",
                "expenses": "$124,800",
            },
            "marketAnalysis": {
                "rentGrowth": "4.2%",
                "occupancyRate": "96%",
                "marketTrend": "Strong growth",
                "comparableProperties": [],
            },
            "riskAnalysis": [
                {
                    "level": "Low",
                    "factor": f"Major systems at {address} are aging",
                    "impact": "Potential maintenance costs",
                }
            ],
            "recommendations": ["Budget additional reserves for deferred maintenance"],
            "confidenceScore": score,
            "confidenceFactors": factors,
            "dealPasses": deal_passes,
            "summary": "Mock underwriting analysis",
        }

    def generate_underwriting_analysis(self, request: AnalysisRequest) -> str:
        self.call_counts["generate_underwriting_analysis"] += 1

        if self.custom_response is not None:
            return self.custom_response

        text = json.dumps(self.build_payload(request), indent=2)
        if self.fenced:
            return f"```json\n{text}\n```"
        return text
