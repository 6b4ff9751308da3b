"""
Prompt templates for the underwriting analysis call.

Templates are string constants formatted with runtime values. The JSON
response format is kept as a separate literal so its braces never pass
through str.format.
"""

import json
from typing import Any, Optional

from proppulse.models import AnalysisRequest, UserCriteria


# =============================================================================
# Factor Weights
# =============================================================================

# Confidence factors and their weights (percent, sum to 100).
CONFIDENCE_FACTOR_WEIGHTS: dict[str, int] = {
    "cocReturn": 25,
    "capRate": 20,
    "yearBuilt": 15,
    "holdPeriod": 10,
    "dscr": 15,
    "marketConditions": 10,
    "propertyCondition": 5,
}


# =============================================================================
# Templates
# =============================================================================

UNDERWRITING_SYSTEM = """You are PropPulse AI, a commercial real estate underwriting platform. Analyze
the T12 (Trailing 12 Months) and Rent Roll data you are given and provide accurate financial
predictions and insights.

Provide a comprehensive analysis including:

1. FINANCIAL METRICS: cap rate, cash-on-cash return, IRR projection, DSCR, NOI trends and
   gross rent multiplier (GRM).
2. MARKET ANALYSIS: rent growth trends, occupancy, market positioning, comparable properties.
3. RISK ASSESSMENT: vacancy risk, rent collection risk, market volatility, property condition.
4. RECOMMENDATIONS: value-add opportunities, pricing, financing, exit strategy.
5. CONFIDENCE SCORE: a 0-100 score computed as the weighted sum of the factor scores listed
   in the request.

RULES:
1. Respond with a single JSON object and nothing else.
2. Use the exact keys of the response format below.
3. Provide realistic numbers grounded in the data provided.

RESPONSE FORMAT:
"""

RESPONSE_FORMAT = """{
  "financialMetrics": {
    "capRate": "6.2%",
    "cashOnCash": "8.4%",
    "irr": "14.7%",
    "dscr": "1.34",
    "noi": "$187,200",
    "grm": "8.2",
    "purchasePrice": "$2,850,000",
    "grossRent": "$312,000",
    "expenses": "$124,800"
  },
  "marketAnalysis": {
    "rentGrowth": "4.2%",
    "occupancyRate": "96%",
    "marketTrend": "Strong growth",
    "comparableProperties": [
      {"address": "1556 Oak St", "distance": "0.3 mi", "price": "$2,650,000",
       "capRate": "5.9%", "cashOnCash": "7.8%"}
    ]
  },
  "riskAnalysis": [
    {"level": "Medium", "factor": "Crime rate 12% above city average",
     "impact": "May affect tenant retention"}
  ],
  "recommendations": [
    "Negotiate purchase price down by 5% to improve returns"
  ],
  "confidenceScore": 87,
  "confidenceFactors": {
    "cocReturn": {"value": "8.4%", "target": "7.0%", "score": 100, "weight": 25},
    "capRate": {"value": "6.2%", "target": "5.5-7.5%", "score": 100, "weight": 20},
    "yearBuilt": {"value": "1998", "target": "1990+", "score": 80, "weight": 15},
    "holdPeriod": {"value": "7 years", "target": "5-10 years", "score": 100, "weight": 10},
    "dscr": {"value": "1.34", "target": "1.25+", "score": 100, "weight": 15},
    "marketConditions": {"value": "Strong", "score": 90, "weight": 10},
    "propertyCondition": {"value": "Good", "score": 85, "weight": 5}
  },
  "dealPasses": true,
  "summary": "Strong cash-on-cash return at 8.4% exceeds required 7.0%"
}"""

UNDERWRITING_USER = """PROPERTY INFORMATION:
{property_info}

T12 DATA (Trailing 12 Months):
{t12_data}

RENT ROLL DATA:
{rent_roll_data}

CONFIDENCE SCORE FACTORS:
- Min CoC Return: Target {min_coc_return} (weight: {w_coc}%)
- Cap Rate: Target {cap_rate_range} (weight: {w_cap}%)
- Year Built Threshold: Prefer {year_built_threshold} (weight: {w_year}%)
- Target Hold Period: {hold_period} (weight: {w_hold}%)
- DSCR: Target {min_dscr} (weight: {w_dscr}%)
- Market Conditions: {market_conditions} (weight: {w_market}%)
- Property Condition: {property_condition} (weight: {w_condition}%)"""


# =============================================================================
# Formatting
# =============================================================================


def _json_block(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def _or_unspecified(value: Optional[str]) -> str:
    return value if value else "not specified"


def format_underwriting_system() -> str:
    return UNDERWRITING_SYSTEM + RESPONSE_FORMAT


def format_underwriting_user(request: AnalysisRequest) -> str:
    criteria: UserCriteria = request.user_criteria
    w = CONFIDENCE_FACTOR_WEIGHTS
    return UNDERWRITING_USER.format(
        property_info=_json_block(request.property_info),
        t12_data=_json_block(request.t12_data),
        rent_roll_data=_json_block(request.rent_roll_data),
        min_coc_return=_or_unspecified(criteria.min_coc_return),
        cap_rate_range=_or_unspecified(criteria.cap_rate_range),
        year_built_threshold=_or_unspecified(criteria.year_built_threshold),
        hold_period=_or_unspecified(criteria.hold_period),
        min_dscr=_or_unspecified(criteria.min_dscr),
        market_conditions=_or_unspecified(criteria.market_conditions),
        property_condition=_or_unspecified(criteria.property_condition),
        w_coc=w["cocReturn"],
        w_cap=w["capRate"],
        w_year=w["yearBuilt"],
        w_hold=w["holdPeriod"],
        w_dscr=w["dscr"],
        w_market=w["marketConditions"],
        w_condition=w["propertyCondition"],
    )
