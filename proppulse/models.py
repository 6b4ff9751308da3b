"""
Pydantic models for the PropPulse underwriting service.

Models handle validation and serialization only - no business logic.
Wire names are camelCase (the browser client's convention); Python code
uses the snake_case field names.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(BaseModel):
    """Immutable camelCase model."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# =============================================================================
# Enums
# =============================================================================


class DataOrigin(str, Enum):
    """Where a PropertyMetrics instance came from."""

    LIVE = "live"
    FALLBACK = "fallback"


# =============================================================================
# Property Metrics
# =============================================================================


class MarketInsights(FrozenCamelModel):
    """Submarket summary attached to every metrics object."""

    market_trend: str
    market_score: str
    rent_growth: float = Field(..., description="Annual rent growth (%)")
    vacancy_rate: float = Field(..., ge=0, le=100, description="Vacancy (%)")
    occupancy_rate: float = Field(..., ge=0, le=100, description="100 - vacancy (%)")
    cap_rate_trend: str
    market_outlook: str
    key_drivers: tuple[str, ...]


class ComparableProperty(FrozenCamelModel):
    """A nearby comparable listing."""

    address: str
    price: int = Field(..., gt=0)
    cap_rate: float
    distance_miles: float = Field(..., ge=0)
    square_footage: int
    year_built: int
    occupancy: float = Field(..., ge=0, le=100)


class DataSource(FrozenCamelModel):
    """Provenance record for the data behind an analysis."""

    name: str
    type: str
    last_updated: str
    coverage: str
    reliability: str


class AIInsights(FrozenCamelModel):
    """Long-form narrative sections shown on the results page."""

    market_analysis: str
    investment_thesis: str
    risk_assessment: str
    exit_strategy: str
    value_add_opportunities: tuple[str, ...]


class PropertyMetrics(FrozenCamelModel):
    """
    Complete derived financial picture of one property.

    Constructed once per analysis request, never mutated. Rates are stored
    as plain percentages (6.2 means 6.2%); currency amounts as whole dollars.
    """

    property_value: int = Field(..., gt=0)
    cap_rate: float = Field(..., ge=0)
    cash_on_cash: float = Field(..., ge=0)
    irr: float = Field(..., ge=0)
    noi: int
    debt_service: int = Field(..., ge=0)
    cash_flow: int
    ltv: float = Field(70.0, description="Loan-to-value (%)")
    down_payment: int = Field(..., ge=0)
    loan_amount: int = Field(..., ge=0)
    units: int
    square_footage: int
    build_year: int
    walk_score: int
    ai_reasoning: str = Field(..., min_length=1)
    recommendations: tuple[str, ...] = Field(..., min_length=1)
    risks: tuple[str, ...] = Field(..., min_length=1)
    market_insights: MarketInsights
    comparable_properties: tuple[ComparableProperty, ...]
    data_sources: tuple[DataSource, ...]
    ai_insights: AIInsights
    data_origin: DataOrigin

    @model_validator(mode="after")
    def _check_identities(self) -> "PropertyMetrics":
        if self.cash_flow != self.noi - self.debt_service:
            raise ValueError("cash_flow must equal noi - debt_service")
        if abs(self.down_payment + self.loan_amount - self.property_value) > 1:
            raise ValueError("down_payment + loan_amount must equal property_value")
        return self


# =============================================================================
# Display Models (HTTP boundary)
# =============================================================================


class DisplayMarketInsights(CamelModel):
    market_trend: str
    market_score: str
    rent_growth: str
    vacancy_rate: str
    occupancy_rate: str
    cap_rate_trend: str
    market_outlook: str
    key_drivers: list[str]


class DisplayComparable(CamelModel):
    address: str
    price: str
    cap_rate: str
    distance: str
    sqft: str
    year_built: str
    occupancy: str


class PropertyDataResponse(CamelModel):
    """Display-formatted PropertyMetrics ("$2,850,000", "6.2%")."""

    property_value: str
    cap_rate: str
    cash_on_cash: str
    irr: str
    noi: str
    debt_service: str
    cash_flow: str
    ltv: str
    down_payment: str
    loan_amount: str
    units: str
    square_footage: str
    build_year: str
    walk_score: str
    ai_reasoning: str
    recommendations: list[str]
    risks: list[str]
    market_insights: DisplayMarketInsights
    comparable_properties: list[DisplayComparable]
    data_sources: list[DataSource]
    ai_insights: AIInsights
    data_origin: DataOrigin


# =============================================================================
# Deal Evaluation
# =============================================================================


class CriteriaThresholds(CamelModel):
    """Buyer investment criteria. Defaults are the PropPulse Standard buy box."""

    min_cap_rate: float = Field(6.5, description="capRate >= threshold (%)")
    min_cash_on_cash: float = Field(8.0, description="cashOnCash >= threshold (%)")
    min_irr: float = Field(14.0, alias="minIRR", description="irr >= threshold (%)")
    min_dscr: float = Field(1.3, alias="minDSCR", description="noi / debtService >= threshold")
    min_year_built: int = Field(1985, description="buildYear >= threshold")
    min_occupancy: float = Field(90.0, description="occupancy >= threshold (%)")
    max_price: float = Field(15_000_000, gt=0, description="propertyValue <= threshold ($)")


class DealInputs(CamelModel):
    """The scalar measurements the deal scorer reads."""

    cap_rate: float = 0.0
    cash_on_cash: float = 0.0
    irr: float = 0.0
    noi: float = 0.0
    debt_service: float = 0.0
    year_built: int = 0
    occupancy: float = 0.0
    property_value: float = 0.0


class EvaluationCriterion(CamelModel):
    value: float
    required: float
    passed: bool
    weight: float = Field(..., ge=0, le=1)


class DealEvaluation(CamelModel):
    """Weighted pass/fail result over the seven fixed criteria."""

    evaluation: dict[str, EvaluationCriterion]
    overall_score: float = Field(..., ge=0, le=100)
    deal_passes: bool
    passed_criteria: int
    total_criteria: int
    summary: str
    recommendations: list[str]


class DealEvaluationRequest(CamelModel):
    """
    Body of POST /api/deal-evaluation.

    Either ``location`` (metrics are derived server-side) or ``metrics`` (a
    display-formatted property-data payload) must be given. ``buy_box``
    criteria strings are applied on top of ``criteria``.
    """

    location: Optional[str] = None
    metrics: Optional[dict[str, Any]] = None
    criteria: Optional[CriteriaThresholds] = None
    buy_box: Optional[list[str]] = None


# =============================================================================
# Confidence Assessment
# =============================================================================


class UserCriteria(CamelModel):
    """
    Buyer criteria forwarded to the generative model.

    All values are kept as the text the buyer entered; numbers are
    accepted and converted to text.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    min_coc_return: Optional[str] = Field(None, alias="minCoCReturn")
    cap_rate_range: Optional[str] = None
    year_built_threshold: Optional[str] = None
    hold_period: Optional[str] = None
    min_dscr: Optional[str] = Field(None, alias="minDSCR")
    market_conditions: Optional[str] = None
    property_condition: Optional[str] = None
    investment_amount: Optional[str] = None
    timeframe: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_to_text(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return str(value)
        if isinstance(value, (int, float)):
            return f"{value:g}"
        return value


class AnalysisRequest(CamelModel):
    """Body of POST /api/gemini-analysis."""

    t12_data: Any = None
    rent_roll_data: Any = None
    property_info: dict[str, Any] = Field(default_factory=dict)
    user_criteria: UserCriteria = Field(default_factory=UserCriteria)


class ConfidenceFactor(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    value: Any = None
    target: Any = None
    score: Optional[float] = None
    weight: Optional[float] = None


class ConfidenceAssessment(CamelModel):
    """
    Model-generated underwriting analysis after local post-processing.

    Sections the service does not interpret are passed through untouched.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    confidence_score: Optional[Union[int, float]] = None
    confidence_factors: dict[str, ConfidenceFactor] = Field(default_factory=dict)
    deal_passes: Optional[bool] = None
    summary: Optional[str] = None
    financial_metrics: Optional[dict[str, Any]] = None
    market_analysis: Optional[dict[str, Any]] = None
    risk_analysis: Optional[list[Any]] = None
    recommendations: Optional[list[Any]] = None


# =============================================================================
# History
# =============================================================================


class HistoryEntryCreate(BaseModel):
    """Fields a caller supplies when appending to the analysis history."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = None
    property_address: str = "Unknown Property"
    confidence_score: Optional[float] = Field(None, alias="confidenceScore")
    result_url: Optional[str] = Field(None, alias="resultUrl")
    gemini_analysis: dict[str, Any] = Field(default_factory=dict, alias="geminiAnalysis")
    property_info: dict[str, Any] = Field(default_factory=dict, alias="propertyInfo")


class HistoryRecord(HistoryEntryCreate):
    """Persisted analysis-history row."""

    id: str
    created_at: str


# =============================================================================
# Error Response
# =============================================================================


class ErrorResponse(BaseModel):
    """Body returned for 4xx/5xx responses."""

    error: str = Field(..., description="Error summary")
    details: Optional[str] = Field(None, description="Detailed error message")
