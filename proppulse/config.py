"""
Configuration for the PropPulse underwriting service.

All underwriting assumptions live here - no magic numbers in engine code.
Configuration objects are passed explicitly to the engine and clients; only
the ``from_env`` constructors touch process environment.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Shared Thresholds
# =============================================================================

# A deal passes when its weighted score (rule-based evaluator) or its
# model-reported confidence score reaches this value. Both consumers accept
# an override.
DEAL_PASS_THRESHOLD: float = 80.0


# =============================================================================
# Fallback Generator Table
# =============================================================================


class FallbackRange(BaseModel):
    """value = base + (location_hash mod modulus) / divisor"""

    base: float
    modulus: int = Field(..., gt=0)
    divisor: float = Field(1.0, gt=0)


DEFAULT_FALLBACK_RANGES: dict[str, FallbackRange] = {
    "property_value": FallbackRange(base=2_000_000, modulus=1_000_000),
    "cap_rate": FallbackRange(base=6.0, modulus=20, divisor=10),
    "cash_on_cash": FallbackRange(base=7.5, modulus=30, divisor=10),
    "irr": FallbackRange(base=12.0, modulus=60, divisor=10),
    "units": FallbackRange(base=10, modulus=20),
    "square_footage": FallbackRange(base=6_000, modulus=8_000),
    "build_year": FallbackRange(base=1980, modulus=40),
    "walk_score": FallbackRange(base=60, modulus=40),
}


# =============================================================================
# Derivation Assumptions
# =============================================================================


class DerivationConfig(BaseModel):
    """
    Underwriting assumptions for the metric derivation engine.

    Applied identically to live upstream records and to the deterministic
    fallback generator.
    """

    # Income assumptions
    imputed_rent_yield: float = Field(
        default=0.08, gt=0, lt=1, description="Annual rent as fraction of value when rent unknown"
    )
    expense_ratio: float = Field(
        default=0.35, ge=0, lt=1, description="Operating expenses as fraction of annual rent"
    )

    # Financing assumptions
    down_payment_fraction: float = Field(
        default=0.30, gt=0, le=1, description="Equity share of the purchase price"
    )
    debt_service_rate: float = Field(
        default=0.055, ge=0, lt=1, description="Annual debt service as fraction of loan amount"
    )

    # Return assumptions
    default_appreciation_rate: float = Field(
        default=4.0, description="Appreciation % used when no sales-trend data is available"
    )
    irr_premium: float = Field(
        default=2.0, description="Fixed premium added to cap rate + appreciation"
    )

    # Walk score
    walk_score_base: int = Field(default=60, ge=0, le=100)
    walk_score_city_bonuses: dict[str, int] = Field(
        default_factory=lambda: {"los angeles": 15, "downtown": 10},
        description="Lower-case city substring -> bonus points",
    )

    # Defaults for missing upstream fields
    default_property_value: int = Field(default=2_500_000, gt=0)
    default_square_footage: int = Field(default=8_400, gt=0)
    default_build_year: int = Field(default=1995, gt=0)
    default_units: int = Field(default=12, gt=0)
    default_property_type: str = Field(default="multifamily")
    default_rent_growth: float = Field(
        default=3.5, description="Rent growth % shown when sales-trend data is absent"
    )

    # Market defaults
    default_vacancy_rate: float = Field(default=3.8, ge=0, le=100)
    fallback_rent_growth: float = Field(default=4.2)

    # Qualitative wording thresholds
    strong_cap_rate: float = Field(default=6.5)
    excellent_cash_on_cash: float = Field(default=8.0)
    strong_irr: float = Field(default=14.0)
    renovation_year_cutoff: int = Field(
        default=1990, description="Buildings older than this get a renovation recommendation"
    )

    # Deterministic fallback table
    fallback_ranges: dict[str, FallbackRange] = Field(
        default_factory=lambda: dict(DEFAULT_FALLBACK_RANGES)
    )


DEFAULT_DERIVATION_CONFIG = DerivationConfig()


# =============================================================================
# Property Data Provider
# =============================================================================


ATTOM_BASE_URL = "https://api.gateway.attomdata.com/propertyapi/v1.0.0"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


class PropertyDataConfig(BaseModel):
    """
    Settings for the upstream property-data provider.

    When ``upstream_api_key`` is empty the upstream is skipped entirely and
    the deterministic fallback is used.
    """

    upstream_api_key: Optional[str] = Field(default=None, description="ATTOM API key")
    upstream_base_url: str = Field(default=ATTOM_BASE_URL)
    fallback_enabled: bool = Field(
        default=True, description="Serve deterministic fallback data when the upstream fails"
    )
    timeout_s: float = Field(default=15.0, gt=0)

    @classmethod
    def from_env(cls) -> "PropertyDataConfig":
        """Build config from ATTOM_* / PROPERTY_FALLBACK_ENABLED environment variables."""
        return cls(
            upstream_api_key=os.environ.get("ATTOM_API_KEY") or None,
            upstream_base_url=os.environ.get("ATTOM_BASE_URL") or ATTOM_BASE_URL,
            fallback_enabled=_env_flag("PROPERTY_FALLBACK_ENABLED", True),
            timeout_s=float(os.environ.get("ATTOM_TIMEOUT_S") or 15.0),
        )


DEFAULT_PROPERTY_DATA_CONFIG = PropertyDataConfig()


# =============================================================================
# LLM Configuration
# =============================================================================


GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class LLMConfig(BaseModel):
    """
    Configuration for the generative-model client.

    Gemini is reached through its OpenAI-compatible endpoint.
    """

    model: str = Field(default="gemini-2.0-flash")
    base_url: str = Field(default=GEMINI_OPENAI_BASE_URL)
    temperature: float = Field(
        default=0.2,
        ge=0,
        le=2,
        description="Sampling temperature (low for structured output)",
    )
    max_tokens: int = Field(
        default=4000,
        gt=0,
        description="Maximum tokens in response",
    )


DEFAULT_LLM_CONFIG = LLMConfig()


# =============================================================================
# History Store
# =============================================================================


class HistoryConfig(BaseModel):
    """Settings for the hosted analysis-history datastore."""

    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    table: str = Field(default="analysis_history")

    @property
    def hosted(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @classmethod
    def from_env(cls) -> "HistoryConfig":
        return cls(
            supabase_url=os.environ.get("SUPABASE_URL") or None,
            supabase_key=os.environ.get("SUPABASE_KEY") or None,
        )
