"""Tests for configuration objects and environment loading."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from proppulse.config import (
    ATTOM_BASE_URL,
    DEAL_PASS_THRESHOLD,
    DEFAULT_DERIVATION_CONFIG,
    DEFAULT_LLM_CONFIG,
    DerivationConfig,
    HistoryConfig,
    LLMConfig,
    PropertyDataConfig,
)


class TestDerivationConfig:
    """Tests for DerivationConfig defaults."""

    def test_default_values(self):
        config = DerivationConfig()
        assert config.imputed_rent_yield == 0.08
        assert config.expense_ratio == 0.35
        assert config.down_payment_fraction == 0.30
        assert config.debt_service_rate == 0.055
        assert config.default_appreciation_rate == 4.0
        assert config.irr_premium == 2.0
        assert config.walk_score_base == 60

    def test_upstream_defaults(self):
        config = DEFAULT_DERIVATION_CONFIG
        assert config.default_property_value == 2_500_000
        assert config.default_square_footage == 8_400
        assert config.default_build_year == 1995
        assert config.default_units == 12

    def test_fallback_ranges(self):
        ranges = DEFAULT_DERIVATION_CONFIG.fallback_ranges
        assert ranges["property_value"].base == 2_000_000
        assert ranges["property_value"].modulus == 1_000_000
        assert ranges["cap_rate"].base == 6.0
        assert ranges["cap_rate"].modulus == 20
        assert ranges["cap_rate"].divisor == 10

    def test_custom_values(self):
        config = DerivationConfig(expense_ratio=0.40)
        assert config.expense_ratio == 0.40
        assert config.imputed_rent_yield == 0.08


class TestPropertyDataConfig:
    def test_defaults(self):
        config = PropertyDataConfig()
        assert config.upstream_api_key is None
        assert config.upstream_base_url == ATTOM_BASE_URL
        assert config.fallback_enabled is True

    def test_from_env(self):
        env = {
            "ATTOM_API_KEY": "abc",
            "ATTOM_BASE_URL": "https://attom.test",
            "PROPERTY_FALLBACK_ENABLED": "false",
            "ATTOM_TIMEOUT_S": "5",
        }
        with patch.dict("os.environ", env, clear=True):
            config = PropertyDataConfig.from_env()

        assert config.upstream_api_key == "abc"
        assert config.upstream_base_url == "https://attom.test"
        assert config.fallback_enabled is False
        assert config.timeout_s == 5.0

    def test_from_empty_env(self):
        with patch.dict("os.environ", {}, clear=True):
            config = PropertyDataConfig.from_env()

        assert config.upstream_api_key is None
        assert config.fallback_enabled is True

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            PropertyDataConfig(timeout_s=0)


class TestLLMConfig:
    def test_defaults(self):
        assert DEFAULT_LLM_CONFIG.model == "gemini-2.0-flash"
        assert DEFAULT_LLM_CONFIG.base_url.startswith("https://generativelanguage.googleapis.com")

    def test_temperature_bounds(self):
        with pytest.raises(ValidationError):
            LLMConfig(temperature=3.0)


class TestHistoryConfig:
    def test_hosted_requires_url_and_key(self):
        assert HistoryConfig().hosted is False
        assert HistoryConfig(supabase_url="https://x.supabase.co").hosted is False
        assert HistoryConfig(supabase_url="https://x.supabase.co", supabase_key="k").hosted

    def test_from_env(self):
        env = {"SUPABASE_URL": "https://x.supabase.co", "SUPABASE_KEY": "k"}
        with patch.dict("os.environ", env, clear=True):
            config = HistoryConfig.from_env()

        assert config.hosted
        assert config.table == "analysis_history"


def test_shared_pass_threshold():
    assert DEAL_PASS_THRESHOLD == 80.0
