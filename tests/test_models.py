"""Tests for Pydantic models: wire names, coercion and consistency checks."""

import pytest
from pydantic import ValidationError

from proppulse.engine import generate_fallback_metrics
from proppulse.models import (
    AnalysisRequest,
    CriteriaThresholds,
    DealEvaluationRequest,
    HistoryEntryCreate,
    PropertyMetrics,
    UserCriteria,
)


class TestPropertyMetrics:
    def test_frozen(self):
        metrics = generate_fallback_metrics("Austin, TX")
        with pytest.raises(ValidationError):
            metrics.cap_rate = 99.0

    def test_cash_flow_identity_enforced(self):
        data = generate_fallback_metrics("Austin, TX").model_dump()
        data["cash_flow"] += 1

        with pytest.raises(ValidationError):
            PropertyMetrics(**data)

    def test_financing_identity_enforced(self):
        data = generate_fallback_metrics("Austin, TX").model_dump()
        data["loan_amount"] += 100

        with pytest.raises(ValidationError):
            PropertyMetrics(**data)

    def test_non_empty_lists_required(self):
        data = generate_fallback_metrics("Austin, TX").model_dump()
        data["recommendations"] = ()

        with pytest.raises(ValidationError):
            PropertyMetrics(**data)


class TestCriteriaThresholds:
    def test_defaults(self):
        c = CriteriaThresholds()
        assert c.min_cap_rate == 6.5
        assert c.min_cash_on_cash == 8.0
        assert c.min_irr == 14.0
        assert c.min_dscr == 1.3
        assert c.min_year_built == 1985
        assert c.min_occupancy == 90.0
        assert c.max_price == 15_000_000

    def test_wire_names(self):
        c = CriteriaThresholds.model_validate({"minIRR": 16, "minDSCR": 1.4, "maxPrice": 1e7})
        assert c.min_irr == 16
        assert c.min_dscr == 1.4
        assert c.max_price == 10_000_000


class TestUserCriteria:
    def test_numbers_become_text(self):
        c = UserCriteria.model_validate({"minCoCReturn": 8, "minDSCR": 1.25, "yearBuiltThreshold": 1990})

        assert c.min_coc_return == "8"
        assert c.min_dscr == "1.25"
        assert c.year_built_threshold == "1990"

    def test_unknown_keys_ignored(self):
        c = UserCriteria.model_validate({"favoriteColor": "blue"})
        assert c.min_coc_return is None


class TestRequests:
    def test_analysis_request_defaults(self):
        request = AnalysisRequest()
        assert request.property_info == {}
        assert request.user_criteria == UserCriteria()

    def test_analysis_request_wire_names(self):
        request = AnalysisRequest.model_validate(
            {"t12Data": [1], "rentRollData": [2], "propertyInfo": {"address": "x"}}
        )
        assert request.t12_data == [1]
        assert request.property_info["address"] == "x"

    def test_deal_evaluation_buy_box_alias(self):
        request = DealEvaluationRequest.model_validate({"buyBox": ["IRR > 15%"]})
        assert request.buy_box == ["IRR > 15%"]

    def test_history_entry_defaults(self):
        entry = HistoryEntryCreate()
        assert entry.property_address == "Unknown Property"
        assert entry.gemini_analysis == {}
