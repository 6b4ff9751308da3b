"""Tests for the LLM interface, prompts, mock client and Gemini client.

Tests cover:
- MockLLMClient implements LLMClient protocol
- Prompt formatting with and without buyer criteria
- GeminiLLMClient construction and error mapping (OpenAI SDK mocked)
"""

import json
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from proppulse.config import GEMINI_OPENAI_BASE_URL, LLMConfig
from proppulse.exceptions import InfrastructureError, LLMError
from proppulse.llm import LLMClient, MockLLMClient
from proppulse.llm.gemini_client import GeminiLLMClient
from proppulse.llm.prompts import (
    CONFIDENCE_FACTOR_WEIGHTS,
    format_underwriting_system,
    format_underwriting_user,
)
from proppulse.models import AnalysisRequest, UserCriteria


def make_request() -> AnalysisRequest:
    return AnalysisRequest(
        t12_data={"grossRent": 312_000, "expenses": 124_800},
        rent_roll_data=[{"unit": "101", "rent": 2_600}],
        property_info={"address": "6200 Hollywood Blvd, Los Angeles, CA"},
        user_criteria=UserCriteria(min_coc_return="8", cap_rate_range="5.5%-7.5%"),
    )


def mock_completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


# =============================================================================
# Protocol Compliance Tests
# =============================================================================


class TestLLMClientProtocol:
    def test_mock_implements_protocol(self):
        assert isinstance(MockLLMClient(), LLMClient)

    def test_gemini_implements_protocol(self):
        with patch("proppulse.llm.gemini_client.OpenAI"):
            assert isinstance(GeminiLLMClient(api_key="test-key"), LLMClient)


# =============================================================================
# Prompt Tests
# =============================================================================


class TestPrompts:
    def test_factor_weights_sum_to_100(self):
        assert sum(CONFIDENCE_FACTOR_WEIGHTS.values()) == 100

    def test_system_prompt_includes_response_format(self):
        system = format_underwriting_system()
        assert '"confidenceScore"' in system
        assert '"dealPasses"' in system

    def test_user_prompt_includes_data_and_criteria(self):
        prompt = format_underwriting_user(make_request())

        assert "6200 Hollywood Blvd" in prompt
        assert "312000" in prompt
        assert "Min CoC Return: Target 8 (weight: 25%)" in prompt
        assert "Cap Rate: Target 5.5%-7.5% (weight: 20%)" in prompt

    def test_missing_criteria_marked_not_specified(self):
        prompt = format_underwriting_user(AnalysisRequest())
        assert "DSCR: Target not specified" in prompt


# =============================================================================
# Mock Client Tests
# =============================================================================


class TestMockLLMClient:
    def test_returns_json(self):
        body = json.loads(MockLLMClient().generate_underwriting_analysis(make_request()))

        assert body["confidenceScore"] == 95
        assert body["dealPasses"] is True
        assert set(body["confidenceFactors"]) == set(CONFIDENCE_FACTOR_WEIGHTS)

    def test_fenced_output(self):
        text = MockLLMClient(fenced=True).generate_underwriting_analysis(make_request())
        assert text.startswith("```json")
        assert text.endswith("```")

    def test_custom_response(self):
        mock = MockLLMClient(custom_response="not json")
        assert mock.generate_underwriting_analysis(make_request()) == "not json"

    def test_call_tracking(self):
        mock = MockLLMClient()
        mock.generate_underwriting_analysis(make_request())
        mock.generate_underwriting_analysis(make_request())
        assert mock.call_counts["generate_underwriting_analysis"] == 2


# =============================================================================
# Gemini Client Tests
# =============================================================================


class TestGeminiClientInit:
    def test_requires_api_key(self):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError) as exc_info:
                GeminiLLMClient()

            assert "API key" in str(exc_info.value)

    def test_accepts_api_key_parameter(self):
        with patch("proppulse.llm.gemini_client.OpenAI") as mock_openai:
            GeminiLLMClient(api_key="test-key")
            mock_openai.assert_called_once_with(api_key="test-key", base_url=GEMINI_OPENAI_BASE_URL)

    def test_uses_environment_variable(self):
        with patch.dict("os.environ", {"GEMINI_API_KEY": "env-key"}):
            with patch("proppulse.llm.gemini_client.OpenAI") as mock_openai:
                GeminiLLMClient()
                mock_openai.assert_called_once_with(api_key="env-key", base_url=GEMINI_OPENAI_BASE_URL)

    def test_uses_custom_config(self):
        config = LLMConfig(model="gemini-1.5-pro", temperature=0.5)
        with patch("proppulse.llm.gemini_client.OpenAI"):
            client = GeminiLLMClient(config=config, api_key="test-key")

        assert client.config.model == "gemini-1.5-pro"


class TestGeminiClientCalls:
    def test_returns_message_content(self):
        with patch("proppulse.llm.gemini_client.OpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_openai.return_value = mock_client
            mock_client.chat.completions.create.return_value = mock_completion('{"a": 1}')

            client = GeminiLLMClient(api_key="test-key")
            assert client.generate_underwriting_analysis(make_request()) == '{"a": 1}'

            kwargs = mock_client.chat.completions.create.call_args.kwargs
            assert kwargs["model"] == "gemini-2.0-flash"
            assert kwargs["messages"][0]["role"] == "system"
            assert "6200 Hollywood Blvd" in kwargs["messages"][1]["content"]

    def test_empty_response_raises_llm_error(self):
        with patch("proppulse.llm.gemini_client.OpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_openai.return_value = mock_client
            mock_client.chat.completions.create.return_value = mock_completion(None)

            client = GeminiLLMClient(api_key="test-key")
            with pytest.raises(LLMError) as exc_info:
                client.generate_underwriting_analysis(make_request())

            assert "empty response" in str(exc_info.value).lower()

    def test_generic_error_wrapped(self):
        with patch("proppulse.llm.gemini_client.OpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_openai.return_value = mock_client
            mock_client.chat.completions.create.side_effect = Exception("API Error")

            client = GeminiLLMClient(api_key="test-key")
            with pytest.raises(LLMError) as exc_info:
                client.generate_underwriting_analysis(make_request())

            assert "API Error" in str(exc_info.value)

    def test_connection_error_is_infrastructure(self):
        request = httpx.Request("POST", GEMINI_OPENAI_BASE_URL)
        with patch("proppulse.llm.gemini_client.OpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_openai.return_value = mock_client
            mock_client.chat.completions.create.side_effect = openai.APIConnectionError(
                request=request
            )

            client = GeminiLLMClient(api_key="test-key")
            with pytest.raises(InfrastructureError):
                client.generate_underwriting_analysis(make_request())

    @pytest.mark.parametrize("status_code,expected", [(503, InfrastructureError), (400, LLMError)])
    def test_status_error_mapping(self, status_code, expected):
        request = httpx.Request("POST", GEMINI_OPENAI_BASE_URL)
        response = httpx.Response(status_code, request=request)
        with patch("proppulse.llm.gemini_client.OpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_openai.return_value = mock_client
            mock_client.chat.completions.create.side_effect = openai.APIStatusError(
                "failure", response=response, body=None
            )

            client = GeminiLLMClient(api_key="test-key")
            with pytest.raises(expected):
                client.generate_underwriting_analysis(make_request())
