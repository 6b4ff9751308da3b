"""
Gemini LLM Client for PropPulse.

Implements the LLMClient Protocol by calling Gemini through its
OpenAI-compatible endpoint with the OpenAI SDK.

Requires GEMINI_API_KEY environment variable to be set.
"""

import logging
import os
from typing import Optional

import openai
from openai import OpenAI

from proppulse.config import DEFAULT_LLM_CONFIG, LLMConfig
from proppulse.exceptions import InfrastructureError, LLMError
from proppulse.llm.prompts import format_underwriting_system, format_underwriting_user
from proppulse.models import AnalysisRequest


logger = logging.getLogger(__name__)


class GeminiLLMClient:
    """
    Gemini LLM client implementing the LLMClient Protocol.

    Attributes:
        config: LLM configuration (model, base URL, temperature, max_tokens)
        client: OpenAI SDK client pointed at the Gemini endpoint

    Example:
        ```python
        client = GeminiLLMClient()
        text = client.generate_underwriting_analysis(AnalysisRequest(property_info={...}))
        ```
    """

    def __init__(
        self,
        config: LLMConfig = DEFAULT_LLM_CONFIG,
        api_key: Optional[str] = None,
    ):
        """
        Initialize Gemini client.

        Args:
            config: LLM configuration (defaults to DEFAULT_LLM_CONFIG)
            api_key: Gemini API key (defaults to GEMINI_API_KEY env var)

        Raises:
            ValueError: If no API key is provided or found in environment
        """
        self.config = config

        key = api_key or os.environ.get("GEMINI_API_KEY")
        if not key:
            raise ValueError(
                "Gemini API key required. Set GEMINI_API_KEY environment variable "
                "or pass api_key parameter."
            )

        self.client = OpenAI(api_key=key, base_url=config.base_url)

    def _call_text(self, system_prompt: str, user_prompt: str) -> str:
        """
        Make a text completion call.

        Raises:
            InfrastructureError: If API is unreachable or returns 5xx
            LLMError: If the API call fails or returns no content
        """
        try:
            response = self.client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )

            content = response.choices[0].message.content
            if not content:
                raise LLMError("LLM returned empty response")

            return content

        except openai.APIConnectionError as e:
            raise InfrastructureError(f"Cannot reach Gemini API: {e}") from e
        except openai.APIStatusError as e:
            if e.status_code >= 500:
                raise InfrastructureError(f"Gemini API error ({e.status_code}): {e}") from e
            raise LLMError(f"Gemini API call failed ({e.status_code}): {e}") from e
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"Gemini API call failed: {e}") from e

    def generate_underwriting_analysis(self, request: AnalysisRequest) -> str:
        system_prompt = format_underwriting_system()
        user_prompt = format_underwriting_user(request)

        text = self._call_text(system_prompt, user_prompt)
        logger.info(f"Gemini returned {len(text)} characters of analysis")
        return text
