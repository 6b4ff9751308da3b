"""
LLM Client Interface for PropPulse.

This module defines the abstract interface for LLM clients.
All LLM implementations (mock, Gemini) must implement this Protocol.
"""

from typing import Protocol, runtime_checkable

from proppulse.models import AnalysisRequest


@runtime_checkable
class LLMClient(Protocol):
    """
    Protocol defining the LLM client interface.

    Methods:
        generate_underwriting_analysis: Produce the raw underwriting analysis text
    """

    def generate_underwriting_analysis(self, request: AnalysisRequest) -> str:
        """
        Generate an underwriting analysis from T12 / rent-roll data.

        Args:
            request: Uploaded financial data, property info and buyer criteria

        Returns:
            Raw model text, expected to be a JSON object, possibly wrapped in
            a Markdown code fence

        Note:
            The output is untrusted. Callers parse it and enforce the
            pass/fail contract locally.
        """
        ...
