"""
LLM module for PropPulse.

Contains the LLM client interface and implementations for the underwriting
confidence analysis.
"""

from proppulse.llm.interface import LLMClient
from proppulse.llm.mock import MockLLMClient

__all__ = [
    "LLMClient",
    "MockLLMClient",
]
