"""
Custom exceptions for the PropPulse underwriting service.

This module defines exceptions that are distinct from input validation
errors and represent infrastructure or external service failures.
"""


class InfrastructureError(Exception):
    """
    Raised when external services are unreachable or fail unexpectedly.

    This exception type signals that the failure is due to infrastructure
    issues, not invalid input or business logic violations.

    Examples:
        - LLM API connection timeout
        - LLM API returns 5xx error
    """

    pass


class UpstreamUnavailableError(InfrastructureError):
    """
    Raised when the property-data provider fails or has no usable record.

    Normally recovered locally by the deterministic fallback generator and
    never seen by API callers.
    """

    pass


class InvalidUpstreamResponseError(Exception):
    """Raised when model output is not a usable JSON object."""

    kind = "invalid upstream response"


class LLMError(Exception):
    """Raised when an LLM call fails for a non-infrastructure reason."""

    pass
