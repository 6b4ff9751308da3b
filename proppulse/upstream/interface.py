"""
Property-data client interface.

All property-data providers (ATTOM, mock) implement this Protocol, so the
service can be exercised deterministically with a stub upstream.
"""

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class PropertyDataClient(Protocol):
    """
    Protocol for the three provider lookups an analysis uses.

    Methods:
        get_property_detail: Property record for an address (required)
        get_sales_trend: Zip-code sales trend (optional enrichment)
        get_assessment: Assessor record for an address (optional enrichment)
    """

    def get_property_detail(self, address: str) -> dict[str, Any]:
        """
        Fetch the property/detail payload for an address.

        Raises:
            UpstreamUnavailableError: If the provider errors or is unreachable
        """
        ...

    def get_sales_trend(self, zipcode: str) -> Optional[dict[str, Any]]:
        """Fetch the salestrend/detail payload, or None if unavailable."""
        ...

    def get_assessment(self, address: str) -> Optional[dict[str, Any]]:
        """Fetch the assessment/detail payload, or None if unavailable."""
        ...
