"""
Upstream property-data module for PropPulse.

Contains the property-data client interface, its ATTOM and mock
implementations, and the partial schema used to normalize provider payloads.
"""

from proppulse.upstream.interface import PropertyDataClient
from proppulse.upstream.mock import MockPropertyDataClient
from proppulse.upstream.schema import PropertyAttributes, normalize_upstream

__all__ = [
    "PropertyDataClient",
    "MockPropertyDataClient",
    "PropertyAttributes",
    "normalize_upstream",
]
