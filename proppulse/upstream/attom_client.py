"""
ATTOM property-data client.

Implements the PropertyDataClient Protocol over ATTOM's property API using
httpx. No retries: a failed detail lookup is reported immediately so the
caller can fall back.
"""

import logging
from typing import Any, Optional

import httpx

from proppulse.config import DEFAULT_PROPERTY_DATA_CONFIG, PropertyDataConfig
from proppulse.exceptions import UpstreamUnavailableError


logger = logging.getLogger(__name__)


class AttomPropertyClient:
    """
    ATTOM client implementing the PropertyDataClient Protocol.

    Attributes:
        config: Provider settings (API key, base URL, timeout)
        http: httpx client; injectable for tests

    Example:
        ```python
        client = AttomPropertyClient(PropertyDataConfig(upstream_api_key="..."))
        detail = client.get_property_detail("4529 Winona Court, Denver, CO")
        ```
    """

    def __init__(
        self,
        config: PropertyDataConfig = DEFAULT_PROPERTY_DATA_CONFIG,
        http: Optional[httpx.Client] = None,
    ):
        if not config.upstream_api_key:
            raise ValueError(
                "ATTOM API key required. Set ATTOM_API_KEY environment variable "
                "or pass upstream_api_key in PropertyDataConfig."
            )
        self.config = config
        self.http = http or httpx.Client(timeout=config.timeout_s)

    def _get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        url = self.config.upstream_base_url.rstrip("/") + "/" + path.lstrip("/")
        headers = {
            "Accept": "application/json",
            "APIKey": self.config.upstream_api_key or "",
        }
        try:
            response = self.http.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(f"Cannot reach ATTOM API: {e}") from e
        except UnicodeEncodeError as e:
            raise UpstreamUnavailableError(f"Cannot encode ATTOM request for {path}") from e

        if response.status_code >= 400:
            raise UpstreamUnavailableError(
                f"ATTOM API error ({response.status_code}) for {path}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(f"ATTOM API returned non-JSON body for {path}") from e

        if not isinstance(body, dict):
            raise UpstreamUnavailableError(f"ATTOM API returned unexpected body for {path}")
        return body

    def get_property_detail(self, address: str) -> dict[str, Any]:
        return self._get("property/detail", {"address1": address})

    def get_sales_trend(self, zipcode: str) -> Optional[dict[str, Any]]:
        try:
            return self._get("salestrend/detail", {"zipcode": zipcode})
        except UpstreamUnavailableError as e:
            logger.info(f"Sales trend unavailable for {zipcode}: {e}")
            return None

    def get_assessment(self, address: str) -> Optional[dict[str, Any]]:
        try:
            return self._get("assessment/detail", {"address1": address})
        except UpstreamUnavailableError as e:
            logger.info(f"Assessment unavailable for {address}: {e}")
            return None

    def close(self) -> None:
        self.http.close()
