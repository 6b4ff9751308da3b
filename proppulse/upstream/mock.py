"""
Mock property-data client for testing.

Returns canned ATTOM-shaped payloads, or fails on demand, without any
network access.
"""

from typing import Any, Optional

from proppulse.exceptions import UpstreamUnavailableError


def make_detail_payload(
    city: str = "Los Angeles",
    zipcode: str = "90028",
    sale_amount: Optional[float] = 2_850_000,
    building_sqft: Optional[float] = 12_400,
    year_built: Optional[int] = 1998,
    units: Optional[int] = 24,
    annual_rent: Optional[float] = None,
) -> dict[str, Any]:
    """Build a property/detail body with a single record."""
    record: dict[str, Any] = {
        "address": {"line1": "6200 Hollywood Blvd", "city": city, "zipcode": zipcode},
        "building": {
            "size": {"buildingsqft": building_sqft},
            "yearBuilt": year_built,
            "units": units,
            "propertyType": "multifamily",
        },
        "sale": {"price": {"saleamt": sale_amount}},
    }
    if annual_rent is not None:
        record["rental"] = {"rent": annual_rent}
    return {"property": [record]}


class MockPropertyDataClient:
    """
    Mock client implementing the PropertyDataClient Protocol.

    Attributes:
        detail: Payload returned by get_property_detail
        sales_trend: Payload returned by get_sales_trend
        assessment: Payload returned by get_assessment
        fail_detail: If True, get_property_detail raises UpstreamUnavailableError
        call_counts: Track method call counts for assertions
    """

    def __init__(
        self,
        detail: Optional[dict[str, Any]] = None,
        sales_trend: Optional[dict[str, Any]] = None,
        assessment: Optional[dict[str, Any]] = None,
        fail_detail: bool = False,
    ):
        self.detail = detail if detail is not None else make_detail_payload()
        self.sales_trend = sales_trend
        self.assessment = assessment
        self.fail_detail = fail_detail

        self.call_counts = {
            "get_property_detail": 0,
            "get_sales_trend": 0,
            "get_assessment": 0,
        }

    def get_property_detail(self, address: str) -> dict[str, Any]:
        self.call_counts["get_property_detail"] += 1
        if self.fail_detail:
            raise UpstreamUnavailableError("Mock upstream failure")
        return self.detail

    def get_sales_trend(self, zipcode: str) -> Optional[dict[str, Any]]:
        self.call_counts["get_sales_trend"] += 1
        return self.sales_trend

    def get_assessment(self, address: str) -> Optional[dict[str, Any]]:
        self.call_counts["get_assessment"] += 1
        return self.assessment
