"""
Partial schema for ATTOM property-data payloads.

Every upstream field is optional. Payloads are validated once here and
collapsed into a fully defaulted PropertyAttributes record, so the
derivation engine never has to handle a missing field.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from proppulse.config import DEFAULT_DERIVATION_CONFIG, DerivationConfig


logger = logging.getLogger(__name__)


class _Partial(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


# =============================================================================
# Raw upstream shapes
# =============================================================================


class UpstreamAddress(_Partial):
    line1: Optional[str] = None
    city: Optional[str] = None
    locality: Optional[str] = None
    zipcode: Optional[str] = None
    postal1: Optional[str] = None


class UpstreamBuildingSize(_Partial):
    buildingsqft: Optional[float] = None


class UpstreamBuilding(_Partial):
    size: Optional[UpstreamBuildingSize] = None
    year_built: Optional[int] = Field(None, alias="yearBuilt")
    units: Optional[int] = None
    property_type: Optional[str] = Field(None, alias="propertyType")


class UpstreamSalePrice(_Partial):
    saleamt: Optional[float] = None


class UpstreamSale(_Partial):
    price: Optional[UpstreamSalePrice] = None


class UpstreamRental(_Partial):
    rent: Optional[float] = Field(None, ge=0)


class UpstreamPropertyRecord(_Partial):
    address: Optional[UpstreamAddress] = None
    building: Optional[UpstreamBuilding] = None
    sale: Optional[UpstreamSale] = None
    rental: Optional[UpstreamRental] = None


class UpstreamAssessed(_Partial):
    assessed_value: Optional[float] = Field(None, alias="assessedValue")


class UpstreamAssessment(_Partial):
    assessed: Optional[UpstreamAssessed] = None


class UpstreamTrend(_Partial):
    appreciation: Optional[float] = None


# =============================================================================
# Normalized record
# =============================================================================


class PropertyAttributes(BaseModel):
    """Fully defaulted property facts consumed by derive_metrics."""

    model_config = ConfigDict(frozen=True)

    property_value: int = Field(..., gt=0)
    annual_rent: Optional[float] = Field(None, description="None = impute from value")
    square_footage: int = Field(..., gt=0)
    build_year: int
    units: int = Field(..., gt=0)
    property_type: str
    city: str = ""
    zipcode: Optional[str] = None
    sale_price: Optional[float] = None
    assessed_value: Optional[float] = None
    appreciation_rate: Optional[float] = Field(
        None, description="Sales-trend appreciation (%), None when trend data is absent"
    )


def first_property(detail: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Return the first record of a property/detail payload, if any."""
    if not isinstance(detail, dict):
        return None
    records = detail.get("property")
    if not isinstance(records, list) or not records or not isinstance(records[0], dict):
        return None
    return records[0]


def _first_assessment(assessment: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if not isinstance(assessment, dict):
        return None
    records = assessment.get("assessment")
    if not isinstance(records, list) or not records or not isinstance(records[0], dict):
        return None
    return records[0]


def normalize_upstream(
    detail: Optional[dict[str, Any]],
    sales_trend: Optional[dict[str, Any]] = None,
    assessment: Optional[dict[str, Any]] = None,
    config: DerivationConfig = DEFAULT_DERIVATION_CONFIG,
) -> Optional[PropertyAttributes]:
    """
    Validate raw upstream payloads and build a fully defaulted record.

    Args:
        detail: property/detail response body
        sales_trend: salestrend/detail response body (optional)
        assessment: assessment/detail response body (optional)
        config: Derivation defaults for missing fields

    Returns:
        PropertyAttributes, or None when the detail payload holds no usable
        property record. Malformed trend/assessment payloads are ignored.
    """
    raw_record = first_property(detail)
    if raw_record is None:
        return None

    try:
        record = UpstreamPropertyRecord.model_validate(raw_record)
    except ValidationError as e:
        logger.warning(f"Upstream property record failed validation: {e.error_count()} errors")
        return None

    assessed_value: Optional[float] = None
    raw_assessment = _first_assessment(assessment)
    if raw_assessment is not None:
        try:
            parsed = UpstreamAssessment.model_validate(raw_assessment)
            if parsed.assessed is not None:
                assessed_value = parsed.assessed.assessed_value
        except ValidationError:
            logger.warning("Ignoring malformed assessment payload")

    appreciation: Optional[float] = None
    if isinstance(sales_trend, dict) and isinstance(sales_trend.get("trend"), dict):
        try:
            appreciation = UpstreamTrend.model_validate(sales_trend["trend"]).appreciation
        except ValidationError:
            logger.warning("Ignoring malformed sales-trend payload")

    building = record.building or UpstreamBuilding()
    address = record.address or UpstreamAddress()
    sale_price = record.sale.price.saleamt if record.sale and record.sale.price else None
    square_footage = building.size.buildingsqft if building.size else None

    priced = [
        int(round(v)) for v in (assessed_value, sale_price) if v is not None and round(v) > 0
    ]
    property_value = priced[0] if priced else config.default_property_value

    try:
        return PropertyAttributes(
            property_value=property_value,
            annual_rent=record.rental.rent if record.rental and record.rental.rent else None,
            square_footage=int(square_footage or config.default_square_footage),
            build_year=building.year_built or config.default_build_year,
            units=building.units or config.default_units,
            property_type=building.property_type or config.default_property_type,
            city=address.city or address.locality or "",
            zipcode=address.zipcode or address.postal1,
            sale_price=sale_price,
            assessed_value=assessed_value,
            appreciation_rate=appreciation,
        )
    except ValidationError as e:
        logger.warning(f"Upstream property record is unusable: {e.error_count()} errors")
        return None
