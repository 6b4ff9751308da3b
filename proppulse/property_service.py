"""
Property-data orchestration.

Thin coordination layer for one property-data request:
- Upstream lookups: proppulse.upstream (detail, then sales trend and assessment)
- Normalization: proppulse.upstream.schema (normalize_upstream)
- Derivation: proppulse.engine.derivation (derive_metrics)

Any upstream failure falls back to deterministic metrics; the caller only
sees an error when fallback is disabled.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from proppulse.config import (
    DEFAULT_DERIVATION_CONFIG,
    DEFAULT_PROPERTY_DATA_CONFIG,
    DerivationConfig,
    PropertyDataConfig,
)
from proppulse.engine.derivation import derive_metrics, generate_fallback_metrics
from proppulse.exceptions import UpstreamUnavailableError
from proppulse.models import PropertyMetrics
from proppulse.upstream.interface import PropertyDataClient
from proppulse.upstream.schema import PropertyAttributes, normalize_upstream


logger = logging.getLogger(__name__)


def fetch_attributes(
    location: str,
    client: PropertyDataClient,
    config: DerivationConfig = DEFAULT_DERIVATION_CONFIG,
) -> PropertyAttributes:
    """
    Run the provider lookups for a location and normalize the result.

    The sales-trend and assessment lookups only enrich the record; either may
    be missing.

    Raises:
        UpstreamUnavailableError: If the detail lookup fails or holds no
            usable property record
    """
    detail = client.get_property_detail(location)
    record = normalize_upstream(detail, config=config)
    if record is None:
        raise UpstreamUnavailableError(f"No property record found for {location!r}")

    sales_trend = client.get_sales_trend(record.zipcode) if record.zipcode else None
    assessment = client.get_assessment(location)

    attributes = normalize_upstream(detail, sales_trend, assessment, config)
    if attributes is None:
        raise UpstreamUnavailableError(f"Property record for {location!r} is unusable")
    return attributes


def fetch_property_metrics(
    location: str,
    client: Optional[PropertyDataClient],
    settings: PropertyDataConfig = DEFAULT_PROPERTY_DATA_CONFIG,
    config: DerivationConfig = DEFAULT_DERIVATION_CONFIG,
) -> PropertyMetrics:
    """
    Main entry point for property data.

    Args:
        location: Address or market text entered by the user
        client: Property-data client, or None when no provider is configured
        settings: Provider settings (fallback policy)
        config: Underwriting assumptions

    Returns:
        PropertyMetrics from the provider record, or deterministic fallback
        metrics when the provider is unavailable

    Raises:
        UpstreamUnavailableError: Only when the provider fails and
            ``settings.fallback_enabled`` is False
    """
    if client is None:
        if not settings.fallback_enabled:
            raise UpstreamUnavailableError("No property-data provider configured")
        logger.info(f"No property-data provider configured; using fallback for {location!r}")
        return generate_fallback_metrics(location, config)

    try:
        attributes = fetch_attributes(location, client, config)
    except UpstreamUnavailableError as e:
        if not settings.fallback_enabled:
            raise
        logger.warning(f"Property-data provider failed for {location!r}, using fallback: {e}")
        return generate_fallback_metrics(location, config)

    logger.info(f"Deriving metrics from provider record for {location!r}")
    try:
        return derive_metrics(location, attributes, config)
    except ValidationError as e:
        if not settings.fallback_enabled:
            raise UpstreamUnavailableError(
                f"Provider record for {location!r} produced invalid metrics"
            ) from e
        logger.warning(f"Provider record for {location!r} produced invalid metrics, using fallback")
        return generate_fallback_metrics(location, config)
