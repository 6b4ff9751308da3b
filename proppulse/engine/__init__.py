"""
Engine module for PropPulse.

Contains pure functions for metric derivation and deal scoring.
"""

from proppulse.engine.derivation import (
    derive_metrics,
    generate_fallback_metrics,
    location_hash,
)
from proppulse.engine.formatting import to_display
from proppulse.engine.scoring import (
    evaluate_deal,
    inputs_from_display,
    parse_metric_number,
)

__all__ = [
    # Derivation
    "derive_metrics",
    "generate_fallback_metrics",
    "location_hash",
    # Display
    "to_display",
    # Scoring
    "evaluate_deal",
    "inputs_from_display",
    "parse_metric_number",
]
