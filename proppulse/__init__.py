"""
PropPulse underwriting service.

Derives property metrics from a location, scores deals against buy-box
criteria, and runs a model-backed confidence analysis over uploaded
financials.
"""
