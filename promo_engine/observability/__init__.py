"""
============================================================================
Promotion Decision Engine v1.0.0
Observability Module - Prometheus Metrics
============================================================================

Reliability Level: L5 High
Side Effects: Exposes Prometheus metrics

============================================================================
"""

from promo_engine.observability.metrics import (
    CALCULATIONS_TOTAL,
    CLAIMS_PROCESSED_TOTAL,
    VALIDATIONS_TOTAL,
    CONFLICTS_DETECTED_TOTAL,
    FORECAST_CONFIDENCE,
    record_calculation,
    record_claim_processed,
    record_validation,
    record_conflicts,
    record_forecast_confidence,
)

__all__ = [
    "CALCULATIONS_TOTAL",
    "CLAIMS_PROCESSED_TOTAL",
    "VALIDATIONS_TOTAL",
    "CONFLICTS_DETECTED_TOTAL",
    "FORECAST_CONFIDENCE",
    "record_calculation",
    "record_claim_processed",
    "record_validation",
    "record_conflicts",
    "record_forecast_confidence",
]
