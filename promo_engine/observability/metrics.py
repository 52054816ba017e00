"""
============================================================================
Promotion Decision Engine v1.0.0
Prometheus Metrics - Engine Observability
============================================================================

Reliability Level: L5 High
Input Constraints: Ratio values must be Decimal
Side Effects: Updates Prometheus metrics registry

METRICS EXPOSED
---------------
- promotion_calculations_total: Counter of calculations by mechanic
- promotion_claims_processed_total: Counter of claims by outcome
- promotion_validations_total: Counter of validations by result
- promotion_conflicts_detected_total: Counter of conflicts by category/severity
- promotion_forecast_confidence: Histogram of forecast confidence

ZERO-FLOAT MANDATE
------------------
Decimals are converted to float ONLY at the Prometheus boundary.
A metric failure is logged and never interrupts the engine operation.

============================================================================
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from prometheus_client import Counter, Histogram

from promo_services.promotion_models import ConflictRecord

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# PROMETHEUS METRICS DEFINITIONS
# ============================================================================

CALCULATIONS_TOTAL = Counter(
    "promotion_calculations_total",
    "Total number of promotion calculations performed",
    ["mechanic"]
)

CLAIMS_PROCESSED_TOTAL = Counter(
    "promotion_claims_processed_total",
    "Total number of claims processed by outcome",
    ["outcome"]
)

VALIDATIONS_TOTAL = Counter(
    "promotion_validations_total",
    "Total number of promotion validations by result",
    ["result"]
)

CONFLICTS_DETECTED_TOTAL = Counter(
    "promotion_conflicts_detected_total",
    "Total number of promotion conflicts detected",
    ["category", "severity"]
)

# Confidence is capped at 0.95
FORECAST_CONFIDENCE = Histogram(
    "promotion_forecast_confidence",
    "Distribution of promotion forecast confidence",
    buckets=[0.1, 0.2, 0.3, 0.35, 0.4, 0.5, 0.56, 0.6, 0.7, 0.8, 0.9, 0.95]
)


# ============================================================================
# METRIC UPDATE FUNCTIONS
# ============================================================================

def record_calculation(mechanic: str, promotion_id: Optional[str] = None) -> None:
    try:
        CALCULATIONS_TOTAL.labels(mechanic=mechanic).inc()
        logger.debug(
            "Metric: calculation | mechanic=%s | promotion_id=%s",
            mechanic, promotion_id
        )
    except Exception as e:
        logger.error(
            "[OBS-001] Failed to record calculation metric | error=%s",
            str(e)
        )


def record_claim_processed(outcome: str, promotion_id: Optional[str] = None) -> None:
    """
    Record a claim outcome.

    Args:
        outcome: APPROVED, PENDING_REVIEW, INELIGIBLE or INVALID
        promotion_id: Optional tracking ID
    """
    try:
        CLAIMS_PROCESSED_TOTAL.labels(outcome=outcome).inc()
        logger.debug(
            "Metric: claim_processed | outcome=%s | promotion_id=%s",
            outcome, promotion_id
        )
    except Exception as e:
        logger.error(
            "[OBS-002] Failed to record claim_processed metric | error=%s",
            str(e)
        )


def record_validation(valid: bool, promotion_id: Optional[str] = None) -> None:
    try:
        VALIDATIONS_TOTAL.labels(result="valid" if valid else "invalid").inc()
    except Exception as e:
        logger.error(
            "[OBS-003] Failed to record validation metric | error=%s",
            str(e)
        )


def record_conflicts(conflicts: Iterable[ConflictRecord]) -> None:
    try:
        for conflict in conflicts:
            CONFLICTS_DETECTED_TOTAL.labels(
                category=conflict.category.value,
                severity=conflict.severity.value,
            ).inc()
    except Exception as e:
        logger.error(
            "[OBS-004] Failed to record conflicts metric | error=%s",
            str(e)
        )


def record_forecast_confidence(confidence: Decimal, promotion_id: Optional[str] = None) -> None:
    """
    Observe a forecast confidence value.

    ZERO-FLOAT MANDATE: Decimal converted to float at Prometheus boundary.
    """
    try:
        if not isinstance(confidence, Decimal):
            logger.error(
                "[OBS-000] confidence must be Decimal, got %s",
                type(confidence).__name__
            )
            return

        # Convert to float ONLY at Prometheus boundary
        FORECAST_CONFIDENCE.observe(float(confidence))
        logger.debug(
            "Metric: forecast_confidence | value=%s | promotion_id=%s",
            str(confidence), promotion_id
        )
    except Exception as e:
        logger.error(
            "[OBS-005] Failed to record forecast_confidence metric | error=%s",
            str(e)
        )


# ============================================================================
# Reliability Audit
# ============================================================================
#
# Decimal Integrity: Verified (float conversion only at Prometheus boundary)
# Failure Isolation: Verified (metric errors logged, never raised)
# Error Codes: OBS-000 through OBS-005
#
# ============================================================================
