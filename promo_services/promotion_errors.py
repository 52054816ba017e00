"""
============================================================================
Promotion Decision Engine - Error Taxonomy
============================================================================

Reliability Level: L6 Critical
Traceability: Every error carries a unique error code for audit logging

Calculation and forecast errors propagate to the caller unchanged (fail
fast). Validation and conflict detection never raise for business-rule
findings; they report through result structures instead.

ERROR CODES:
    - PROMO-001: Promotion or claim not found
    - PROMO-002: Invalid volume (zero/negative where a divisor is needed)
    - PROMO-003: Unsupported promotion mechanic
    - PROMO-004: Invalid base price
    - PROMO-005: Invalid forecast period label
    - VAL-001:   Promotion definition failed business-rule validation
    - CLAIM-001: Claim is not eligible
    - CLAIM-002: Invalid claim status transition
    - SYS-001:   Collaborator failure (persistence, market data, event sink)
    - DEC-001:   Decimal conversion failed
    - DEC-002:   Division by zero
    - CFG-001:   Configuration invalid or missing

============================================================================
"""

from typing import List, Optional


class PromotionErrorCode:
    """Promotion engine error codes for audit logging."""
    NOT_FOUND = "PROMO-001"
    INVALID_VOLUME = "PROMO-002"
    UNSUPPORTED_MECHANIC = "PROMO-003"
    INVALID_PRICE = "PROMO-004"
    INVALID_FORECAST_PERIOD = "PROMO-005"
    VALIDATION_FAILED = "VAL-001"
    CLAIM_INELIGIBLE = "CLAIM-001"
    INVALID_CLAIM_TRANSITION = "CLAIM-002"
    SYSTEM_ERROR = "SYS-001"
    DECIMAL_CONVERSION = "DEC-001"
    DIVISION_BY_ZERO = "DEC-002"
    CONFIG_INVALID = "CFG-001"


class PromotionEngineError(Exception):
    """
    Base class for all promotion engine errors.

    Attributes:
        error_code: Audit error code
        message: Human-readable message without the code prefix
    """

    default_code = PromotionErrorCode.SYSTEM_ERROR

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code or self.default_code
        self.message = message
        super().__init__(f"[{self.error_code}] {message}")


class NotFoundError(PromotionEngineError):
    """Promotion or claim absent from the repository."""

    default_code = PromotionErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidVolumeError(PromotionEngineError):
    """Zero or negative volume where the calculation cannot proceed."""

    default_code = PromotionErrorCode.INVALID_VOLUME


class UnsupportedMechanicError(PromotionEngineError):
    """Mechanic outside the closed PromotionMechanic set."""

    default_code = PromotionErrorCode.UNSUPPORTED_MECHANIC


class InvalidPriceError(PromotionEngineError):
    default_code = PromotionErrorCode.INVALID_PRICE


class InvalidForecastPeriodError(PromotionEngineError):
    default_code = PromotionErrorCode.INVALID_FORECAST_PERIOD


class ValidationError(PromotionEngineError):
    """
    Aggregated business-rule violations.

    Raised only by callers that want to turn a failed ValidationResult into
    an exception (e.g. activation); the gate itself reports, never raises.
    """

    default_code = PromotionErrorCode.VALIDATION_FAILED

    def __init__(self, errors: List[str], warnings: Optional[List[str]] = None):
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        super().__init__("; ".join(self.errors) or "Validation failed")


class IneligibleClaimError(PromotionEngineError):
    """Claim fails eligibility; reason is human-readable."""

    default_code = PromotionErrorCode.CLAIM_INELIGIBLE

    def __init__(self, reason: str, promotion_id: Optional[str] = None):
        self.reason = reason
        self.promotion_id = promotion_id
        super().__init__(f"Claim not eligible: {reason}")


class InvalidClaimTransitionError(PromotionEngineError):
    default_code = PromotionErrorCode.INVALID_CLAIM_TRANSITION


class PromotionSystemError(PromotionEngineError):
    """
    Collaborator failure (repository, market data, event sink).

    Named to avoid shadowing the built-in SystemError.
    """

    default_code = PromotionErrorCode.SYSTEM_ERROR

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation
        super().__init__(message)


class DecimalConversionError(PromotionEngineError, ValueError):
    default_code = PromotionErrorCode.DECIMAL_CONVERSION


class DivisionByZeroError(PromotionEngineError, ArithmeticError):
    default_code = PromotionErrorCode.DIVISION_BY_ZERO


class ConfigurationError(PromotionEngineError):
    """Raised at startup when configuration is invalid (fail-closed)."""

    default_code = PromotionErrorCode.CONFIG_INVALID


__all__ = [
    "PromotionErrorCode",
    "PromotionEngineError",
    "NotFoundError",
    "InvalidVolumeError",
    "UnsupportedMechanicError",
    "InvalidPriceError",
    "InvalidForecastPeriodError",
    "ValidationError",
    "IneligibleClaimError",
    "InvalidClaimTransitionError",
    "PromotionSystemError",
    "DecimalConversionError",
    "DivisionByZeroError",
    "ConfigurationError",
]
