"""
============================================================================
Promotion Decision Engine - Configuration
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: Thresholds are decimal.Decimal quantized ROUND_HALF_EVEN

This module provides configuration management for the promotion engine:
- Environment variable parsing with type safety (.env supported)
- Default values for every business rule and policy constant
- Fail-closed validation on nonsensical configuration (CFG-001)

ENVIRONMENT VARIABLES:
    - MAX_PROMOTION_DURATION: Maximum promotion length in days (default: 90)
    - MIN_PROMOTION_DURATION: Minimum promotion length in days (default: 1)
    - PROMOTION_LEAD_TIME: Advisory lead time in days (default: 7)
    - MAX_DISCOUNT_PERCENTAGE: Discount ceiling in percent (default: 50)
    - MIN_ROI_THRESHOLD: Minimum acceptable target ROI (default: 1.2)
    - CLAIM_AUTO_VALIDATION: Auto-approval ceiling for claim amounts (default: 1000)
    - CLAIM_EVENTS_TOPIC: Topic for claim events (default: claim.events)
    - DEFAULT_CURRENCY: Currency for new records (default: USD)
    - CACHE_CAMPAIGNS_TTL: Calculation cache TTL seconds (default: 900)
    - CACHE_PERFORMANCE_TTL: Forecast cache TTL seconds (default: 1800)
    - FORECAST_SUFFICIENT_HISTORY: Snapshot count above which history is "sufficient" (default: 10)
    - FORECAST_DATA_QUALITY_SUFFICIENT: Data quality score for sufficient history (default: 0.8)
    - FORECAST_DATA_QUALITY_SPARSE: Data quality score for sparse history (default: 0.5)
    - FORECAST_FACTOR_RELIABILITY: Trust in market/seasonal factor sourcing (default: 0.7)
    - FORECAST_MAX_CONFIDENCE: Confidence ceiling (default: 0.95)

ERROR CODES:
    - CFG-001: Configuration invalid

============================================================================
"""

from decimal import Decimal, ROUND_HALF_EVEN, InvalidOperation
from typing import Optional, List
from dataclasses import dataclass, field
import logging
import os

from dotenv import load_dotenv

from promo_services.promotion_errors import ConfigurationError, PromotionErrorCode

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

PRECISION_THRESHOLD = Decimal("0.01")
PRECISION_SCORE = Decimal("0.0001")


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_MAX_DURATION_DAYS = 90
DEFAULT_MIN_DURATION_DAYS = 1
DEFAULT_LEAD_TIME_DAYS = 7
DEFAULT_MAX_DISCOUNT_PERCENTAGE = Decimal("50.00")
DEFAULT_MIN_ROI_THRESHOLD = Decimal("1.20")
DEFAULT_AUTO_VALIDATION_THRESHOLD = Decimal("1000.00")
DEFAULT_CLAIM_EVENTS_TOPIC = "claim.events"
DEFAULT_CURRENCY = "USD"
DEFAULT_CALCULATION_TTL_SECONDS = 900
DEFAULT_FORECAST_TTL_SECONDS = 1800

# Forecast confidence policy: dataQuality * factorReliability, capped
DEFAULT_SUFFICIENT_HISTORY = 10
DEFAULT_DATA_QUALITY_SUFFICIENT = Decimal("0.8000")
DEFAULT_DATA_QUALITY_SPARSE = Decimal("0.5000")
DEFAULT_FACTOR_RELIABILITY = Decimal("0.7000")
DEFAULT_MAX_CONFIDENCE = Decimal("0.9500")


# =============================================================================
# PromotionEngineConfig Class
# =============================================================================

@dataclass
class PromotionEngineConfig:
    """
    Promotion engine configuration.

    ============================================================================
    CONFIGURATION PARAMETERS:
    ============================================================================
    - max_duration_days / min_duration_days: Allowed promotion length
    - lead_time_days: Start sooner than this yields a warning (not an error)
    - max_discount_percentage: Ceiling for percentage and tier discounts (percent)
    - min_roi_threshold: Target ROI below this yields a warning
    - auto_validation_threshold: Claims at or below are auto-approved
    - claim_events_topic: Event sink topic for claim.created
    - calculation_ttl_seconds / forecast_ttl_seconds: Cache lifetimes
    - forecast_*: Confidence scoring policy constants
    ============================================================================

    Reliability Level: L6 Critical
    Input Constraints: Durations positive, min <= max, scores within [0, 1]
    Side Effects: Logs configuration on load
    """

    max_duration_days: int = DEFAULT_MAX_DURATION_DAYS
    min_duration_days: int = DEFAULT_MIN_DURATION_DAYS
    lead_time_days: int = DEFAULT_LEAD_TIME_DAYS
    max_discount_percentage: Decimal = field(
        default_factory=lambda: DEFAULT_MAX_DISCOUNT_PERCENTAGE
    )
    min_roi_threshold: Decimal = field(default_factory=lambda: DEFAULT_MIN_ROI_THRESHOLD)
    auto_validation_threshold: Decimal = field(
        default_factory=lambda: DEFAULT_AUTO_VALIDATION_THRESHOLD
    )
    claim_events_topic: str = DEFAULT_CLAIM_EVENTS_TOPIC
    default_currency: str = DEFAULT_CURRENCY
    calculation_ttl_seconds: int = DEFAULT_CALCULATION_TTL_SECONDS
    forecast_ttl_seconds: int = DEFAULT_FORECAST_TTL_SECONDS
    forecast_sufficient_history: int = DEFAULT_SUFFICIENT_HISTORY
    forecast_data_quality_sufficient: Decimal = field(
        default_factory=lambda: DEFAULT_DATA_QUALITY_SUFFICIENT
    )
    forecast_data_quality_sparse: Decimal = field(
        default_factory=lambda: DEFAULT_DATA_QUALITY_SPARSE
    )
    forecast_factor_reliability: Decimal = field(
        default_factory=lambda: DEFAULT_FACTOR_RELIABILITY
    )
    forecast_max_confidence: Decimal = field(default_factory=lambda: DEFAULT_MAX_CONFIDENCE)

    def __post_init__(self) -> None:
        """Coerce and quantize Decimal thresholds with ROUND_HALF_EVEN."""
        for name in ("max_discount_percentage", "min_roi_threshold", "auto_validation_threshold"):
            setattr(self, name, _quantize(getattr(self, name), PRECISION_THRESHOLD))
        for name in (
            "forecast_data_quality_sufficient",
            "forecast_data_quality_sparse",
            "forecast_factor_reliability",
            "forecast_max_confidence",
        ):
            setattr(self, name, _quantize(getattr(self, name), PRECISION_SCORE))

    def validate(self) -> None:
        """
        Validate configuration consistency.

        Raises:
            ConfigurationError: If any value is out of range (CFG-001)
        """
        errors: List[str] = []

        if self.min_duration_days < 0:
            errors.append(f"MIN_PROMOTION_DURATION must be non-negative, got: {self.min_duration_days}")
        if self.max_duration_days <= 0:
            errors.append(f"MAX_PROMOTION_DURATION must be positive, got: {self.max_duration_days}")
        if self.min_duration_days > self.max_duration_days:
            errors.append(
                f"MIN_PROMOTION_DURATION ({self.min_duration_days}) exceeds "
                f"MAX_PROMOTION_DURATION ({self.max_duration_days})"
            )
        if self.lead_time_days < 0:
            errors.append(f"PROMOTION_LEAD_TIME must be non-negative, got: {self.lead_time_days}")
        if not Decimal("0") < self.max_discount_percentage <= Decimal("100"):
            errors.append(
                f"MAX_DISCOUNT_PERCENTAGE must be in (0, 100], got: {self.max_discount_percentage}"
            )
        if self.auto_validation_threshold < Decimal("0"):
            errors.append(
                f"CLAIM_AUTO_VALIDATION must be non-negative, got: {self.auto_validation_threshold}"
            )
        if not self.claim_events_topic.strip():
            errors.append("CLAIM_EVENTS_TOPIC must not be empty")
        if self.calculation_ttl_seconds < 0 or self.forecast_ttl_seconds < 0:
            errors.append("Cache TTLs must be non-negative")
        for name in (
            "forecast_data_quality_sufficient",
            "forecast_data_quality_sparse",
            "forecast_factor_reliability",
            "forecast_max_confidence",
        ):
            value = getattr(self, name)
            if not Decimal("0") <= value <= Decimal("1"):
                errors.append(f"{name.upper()} must be within [0, 1], got: {value}")

        if errors:
            error_msg = "Promotion engine configuration invalid: " + "; ".join(errors)
            logger.error(f"[{PromotionErrorCode.CONFIG_INVALID}] {error_msg}")
            raise ConfigurationError(error_msg)

        logger.info(
            f"[PROMO-CONFIG] Configuration validated | "
            f"duration_days={self.min_duration_days}..{self.max_duration_days} | "
            f"lead_time_days={self.lead_time_days} | "
            f"max_discount_percentage={self.max_discount_percentage} | "
            f"auto_validation_threshold={self.auto_validation_threshold}"
        )

    @classmethod
    def from_environment(cls, validate: bool = True) -> "PromotionEngineConfig":
        """
        Load configuration from environment variables (and a .env file).

        Malformed values fall back to their defaults with a warning; the
        resulting configuration is then validated (fail-closed).

        Raises:
            ConfigurationError: If validate is True and values are inconsistent
        """
        load_dotenv()

        config = cls(
            max_duration_days=_env_int("MAX_PROMOTION_DURATION", DEFAULT_MAX_DURATION_DAYS),
            min_duration_days=_env_int("MIN_PROMOTION_DURATION", DEFAULT_MIN_DURATION_DAYS),
            lead_time_days=_env_int("PROMOTION_LEAD_TIME", DEFAULT_LEAD_TIME_DAYS),
            max_discount_percentage=_env_decimal(
                "MAX_DISCOUNT_PERCENTAGE", DEFAULT_MAX_DISCOUNT_PERCENTAGE
            ),
            min_roi_threshold=_env_decimal("MIN_ROI_THRESHOLD", DEFAULT_MIN_ROI_THRESHOLD),
            auto_validation_threshold=_env_decimal(
                "CLAIM_AUTO_VALIDATION", DEFAULT_AUTO_VALIDATION_THRESHOLD
            ),
            claim_events_topic=os.environ.get(
                "CLAIM_EVENTS_TOPIC", DEFAULT_CLAIM_EVENTS_TOPIC
            ).strip(),
            default_currency=os.environ.get("DEFAULT_CURRENCY", DEFAULT_CURRENCY).strip().upper(),
            calculation_ttl_seconds=_env_int("CACHE_CAMPAIGNS_TTL", DEFAULT_CALCULATION_TTL_SECONDS),
            forecast_ttl_seconds=_env_int("CACHE_PERFORMANCE_TTL", DEFAULT_FORECAST_TTL_SECONDS),
            forecast_sufficient_history=_env_int(
                "FORECAST_SUFFICIENT_HISTORY", DEFAULT_SUFFICIENT_HISTORY
            ),
            forecast_data_quality_sufficient=_env_decimal(
                "FORECAST_DATA_QUALITY_SUFFICIENT", DEFAULT_DATA_QUALITY_SUFFICIENT
            ),
            forecast_data_quality_sparse=_env_decimal(
                "FORECAST_DATA_QUALITY_SPARSE", DEFAULT_DATA_QUALITY_SPARSE
            ),
            forecast_factor_reliability=_env_decimal(
                "FORECAST_FACTOR_RELIABILITY", DEFAULT_FACTOR_RELIABILITY
            ),
            forecast_max_confidence=_env_decimal(
                "FORECAST_MAX_CONFIDENCE", DEFAULT_MAX_CONFIDENCE
            ),
        )

        logger.info(
            f"[PROMO-CONFIG] Loading configuration from environment | "
            f"MAX_PROMOTION_DURATION={config.max_duration_days} | "
            f"MIN_PROMOTION_DURATION={config.min_duration_days} | "
            f"PROMOTION_LEAD_TIME={config.lead_time_days} | "
            f"CLAIM_EVENTS_TOPIC={config.claim_events_topic}"
        )

        if validate:
            config.validate()

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for logging (Decimals as strings)."""
        return {
            "max_duration_days": self.max_duration_days,
            "min_duration_days": self.min_duration_days,
            "lead_time_days": self.lead_time_days,
            "max_discount_percentage": str(self.max_discount_percentage),
            "min_roi_threshold": str(self.min_roi_threshold),
            "auto_validation_threshold": str(self.auto_validation_threshold),
            "claim_events_topic": self.claim_events_topic,
            "default_currency": self.default_currency,
            "calculation_ttl_seconds": self.calculation_ttl_seconds,
            "forecast_ttl_seconds": self.forecast_ttl_seconds,
            "forecast_sufficient_history": self.forecast_sufficient_history,
            "forecast_data_quality_sufficient": str(self.forecast_data_quality_sufficient),
            "forecast_data_quality_sparse": str(self.forecast_data_quality_sparse),
            "forecast_factor_reliability": str(self.forecast_factor_reliability),
            "forecast_max_confidence": str(self.forecast_max_confidence),
        }


# =============================================================================
# Environment Parsing Helpers
# =============================================================================

def _quantize(value, precision: Decimal) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(precision, rounding=ROUND_HALF_EVEN)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning(f"[PROMO-CONFIG] Invalid {name} value: {raw}, using default: {default}")
        return default


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        logger.warning(f"[PROMO-CONFIG] Invalid {name} value: {raw}, using default: {default}")
        return default
    if not value.is_finite():
        logger.warning(f"[PROMO-CONFIG] Non-finite {name} value: {raw}, using default: {default}")
        return default
    return value


# =============================================================================
# Module-Level Configuration Instance
# =============================================================================

_config_instance: Optional[PromotionEngineConfig] = None


def get_promotion_config(validate: bool = True) -> PromotionEngineConfig:
    """
    Get the global configuration instance, loading it from the environment
    on first access.
    """
    global _config_instance

    if _config_instance is None:
        _config_instance = PromotionEngineConfig.from_environment(validate=validate)

    return _config_instance


def reset_promotion_config() -> None:
    """Reset the global configuration instance (used by tests)."""
    global _config_instance
    _config_instance = None
    logger.debug("[PROMO-CONFIG] Configuration instance reset")


__all__ = [
    "PromotionEngineConfig",
    "DEFAULT_MAX_DURATION_DAYS",
    "DEFAULT_MIN_DURATION_DAYS",
    "DEFAULT_LEAD_TIME_DAYS",
    "DEFAULT_MAX_DISCOUNT_PERCENTAGE",
    "DEFAULT_MIN_ROI_THRESHOLD",
    "DEFAULT_AUTO_VALIDATION_THRESHOLD",
    "DEFAULT_CLAIM_EVENTS_TOPIC",
    "get_promotion_config",
    "reset_promotion_config",
]


# =============================================================================
# Reliability Audit
# =============================================================================
#
# Module: promo_services/promotion_config.py
# Decimal Integrity: [Verified - ROUND_HALF_EVEN for every threshold]
# Error Codes: [CFG-001 documented and implemented]
# Safety: [Verified - fail-closed on inconsistent configuration]
#
# =============================================================================
