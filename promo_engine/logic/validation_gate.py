# ============================================================================
# Promotion Decision Engine v1.0.0
# Validation Gate - Business-Rule Aggregation for Promotion Definitions
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Decide whether a promotion definition may be activated
#
# CHECKS (all run, none short-circuits another):
#   - Start strictly before end           (error)
#   - Duration within [min, max] days     (error)
#   - Lead time before start              (warning)
#   - Budget > 0                          (error)
#   - Discount ceiling per mechanic       (error)
#   - Discount tiers ascending/contiguous (error, tiered only)
#   - Products and channels non-empty     (error)
#   - Target ROI below minimum            (warning)
#   - Conflicts: any HIGH                 (error), otherwise (warning)
#
# FAIL-CLOSED:
#   Any exception inside the gate (repository down, malformed record)
#   yields valid=False with a single system error. The gate never raises.
#
# ============================================================================

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, List, Mapping, Optional

from pydantic import ValidationError as PayloadValidationError

from promo_engine.logic.conflict_detector import ConflictDetector
from promo_engine.schemas.promotion_payloads import PromotionDefinition
from promo_services.promotion_config import PromotionEngineConfig, get_promotion_config
from promo_services.promotion_models import (
    Promotion,
    PromotionMechanic,
    ValidationResult,
)
from promo_services.promotion_repository import PromotionRepository

logger = logging.getLogger(__name__)

SYSTEM_ERROR_MESSAGE = "Validation failed due to system error"


def _pct(value: Decimal) -> str:
    """50.00 -> '50', 12.50 -> '12.5'"""
    return format(value.normalize(), "f")


class ValidationGate:
    """
    Aggregated promotion validation.

    Example Usage:
        gate = ValidationGate(repository)
        result = gate.validate(promotion)
        if not result.valid:
            raise ValidationError(result.errors, result.warnings)
    """

    def __init__(
        self,
        repository: PromotionRepository,
        conflict_detector: Optional[ConflictDetector] = None,
        config: Optional[PromotionEngineConfig] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.repository = repository
        self.conflict_detector = conflict_detector or ConflictDetector()
        self.config = config or get_promotion_config()
        self._today = today or (lambda: datetime.now(timezone.utc).date())

    def validate(self, promotion: Promotion, today: Optional[date] = None) -> ValidationResult:
        try:
            result = self._run_checks(promotion, today or self._today())
        except Exception as e:
            logger.error(
                f"[SYS-001] Promotion validation failed | promotion_id={promotion.id} | "
                f"operation=validate | error={type(e).__name__}: {e}"
            )
            return ValidationResult(errors=[SYSTEM_ERROR_MESSAGE], warnings=[])

        logger.info(
            f"[PROMO-VALIDATE] Validation complete | promotion_id={promotion.id} | "
            f"valid={result.valid} | errors={len(result.errors)} | "
            f"warnings={len(result.warnings)}"
        )
        return result

    def validate_payload(
        self,
        payload: Mapping[str, Any],
        today: Optional[date] = None,
    ) -> ValidationResult:
        """Schema-check a raw definition, then run the business rules."""
        try:
            definition = PromotionDefinition.model_validate(dict(payload))
        except PayloadValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc']) or 'promotion'}: {err['msg']}"
                for err in e.errors()
            ]
            logger.warning(
                f"[VAL-001] Promotion payload rejected | "
                f"promotion_id={payload.get('id')} | errors={len(errors)}"
            )
            return ValidationResult(errors=errors, warnings=[])
        return self.validate(definition.to_promotion(), today)

    # ------------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------------

    def _run_checks(self, promotion: Promotion, today: date) -> ValidationResult:
        cfg = self.config
        errors = []  # type: List[str]
        warnings = []  # type: List[str]

        if promotion.start_date >= promotion.end_date:
            errors.append("Start date must be before end date")

        duration = (promotion.end_date - promotion.start_date).days
        if duration > cfg.max_duration_days:
            errors.append(f"Promotion duration cannot exceed {cfg.max_duration_days} days")
        if duration < cfg.min_duration_days:
            errors.append(
                f"Promotion duration must be at least {cfg.min_duration_days} day(s)"
            )

        lead_time = (promotion.start_date - today).days
        if lead_time < cfg.lead_time_days:
            warnings.append(
                f"Promotion should have at least {cfg.lead_time_days} days lead time"
            )

        if promotion.budget <= 0:
            errors.append("Budget must be greater than zero")

        errors.extend(self._discount_errors(promotion))

        if not promotion.products:
            errors.append("At least one product must be specified")
        if not promotion.channels:
            errors.append("At least one channel must be specified")

        if promotion.target_roi is not None and promotion.target_roi < cfg.min_roi_threshold:
            warnings.append(
                f"Target ROI {promotion.target_roi} is below the minimum ROI threshold "
                f"{cfg.min_roi_threshold}"
            )

        report = self.conflict_detector.detect_conflicts(
            promotion, self.repository.list_promotions()
        )
        if report.conflicts:
            if report.has_high_severity:
                errors.append("High severity promotion conflicts detected")
            else:
                warnings.append("Promotion conflicts detected - review recommended")

        return ValidationResult(errors=errors, warnings=warnings)

    def _discount_errors(self, promotion: Promotion) -> List[str]:
        ceiling = self.config.max_discount_percentage
        terms = promotion.terms
        errors = []  # type: List[str]

        if promotion.mechanic == PromotionMechanic.PERCENTAGE_DISCOUNT:
            if terms.discount_percentage > ceiling:
                errors.append(f"Discount percentage cannot exceed {_pct(ceiling)}%")

        elif promotion.mechanic == PromotionMechanic.TIERED_DISCOUNT:
            tiers = terms.discount_tiers
            if not tiers:
                errors.append("Tiered discount requires at least one discount tier")
            for index, tier in enumerate(tiers, start=1):
                if tier.discount_percentage > ceiling:
                    errors.append(
                        f"Tier {index} discount percentage cannot exceed {_pct(ceiling)}%"
                    )
            if not self._tiers_contiguous(tiers):
                errors.append("Discount tiers must be ascending and contiguous")

        return errors

    @staticmethod
    def _tiers_contiguous(tiers) -> bool:
        for index, tier in enumerate(tiers):
            if tier.min_volume >= tier.max_volume:
                return False
            if index and tier.min_volume != tiers[index - 1].max_volume:
                return False
        return True
