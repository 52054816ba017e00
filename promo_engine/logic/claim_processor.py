# ============================================================================
# Promotion Decision Engine v1.0.0
# Claim Processor - Eligibility, Valuation, Auto-Approval, Publication
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Adjudicate monetary claims filed against promotions
#
# PIPELINE:
#   1. Eligibility: promotion ACTIVE, claim period ordered and inside the
#      promotion period (CLAIM-001 with both periods cited otherwise)
#   2. Amount: full promotion calculation at the claimed volume;
#      amount = total_discount (MONEY_PRECISION)
#   3. Persist with a generated claim number; amount <= auto threshold
#      (inclusive) is VALIDATED + APPROVED, anything above waits for review
#   4. Publish claim.created (best effort; failure is reported, not raised)
#
# Manual review walks the same claim state machine:
#   validate_claim, approve_claim (requires VALIDATED), reject_claim
# Every transition, automatic or manual, is appended to the claim audit log
# after the claim itself is written
#
# Error Codes:
#   - PROMO-001: Claim not found (manual review)
#   - VAL-001:   Claim payload failed schema validation
#   - CLAIM-001: Claim not eligible
#   - CLAIM-002: Invalid claim status transition
#
# ============================================================================

import logging
import random
import string
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError as PayloadValidationError

from promo_engine.arithmetic.decimal_gateway import MONEY_PRECISION, get_decimal_gateway
from promo_engine.logic.promotion_calculator import PromotionCalculator
from promo_engine.schemas.promotion_payloads import ClaimSubmission
from promo_services import claim_state_machine
from promo_services.claim_event_publisher import ClaimEventPublisher
from promo_services.promotion_config import PromotionEngineConfig, get_promotion_config
from promo_services.promotion_errors import (
    IneligibleClaimError,
    NotFoundError,
    ValidationError,
)
from promo_services.promotion_models import (
    Claim,
    ClaimResult,
    Promotion,
    PromotionStatus,
    map_promotion_type_to_claim_type,
)
from promo_services.promotion_repository import PromotionRepository

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_uppercase
CLAIM_SUFFIX_LENGTH = 6


# ============================================================================
# Claim Number Generation
# ============================================================================

def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError(f"Cannot encode negative value {value} in base36")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_claim_number(
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    CLM-<base36 epoch milliseconds>-<6 random base36 chars>, uppercase.

    Example:
        generate_claim_number()   # 'CLM-MA1B2C3D-X7K2QF'
    """
    now = now or datetime.now(timezone.utc)
    rng = rng or random.SystemRandom()
    millis = int(now.timestamp() * 1000)
    suffix = "".join(rng.choice(BASE36_ALPHABET) for _ in range(CLAIM_SUFFIX_LENGTH))
    return f"CLM-{to_base36(millis)}-{suffix}".upper()


def parse_claim_submission(claim_data: Union[ClaimSubmission, Mapping[str, Any]]) -> ClaimSubmission:
    """
    Raises:
        ValidationError: Payload failed schema validation (VAL-001)
    """
    if isinstance(claim_data, ClaimSubmission):
        return claim_data
    try:
        return ClaimSubmission.model_validate(dict(claim_data))
    except PayloadValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or 'claim'}: {err['msg']}"
            for err in e.errors()
        ]
        logger.error(f"[VAL-001] Claim payload rejected | errors={errors}")
        raise ValidationError(errors)


# ============================================================================
# Claim Processor
# ============================================================================

class ClaimProcessor:
    """
    Claim adjudication.

    Reliability Level: L6 Critical

    Example Usage:
        processor = ClaimProcessor(repository, calculator, publisher)
        result = processor.process_claim(promotion, {
            "customer_id": "CUST-0042",
            "volume": "150",
            "products": ["SKU-100"],
            "period_start": "2026-06-05",
            "period_end": "2026-06-20",
        })
        result.status    # ClaimStatus.APPROVED when amount <= threshold
    """

    def __init__(
        self,
        repository: PromotionRepository,
        calculator: PromotionCalculator,
        publisher: ClaimEventPublisher,
        config: Optional[PromotionEngineConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.repository = repository
        self.calculator = calculator
        self.publisher = publisher
        self.config = config or get_promotion_config()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._rng = rng
        self.gateway = get_decimal_gateway()

    # ------------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------------

    def check_eligibility(self, promotion: Promotion, submission: ClaimSubmission) -> None:
        """
        Raises:
            IneligibleClaimError: With a human-readable reason (CLAIM-001)
        """
        reason = None

        if promotion.status != PromotionStatus.ACTIVE:
            reason = "Promotion is not active"
        elif submission.period_start > submission.period_end:
            reason = (
                f"Claim period start {submission.period_start.isoformat()} is after "
                f"claim period end {submission.period_end.isoformat()} "
                f"(promotion period {promotion.start_date.isoformat()} to "
                f"{promotion.end_date.isoformat()})"
            )
        elif (
            submission.period_start < promotion.start_date
            or submission.period_end > promotion.end_date
        ):
            reason = (
                f"Claim period is outside promotion period "
                f"(claim {submission.period_start.isoformat()} to "
                f"{submission.period_end.isoformat()}, promotion "
                f"{promotion.start_date.isoformat()} to {promotion.end_date.isoformat()})"
            )

        if reason is not None:
            logger.warning(
                f"[CLAIM-001] Claim not eligible | promotion_id={promotion.id} | "
                f"customer_id={submission.customer_id} | reason={reason}"
            )
            raise IneligibleClaimError(reason, promotion_id=promotion.id)

    # ------------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------------

    def process_claim(
        self,
        promotion: Promotion,
        claim_data: Union[ClaimSubmission, Mapping[str, Any]],
    ) -> ClaimResult:
        submission = parse_claim_submission(claim_data)
        self.check_eligibility(promotion, submission)

        calculation = self.calculator.calculate(
            promotion,
            submission.products,
            submission.volume,
            submission.customer_id,
        )
        amount = self.gateway.quantize(calculation.total_discount, MONEY_PRECISION)

        now = self._clock()
        claim = Claim(
            id=str(uuid.uuid4()),
            promotion_id=promotion.id,
            claim_number=generate_claim_number(now, self._rng),
            claim_type=map_promotion_type_to_claim_type(promotion.promotion_type),
            customer_id=submission.customer_id,
            customer_name=submission.customer_name,
            amount=amount,
            currency=promotion.currency,
            claim_date=now,
            period_start=submission.period_start,
            period_end=submission.period_end,
            products=list(submission.products),
            documentation=list(submission.documentation),
            created_by=submission.created_by,
        )

        audit_records = []  # type: List[Dict[str, Any]]
        auto_approved = amount <= self.config.auto_validation_threshold
        if auto_approved:
            claim, audit_records = claim_state_machine.auto_approve(claim)

        self.repository.create_claim(claim)
        self._record_audit(audit_records)
        event_published = self.publisher.publish_claim_created(claim)

        logger.info(
            f"[CLAIM-PROC] Claim processed | claim_id={claim.id} | "
            f"claim_number={claim.claim_number} | promotion_id={promotion.id} | "
            f"customer_id={claim.customer_id} | amount={amount} | "
            f"auto_approved={auto_approved} | event_published={event_published}"
        )
        return self._result(claim, event_published)

    # ------------------------------------------------------------------------
    # Manual review
    # ------------------------------------------------------------------------

    def validate_claim(self, claim_id: str, actor_id: Optional[str] = None) -> Claim:
        claim, audit = claim_state_machine.mark_validated(self._load(claim_id), actor_id)
        return self._save_transition(claim, audit)

    def approve_claim(self, claim_id: str, actor_id: Optional[str] = None) -> Claim:
        claim, audit = claim_state_machine.mark_approved(self._load(claim_id), actor_id)
        return self._save_transition(claim, audit)

    def reject_claim(self, claim_id: str, reason: str, actor_id: Optional[str] = None) -> Claim:
        claim, audit = claim_state_machine.mark_rejected(self._load(claim_id), reason, actor_id)
        return self._save_transition(claim, audit)

    def _save_transition(self, claim: Claim, audit: Dict[str, Any]) -> Claim:
        self.repository.update_claim(claim)
        self._record_audit([audit])
        return claim

    def _record_audit(self, records: List[Dict[str, Any]]) -> None:
        for record in records:
            self.repository.append_claim_audit(record)

    def _load(self, claim_id: str) -> Claim:
        claim = self.repository.find_claim(claim_id)
        if claim is None:
            logger.error(f"[PROMO-001] Claim not found | claim_id={claim_id}")
            raise NotFoundError("Claim", claim_id)
        return claim

    @staticmethod
    def _result(claim: Claim, event_published: bool) -> ClaimResult:
        return ClaimResult(
            claim_id=claim.id,
            claim_number=claim.claim_number,
            status=claim.status,
            amount=claim.amount,
            validation_status=claim.validation_status,
            approval_status=claim.approval_status,
            event_published=event_published,
        )
