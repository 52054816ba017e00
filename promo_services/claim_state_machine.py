"""
============================================================================
Claim Lifecycle State Machine
============================================================================

Reliability Level: L6 Critical
Traceability: Every transition returns an audit record with actor and reason;
              the claim processor persists it through the repository

A claim carries two independent status axes. Each axis leaves PENDING at
most once and never returns to it:

    VALIDATION:  PENDING → VALIDATED
                 PENDING → REJECTED

    APPROVAL:    PENDING → APPROVED   (requires validation VALIDATED)
                 PENDING → REJECTED

    Terminal: every non-PENDING value on either axis.

Auto-approval (amount within the configured threshold) walks both axes
PENDING → VALIDATED → APPROVED through the same rules as manual review.

ERROR CODES:
    - CLAIM-002: Invalid claim status transition

============================================================================
"""

from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from promo_services.promotion_errors import (
    InvalidClaimTransitionError,
    PromotionErrorCode,
)
from promo_services.promotion_models import (
    ApprovalStatus,
    Claim,
    ValidationStatus,
)

# Configure module logger
logger = logging.getLogger(__name__)


class ClaimAxis(Enum):
    """Which status axis a transition moves."""
    VALIDATION = "validation"
    APPROVAL = "approval"


# =============================================================================
# VALID_TRANSITIONS Constant
# =============================================================================

VALID_TRANSITIONS: Dict[ClaimAxis, Dict[str, List[str]]] = {
    ClaimAxis.VALIDATION: {
        "PENDING": ["VALIDATED", "REJECTED"],
        "VALIDATED": [],  # Terminal
        "REJECTED": [],  # Terminal
    },
    ClaimAxis.APPROVAL: {
        "PENDING": ["APPROVED", "REJECTED"],
        "APPROVED": [],  # Terminal
        "REJECTED": [],  # Terminal
    },
}


def _current_value(claim: Claim, axis: ClaimAxis) -> str:
    if axis == ClaimAxis.VALIDATION:
        return claim.validation_status.value
    return claim.approval_status.value


# =============================================================================
# validate_transition() Function
# =============================================================================

def validate_transition(
    claim: Claim,
    axis: ClaimAxis,
    target: str,
) -> Tuple[bool, Optional[str]]:
    """
    Check whether moving claim along axis to target is allowed.

    Returns:
        (True, None) if allowed, (False, "CLAIM-002") otherwise.
        Rejections are logged with the claim id.
    """
    current = _current_value(claim, axis)
    valid_targets = VALID_TRANSITIONS[axis].get(current, [])

    if target not in valid_targets:
        valid_str = "/".join(valid_targets) if valid_targets else "NONE (terminal state)"
        logger.error(
            f"[{PromotionErrorCode.INVALID_CLAIM_TRANSITION}] "
            f"Invalid claim transition: {axis.value} {current} → {target} | "
            f"valid={valid_str} | claim_id={claim.id}"
        )
        return (False, PromotionErrorCode.INVALID_CLAIM_TRANSITION)

    # Approval is gated on a validated claim
    if (
        axis == ClaimAxis.APPROVAL
        and target == ApprovalStatus.APPROVED.value
        and claim.validation_status != ValidationStatus.VALIDATED
    ):
        logger.error(
            f"[{PromotionErrorCode.INVALID_CLAIM_TRANSITION}] "
            f"Claim approval requires validation | "
            f"validation_status={claim.validation_status.value} | claim_id={claim.id}"
        )
        return (False, PromotionErrorCode.INVALID_CLAIM_TRANSITION)

    logger.debug(
        f"[CLAIM-STATE] Transition validated: {axis.value} {current} → {target} | "
        f"claim_id={claim.id}"
    )
    return (True, None)


# =============================================================================
# transition_claim() Function
# =============================================================================

def transition_claim(
    claim: Claim,
    axis: ClaimAxis,
    target: str,
    actor_id: Optional[str] = None,
    reason: Optional[str] = None,
) -> Tuple[Claim, Dict[str, Any]]:
    """
    Move a claim along one status axis.

    The input claim is left untouched; the updated copy and an audit record
    are returned so the caller decides when to persist.

    Raises:
        InvalidClaimTransitionError: If the transition is not allowed (CLAIM-002)
    """
    is_valid, _ = validate_transition(claim, axis, target)
    if not is_valid:
        raise InvalidClaimTransitionError(
            f"Cannot move claim {claim.id} {axis.value} status from "
            f"{_current_value(claim, axis)} to {target}"
        )

    previous = _current_value(claim, axis)
    if axis == ClaimAxis.VALIDATION:
        updated = replace(claim, validation_status=ValidationStatus(target))
    else:
        updated = replace(claim, approval_status=ApprovalStatus(target))

    if target == "REJECTED":
        updated = replace(updated, rejection_reason=reason)

    audit_record = {
        "id": str(uuid.uuid4()),
        "actor_id": actor_id or "SYSTEM",
        "action": "CLAIM_TRANSITION",
        "target_type": "claim",
        "target_id": claim.id,
        "axis": axis.value,
        "previous_state": previous,
        "new_state": target,
        "reason": reason,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }

    logger.info(
        f"[CLAIM-STATE] Claim transition completed | "
        f"claim_id={claim.id} | {axis.value} {previous} → {target} | "
        f"actor={actor_id or 'SYSTEM'} | reason={reason}"
    )
    return updated, audit_record


# =============================================================================
# Convenience Transitions
# =============================================================================

def mark_validated(
    claim: Claim, actor_id: Optional[str] = None
) -> Tuple[Claim, Dict[str, Any]]:
    return transition_claim(claim, ClaimAxis.VALIDATION, "VALIDATED", actor_id)


def mark_approved(
    claim: Claim, actor_id: Optional[str] = None
) -> Tuple[Claim, Dict[str, Any]]:
    return transition_claim(claim, ClaimAxis.APPROVAL, "APPROVED", actor_id)


def auto_approve(claim: Claim) -> Tuple[Claim, List[Dict[str, Any]]]:
    """PENDING → VALIDATED → APPROVED for claims within the auto threshold."""
    validated, validation_audit = mark_validated(claim, "AUTO")
    approved, approval_audit = mark_approved(validated, "AUTO")
    return approved, [validation_audit, approval_audit]


def mark_rejected(
    claim: Claim, reason: str, actor_id: Optional[str] = None
) -> Tuple[Claim, Dict[str, Any]]:
    """
    Reject a claim on whichever axis is still open.

    A claim still pending validation is rejected at validation; a validated
    claim is rejected at approval. Claims with no open axis raise CLAIM-002.
    """
    if claim.validation_status == ValidationStatus.VALIDATED:
        axis = ClaimAxis.APPROVAL
    else:
        axis = ClaimAxis.VALIDATION
    return transition_claim(claim, axis, "REJECTED", actor_id, reason)


def is_terminal(claim: Claim) -> bool:
    """True once the claim is rejected or approved."""
    return (
        claim.validation_status == ValidationStatus.REJECTED
        or claim.approval_status != ApprovalStatus.PENDING
    )


__all__ = [
    "ClaimAxis",
    "VALID_TRANSITIONS",
    "validate_transition",
    "transition_claim",
    "mark_validated",
    "mark_approved",
    "auto_approve",
    "mark_rejected",
    "is_terminal",
]
