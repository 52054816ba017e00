"""
Unit Tests for the Claim Lifecycle State Machine

Reliability Level: L6 Critical

Tests the two-axis claim lifecycle:
- VALID_TRANSITIONS constant
- validate_transition() function
- transition_claim() function
- Convenience transitions (validate, approve, auto-approve, reject)
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from promo_services.claim_state_machine import (
    VALID_TRANSITIONS,
    ClaimAxis,
    auto_approve,
    is_terminal,
    mark_approved,
    mark_rejected,
    mark_validated,
    transition_claim,
    validate_transition,
)
from promo_services.promotion_errors import InvalidClaimTransitionError
from promo_services.promotion_models import (
    ApprovalStatus,
    Claim,
    ClaimStatus,
    ClaimType,
    ValidationStatus,
)


def make_claim(**overrides) -> Claim:
    fields = dict(
        id="CLAIM-1",
        promotion_id="PROMO-1",
        claim_number="CLM-TEST-000001",
        claim_type=ClaimType.OTHER,
        customer_id="CUST-0042",
        amount=Decimal("1500.00"),
        currency="USD",
        claim_date=datetime(2026, 6, 21, 9, 30, tzinfo=timezone.utc),
        period_start=date(2026, 6, 5),
        period_end=date(2026, 6, 20),
    )
    fields.update(overrides)
    return Claim(**fields)


# =============================================================================
# VALID_TRANSITIONS
# =============================================================================

class TestValidTransitionsConstant:

    def test_validation_axis(self) -> None:
        assert VALID_TRANSITIONS[ClaimAxis.VALIDATION]["PENDING"] == ["VALIDATED", "REJECTED"]
        assert VALID_TRANSITIONS[ClaimAxis.VALIDATION]["VALIDATED"] == []
        assert VALID_TRANSITIONS[ClaimAxis.VALIDATION]["REJECTED"] == []

    def test_approval_axis(self) -> None:
        assert VALID_TRANSITIONS[ClaimAxis.APPROVAL]["PENDING"] == ["APPROVED", "REJECTED"]
        assert VALID_TRANSITIONS[ClaimAxis.APPROVAL]["APPROVED"] == []
        assert VALID_TRANSITIONS[ClaimAxis.APPROVAL]["REJECTED"] == []

    def test_no_state_returns_to_pending(self) -> None:
        for axis_transitions in VALID_TRANSITIONS.values():
            for targets in axis_transitions.values():
                assert "PENDING" not in targets


# =============================================================================
# validate_transition()
# =============================================================================

class TestValidateTransition:

    def test_pending_to_validated(self) -> None:
        assert validate_transition(make_claim(), ClaimAxis.VALIDATION, "VALIDATED") == (True, None)

    def test_approval_requires_validation(self) -> None:
        assert validate_transition(make_claim(), ClaimAxis.APPROVAL, "APPROVED") == (
            False, "CLAIM-002"
        )

    def test_approval_after_validation(self) -> None:
        claim = make_claim(validation_status=ValidationStatus.VALIDATED)
        assert validate_transition(claim, ClaimAxis.APPROVAL, "APPROVED") == (True, None)

    def test_terminal_state_rejects_everything(self) -> None:
        claim = make_claim(validation_status=ValidationStatus.REJECTED)
        assert validate_transition(claim, ClaimAxis.VALIDATION, "VALIDATED") == (
            False, "CLAIM-002"
        )

    def test_back_to_pending_rejected(self) -> None:
        claim = make_claim(validation_status=ValidationStatus.VALIDATED)
        is_valid, code = validate_transition(claim, ClaimAxis.VALIDATION, "PENDING")
        assert not is_valid
        assert code == "CLAIM-002"


# =============================================================================
# transition_claim()
# =============================================================================

class TestTransitionClaim:

    def test_returns_updated_copy(self) -> None:
        claim = make_claim()
        updated, _ = transition_claim(claim, ClaimAxis.VALIDATION, "VALIDATED", "reviewer")

        assert updated.validation_status == ValidationStatus.VALIDATED
        assert claim.validation_status == ValidationStatus.PENDING

    def test_audit_record(self) -> None:
        _, audit = transition_claim(make_claim(), ClaimAxis.VALIDATION, "VALIDATED", "reviewer")

        assert audit["actor_id"] == "reviewer"
        assert audit["target_id"] == "CLAIM-1"
        assert audit["axis"] == "validation"
        assert audit["previous_state"] == "PENDING"
        assert audit["new_state"] == "VALIDATED"

    def test_system_actor_by_default(self) -> None:
        _, audit = transition_claim(make_claim(), ClaimAxis.VALIDATION, "REJECTED")
        assert audit["actor_id"] == "SYSTEM"

    def test_rejection_records_reason(self) -> None:
        updated, audit = transition_claim(
            make_claim(), ClaimAxis.VALIDATION, "REJECTED", "reviewer", "Missing invoice"
        )
        assert updated.rejection_reason == "Missing invoice"
        assert audit["reason"] == "Missing invoice"

    def test_invalid_transition_raises(self) -> None:
        with pytest.raises(InvalidClaimTransitionError) as exc_info:
            transition_claim(make_claim(), ClaimAxis.APPROVAL, "APPROVED")
        assert exc_info.value.error_code == "CLAIM-002"


# =============================================================================
# Convenience transitions
# =============================================================================

class TestConvenienceTransitions:

    def test_manual_path(self) -> None:
        validated, _ = mark_validated(make_claim())
        claim, audit = mark_approved(validated, "reviewer")
        assert claim.status == ClaimStatus.APPROVED
        assert is_terminal(claim)
        assert audit["axis"] == "approval"
        assert audit["previous_state"] == "PENDING"
        assert audit["new_state"] == "APPROVED"

    def test_auto_approve(self) -> None:
        claim, _ = auto_approve(make_claim())
        assert claim.validation_status == ValidationStatus.VALIDATED
        assert claim.approval_status == ApprovalStatus.APPROVED

    def test_auto_approve_audits_both_axes(self) -> None:
        _, audit = auto_approve(make_claim())
        assert [(r["axis"], r["new_state"], r["actor_id"]) for r in audit] == [
            ("validation", "VALIDATED", "AUTO"),
            ("approval", "APPROVED", "AUTO"),
        ]

    def test_reject_pending_claim_at_validation(self) -> None:
        claim, audit = mark_rejected(make_claim(), "Duplicate claim", "reviewer")
        assert claim.validation_status == ValidationStatus.REJECTED
        assert audit["reason"] == "Duplicate claim"
        assert claim.approval_status == ApprovalStatus.PENDING
        assert claim.status == ClaimStatus.REJECTED
        assert is_terminal(claim)

    def test_reject_validated_claim_at_approval(self) -> None:
        validated, _ = mark_validated(make_claim())
        claim, _ = mark_rejected(validated, "Over budget")
        assert claim.validation_status == ValidationStatus.VALIDATED
        assert claim.approval_status == ApprovalStatus.REJECTED
        assert claim.rejection_reason == "Over budget"

    def test_rejected_claim_cannot_be_rejected_again(self) -> None:
        claim, _ = mark_rejected(make_claim(), "Duplicate claim")
        with pytest.raises(InvalidClaimTransitionError):
            mark_rejected(claim, "Again")

    def test_approved_claim_cannot_be_rejected(self) -> None:
        claim, _ = auto_approve(make_claim())
        with pytest.raises(InvalidClaimTransitionError):
            mark_rejected(claim, "Too late")

    def test_pending_claim_not_terminal(self) -> None:
        assert not is_terminal(make_claim())
        assert not is_terminal(mark_validated(make_claim())[0])
