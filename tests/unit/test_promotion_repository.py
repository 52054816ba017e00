"""
Unit Tests for the In-Memory Promotion Repository

Reliability Level: L6 Critical
"""

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from promo_services.promotion_errors import NotFoundError
from promo_services.promotion_models import (
    Claim,
    ClaimType,
    PerformanceSnapshot,
    Promotion,
    PromotionMechanic,
    PromotionStatus,
    PromotionTerms,
    ValidationStatus,
)
from promo_services.promotion_repository import InMemoryPromotionRepository


def make_promotion(promotion_id: str = "PROMO-1") -> Promotion:
    return Promotion(
        id=promotion_id,
        name="Winter Volume Push",
        mechanic=PromotionMechanic.FIXED_AMOUNT,
        terms=PromotionTerms(discount_amount=Decimal("5")),
        start_date=date(2026, 6, 1),
        end_date=date(2026, 6, 30),
        budget=Decimal("25000.00"),
    )


def make_claim(claim_id: str = "CLAIM-1", promotion_id: str = "PROMO-1") -> Claim:
    return Claim(
        id=claim_id,
        promotion_id=promotion_id,
        claim_number=f"CLM-TEST-{claim_id}",
        claim_type=ClaimType.OTHER,
        customer_id="CUST-0042",
        amount=Decimal("120.00"),
        currency="USD",
        claim_date=datetime(2026, 6, 21, tzinfo=timezone.utc),
        period_start=date(2026, 6, 5),
        period_end=date(2026, 6, 20),
        products=["SKU-100"],
    )


def snapshot(start: date, end: date, roi: str) -> PerformanceSnapshot:
    return PerformanceSnapshot(
        promotion_id="PROMO-1",
        period_start=start,
        period_end=end,
        volume=Decimal("100"),
        revenue=Decimal("10000"),
        cost=Decimal("1000"),
        roi=Decimal(roi),
    )


@pytest.fixture
def repository() -> InMemoryPromotionRepository:
    return InMemoryPromotionRepository([make_promotion()])


class TestPromotions:

    def test_find(self, repository) -> None:
        assert repository.find_promotion_by_id("PROMO-1").name == "Winter Volume Push"
        assert repository.find_promotion_by_id("missing") is None

    def test_save_and_list(self, repository) -> None:
        repository.save_promotion(make_promotion("PROMO-2"))
        assert {p.id for p in repository.list_promotions()} == {"PROMO-1", "PROMO-2"}

    def test_update(self, repository) -> None:
        updated = replace(make_promotion(), status=PromotionStatus.ACTIVE)
        repository.update_promotion(updated)
        assert repository.find_promotion_by_id("PROMO-1").status == PromotionStatus.ACTIVE

    def test_update_missing(self, repository) -> None:
        with pytest.raises(NotFoundError):
            repository.update_promotion(make_promotion("PROMO-404"))


class TestClaims:

    def test_stored_copy_is_isolated(self, repository) -> None:
        claim = make_claim()
        repository.create_claim(claim)
        claim.products.append("SKU-999")
        claim.validation_status = ValidationStatus.REJECTED

        stored = repository.find_claim("CLAIM-1")
        assert stored.products == ["SKU-100"]
        assert stored.validation_status == ValidationStatus.PENDING

    def test_update(self, repository) -> None:
        repository.create_claim(make_claim())
        repository.update_claim(replace(make_claim(), validation_status=ValidationStatus.VALIDATED))
        assert repository.find_claim("CLAIM-1").validation_status == ValidationStatus.VALIDATED

    def test_update_missing(self, repository) -> None:
        with pytest.raises(NotFoundError):
            repository.update_claim(make_claim("CLAIM-404"))

    def test_list_by_promotion(self, repository) -> None:
        repository.create_claim(make_claim("CLAIM-1", "PROMO-1"))
        repository.create_claim(make_claim("CLAIM-2", "PROMO-2"))
        assert [c.id for c in repository.list_claims("PROMO-1")] == ["CLAIM-1"]
        assert len(repository.list_claims()) == 2


class TestPerformance:

    def test_history_ordered_by_start(self, repository) -> None:
        repository.append_performance(snapshot(date(2026, 6, 15), date(2026, 6, 21), "1.4"))
        repository.append_performance(snapshot(date(2026, 6, 1), date(2026, 6, 7), "1.1"))

        history = repository.find_performance_by_promotion("PROMO-1")
        assert [s.roi for s in history] == [Decimal("1.1"), Decimal("1.4")]

    def test_latest_by_end(self, repository) -> None:
        repository.append_performance(snapshot(date(2026, 6, 1), date(2026, 6, 7), "1.1"))
        repository.append_performance(snapshot(date(2026, 6, 8), date(2026, 6, 14), "1.3"))
        assert repository.find_latest_performance("PROMO-1").roi == Decimal("1.3")

    def test_no_history(self, repository) -> None:
        assert repository.find_performance_by_promotion("PROMO-1") == []
        assert repository.find_latest_performance("PROMO-1") is None
