"""
============================================================================
Integration Tests for the SQL Promotion Repository
============================================================================

Reliability Level: L6 Critical

Runs the SQLAlchemy repository against an in-memory SQLite database:
- Promotion and claim documents round-trip with exact Decimals
- Updates of missing records raise PROMO-001
- Claim transition audit records persist in append order
- Storage failures surface as SYS-001
- The engine facade works unchanged on top of it

============================================================================
"""

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from promo_engine.database.sql_repository import SqlPromotionRepository
from promo_engine.logic.promotion_engine import PromotionEngine
from promo_services import claim_state_machine
from promo_services.claim_event_publisher import InMemoryEventSink
from promo_services.market_data import StaticMarketDataProvider
from promo_services.promotion_config import PromotionEngineConfig
from promo_services.promotion_errors import NotFoundError, PromotionSystemError
from promo_services.promotion_models import (
    Claim,
    ClaimStatus,
    ClaimType,
    DiscountTier,
    PerformanceSnapshot,
    Promotion,
    PromotionMechanic,
    PromotionStatus,
    PromotionTerms,
    ValidationStatus,
    VolumeTier,
)


def make_promotion(promotion_id: str = "PROMO-1", **overrides) -> Promotion:
    fields = dict(
        id=promotion_id,
        name="Winter Volume Push",
        mechanic=PromotionMechanic.TIERED_DISCOUNT,
        terms=PromotionTerms(
            discount_tiers=(
                DiscountTier(Decimal("0"), Decimal("100"), Decimal("5")),
                DiscountTier(Decimal("100"), Decimal("200"), Decimal("10")),
            ),
            volume_tiers=(VolumeTier(Decimal("500"), Decimal("1.25")),),
        ),
        start_date=date(2026, 6, 1),
        end_date=date(2026, 6, 30),
        budget=Decimal("25000.00"),
        status=PromotionStatus.ACTIVE,
        actual_spend=Decimal("1250.50"),
        target_roi=Decimal("1.5"),
        products=frozenset({"SKU-100"}),
        channels=frozenset({"modern_trade", "e_commerce"}),
        budget_pool="POOL-A",
        resources=frozenset({"merch_team"}),
        promotion_type="REBATE",
    )
    fields.update(overrides)
    return Promotion(**fields)


def make_claim(claim_id: str = "CLAIM-1") -> Claim:
    return Claim(
        id=claim_id,
        promotion_id="PROMO-1",
        claim_number=f"CLM-TEST-{claim_id}",
        claim_type=ClaimType.REBATE,
        customer_id="CUST-0042",
        customer_name="Northwind Retail",
        amount=Decimal("1000.00"),
        currency="USD",
        claim_date=datetime(2026, 6, 21, 9, 30, tzinfo=timezone.utc),
        period_start=date(2026, 6, 5),
        period_end=date(2026, 6, 20),
        products=["SKU-100"],
        documentation=["invoice-8812.pdf"],
        created_by="kam.jdoe",
    )


@pytest.fixture
def repository() -> SqlPromotionRepository:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    repository = SqlPromotionRepository(engine)
    repository.create_schema()
    return repository


class TestPromotionPersistence:

    def test_round_trip(self, repository) -> None:
        promotion = make_promotion()
        repository.save_promotion(promotion)
        assert repository.find_promotion_by_id("PROMO-1") == promotion

    def test_missing(self, repository) -> None:
        assert repository.find_promotion_by_id("missing") is None

    def test_list_ordered_by_id(self, repository) -> None:
        repository.save_promotion(make_promotion("PROMO-2"))
        repository.save_promotion(make_promotion("PROMO-1"))
        assert [p.id for p in repository.list_promotions()] == ["PROMO-1", "PROMO-2"]

    def test_update(self, repository) -> None:
        repository.save_promotion(make_promotion())
        repository.update_promotion(make_promotion(status=PromotionStatus.PAUSED))
        assert repository.find_promotion_by_id("PROMO-1").status == PromotionStatus.PAUSED

    def test_update_missing(self, repository) -> None:
        with pytest.raises(NotFoundError):
            repository.update_promotion(make_promotion("PROMO-404"))

    def test_duplicate_insert_is_system_error(self, repository) -> None:
        repository.save_promotion(make_promotion())
        with pytest.raises(PromotionSystemError) as exc_info:
            repository.save_promotion(make_promotion())
        assert exc_info.value.error_code == "SYS-001"
        assert exc_info.value.operation == "save_promotion"


class TestClaimPersistence:

    def test_round_trip(self, repository) -> None:
        claim = make_claim()
        repository.create_claim(claim)
        assert repository.find_claim("CLAIM-1") == claim

    def test_update(self, repository) -> None:
        repository.create_claim(make_claim())
        repository.update_claim(replace(make_claim(), validation_status=ValidationStatus.REJECTED,
                                        rejection_reason="Duplicate claim"))

        stored = repository.find_claim("CLAIM-1")
        assert stored.status == ClaimStatus.REJECTED
        assert stored.rejection_reason == "Duplicate claim"

    def test_update_missing(self, repository) -> None:
        with pytest.raises(NotFoundError):
            repository.update_claim(make_claim("CLAIM-404"))

    def test_audit_round_trip(self, repository) -> None:
        repository.create_claim(make_claim())
        validated, first = claim_state_machine.mark_validated(make_claim(), "finance.reviewer")
        _, second = claim_state_machine.mark_rejected(validated, "Over budget", "finance.lead")
        repository.append_claim_audit(first)
        repository.append_claim_audit(second)

        assert repository.find_claim_audit("CLAIM-1") == [first, second]
        assert repository.find_claim_audit("CLAIM-404") == []


class TestPerformancePersistence:

    def _snapshot(self, start: date, end: date, roi: str) -> PerformanceSnapshot:
        return PerformanceSnapshot(
            promotion_id="PROMO-1",
            period_start=start,
            period_end=end,
            volume=Decimal("700.5"),
            revenue=Decimal("70050.00"),
            cost=Decimal("7005.00"),
            roi=Decimal(roi),
        )

    def test_history_and_latest(self, repository) -> None:
        later = self._snapshot(date(2026, 6, 8), date(2026, 6, 14), "1.3")
        earlier = self._snapshot(date(2026, 6, 1), date(2026, 6, 7), "1.1")
        repository.append_performance(later)
        repository.append_performance(earlier)

        assert repository.find_performance_by_promotion("PROMO-1") == [earlier, later]
        assert repository.find_latest_performance("PROMO-1") == later
        assert repository.find_latest_performance("PROMO-2") is None


class TestEngineOnSql:

    def test_claim_pipeline(self, repository) -> None:
        repository.save_promotion(make_promotion())
        sink = InMemoryEventSink()
        engine = PromotionEngine(
            repository=repository,
            market_data=StaticMarketDataProvider(),
            event_sink=sink,
            config=PromotionEngineConfig(),
        )

        result = engine.process_promotion_claim("PROMO-1", {
            "customer_id": "CUST-0042",
            "volume": "150",
            "products": ["SKU-100"],
            "period_start": "2026-06-05",
            "period_end": "2026-06-20",
        })

        # (100 * 5 + 50 * 10) / 150 per unit, 150 units
        assert result.amount == Decimal("1000.00")
        assert result.status == ClaimStatus.APPROVED

        stored = repository.find_claim(result.claim_id)
        assert stored.claim_type == ClaimType.REBATE
        assert stored.amount == Decimal("1000.00")
        assert len(sink.events()) == 1
        assert [r["new_state"] for r in repository.find_claim_audit(result.claim_id)] == [
            "VALIDATED", "APPROVED",
        ]
