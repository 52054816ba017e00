"""
Unit Tests for the Conflict Detector

Reliability Level: L5 High

Tests pairwise contention between concurrent promotions:
- Window intersection (inclusive)
- OVERLAP / CANNIBALIZATION / BUDGET / RESOURCE records
- Severity grading and resolution text
- Self and closed promotions skipped
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from promo_engine.logic.conflict_detector import (
    ADVISORY_RESOLUTION,
    HIGH_SEVERITY_RESOLUTION,
    NO_CONFLICTS_RESOLUTION,
    ConflictDetector,
    generate_resolution,
    window_intersection,
)
from promo_services.promotion_models import (
    ConflictCategory,
    Promotion,
    PromotionMechanic,
    PromotionStatus,
    PromotionTerms,
    Severity,
)


def make_promotion(promotion_id: str, start: date, end: date, **overrides) -> Promotion:
    fields = dict(
        id=promotion_id,
        name=f"Promotion {promotion_id}",
        mechanic=PromotionMechanic.PERCENTAGE_DISCOUNT,
        terms=PromotionTerms(discount_percentage=Decimal("10")),
        start_date=start,
        end_date=end,
        budget=Decimal("10000"),
        status=PromotionStatus.ACTIVE,
        products=frozenset({"SKU-1", "SKU-2"}),
        channels=frozenset({"modern_trade"}),
        budget_pool="POOL-A",
        resources=frozenset({"merch_team"}),
    )
    fields.update(overrides)
    return Promotion(**fields)


JUNE_START = date(2026, 6, 1)
JUNE_END = date(2026, 6, 30)


@pytest.fixture
def detector() -> ConflictDetector:
    return ConflictDetector()


@pytest.fixture
def promotion() -> Promotion:
    return make_promotion("PROMO-A", JUNE_START, JUNE_END)


def by_category(report):
    return {c.category: c for c in report.conflicts}


class TestWindowIntersection:

    def test_disjoint(self) -> None:
        assert window_intersection(
            date(2026, 6, 1), date(2026, 6, 10), date(2026, 6, 11), date(2026, 6, 20)
        ) is None

    def test_touching_windows_share_one_day(self) -> None:
        assert window_intersection(
            date(2026, 6, 1), date(2026, 6, 10), date(2026, 6, 10), date(2026, 6, 20)
        ) == (date(2026, 6, 10), date(2026, 6, 10))

    def test_contained(self) -> None:
        assert window_intersection(
            date(2026, 6, 1), date(2026, 6, 30), date(2026, 6, 5), date(2026, 6, 7)
        ) == (date(2026, 6, 5), date(2026, 6, 7))


class TestDetectConflicts:

    def test_full_contention_is_high(self, detector, promotion) -> None:
        other = make_promotion("PROMO-B", JUNE_START, JUNE_END, budget=Decimal("20000"))
        report = detector.detect_conflicts(promotion, [promotion, other])
        records = by_category(report)

        assert set(records) == {
            ConflictCategory.OVERLAP,
            ConflictCategory.CANNIBALIZATION,
            ConflictCategory.BUDGET,
            ConflictCategory.RESOURCE,
        }
        assert records[ConflictCategory.OVERLAP].severity == Severity.HIGH
        assert records[ConflictCategory.CANNIBALIZATION].severity == Severity.HIGH
        assert records[ConflictCategory.BUDGET].severity == Severity.HIGH
        # One shared resource over the whole window
        assert records[ConflictCategory.RESOURCE].severity == Severity.MEDIUM
        assert report.has_high_severity
        assert report.resolution == HIGH_SEVERITY_RESOLUTION

    def test_records_name_the_other_promotion(self, detector, promotion) -> None:
        other = make_promotion("PROMO-B", JUNE_START, JUNE_END)
        report = detector.detect_conflicts(promotion, [other])
        for record in report.conflicts:
            assert record.conflicting_promotion_id == "PROMO-B"
            assert record.name == "Promotion PROMO-B"

    def test_disjoint_windows_never_conflict(self, detector, promotion) -> None:
        other = make_promotion("PROMO-B", date(2026, 7, 1), date(2026, 7, 31))
        report = detector.detect_conflicts(promotion, [other])

        assert report.conflicts == ()
        assert report.resolution == NO_CONFLICTS_RESOLUTION

    def test_self_is_skipped(self, detector, promotion) -> None:
        report = detector.detect_conflicts(promotion, [promotion])
        assert report.conflicts == ()

    @pytest.mark.parametrize("status", [PromotionStatus.COMPLETED, PromotionStatus.CANCELLED])
    def test_closed_promotions_skipped(self, detector, promotion, status) -> None:
        other = make_promotion("PROMO-B", JUNE_START, JUNE_END, status=status)
        assert detector.detect_conflicts(promotion, [other]).conflicts == ()

    def test_short_overlap_single_product_is_low(self, detector, promotion) -> None:
        other = make_promotion(
            "PROMO-C",
            date(2026, 6, 28),
            date(2026, 7, 10),
            products=frozenset({"SKU-1"}),
            channels=frozenset({"e_commerce"}),
            budget_pool=None,
            resources=frozenset(),
        )
        report = detector.detect_conflicts(promotion, [other])

        assert len(report.conflicts) == 1
        record = report.conflicts[0]
        assert record.category == ConflictCategory.OVERLAP
        assert record.severity == Severity.LOW
        assert "2026-06-28 to 2026-06-30" in record.description
        assert report.resolution == ADVISORY_RESOLUTION

    def test_unpooled_promotions_share_no_budget(self, detector) -> None:
        a = make_promotion("PROMO-A", JUNE_START, JUNE_END, budget_pool=None)
        b = make_promotion("PROMO-B", JUNE_START, JUNE_END, budget_pool=None)
        categories = {c.category for c in detector.detect_conflicts(a, [b]).conflicts}
        assert ConflictCategory.BUDGET not in categories

    def test_smaller_pool_partner_is_medium_budget(self, detector, promotion) -> None:
        other = make_promotion("PROMO-B", JUNE_START, JUNE_END, budget=Decimal("5000"))
        records = by_category(detector.detect_conflicts(promotion, [other]))
        assert records[ConflictCategory.BUDGET].severity == Severity.MEDIUM

    def test_partial_channel_share(self, detector) -> None:
        a = make_promotion(
            "PROMO-A", JUNE_START, JUNE_END,
            channels=frozenset({"modern_trade", "e_commerce", "wholesale"}),
        )
        b = make_promotion("PROMO-B", date(2026, 6, 25), JUNE_END, channels=frozenset({"wholesale"}))
        records = by_category(detector.detect_conflicts(a, [b]))
        assert records[ConflictCategory.CANNIBALIZATION].severity == Severity.LOW


class TestOverlapFraction:

    def test_fraction_of_own_window(self, detector, promotion) -> None:
        window = (date(2026, 6, 16), date(2026, 6, 30))
        assert detector.overlap_fraction(promotion, window) == Decimal("0.5000")


class TestGenerateResolution:

    def test_empty(self) -> None:
        assert generate_resolution([]) == NO_CONFLICTS_RESOLUTION

    def test_high_wins(self, detector, promotion) -> None:
        other = make_promotion("PROMO-B", JUNE_START, JUNE_END)
        report = detector.detect_conflicts(promotion, [other])
        downgraded = [replace(c, severity=Severity.LOW) for c in report.conflicts]

        assert generate_resolution(report.conflicts) == HIGH_SEVERITY_RESOLUTION
        assert generate_resolution(downgraded) == ADVISORY_RESOLUTION
