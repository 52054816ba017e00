"""
Unit Tests for the Incremental Volume & ROI Estimator

Reliability Level: L6 Critical
"""

from decimal import Decimal

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from promo_engine.logic.roi_estimator import (
    RoiEstimator,
    calculate_incremental_volume,
    calculate_roi,
)


@pytest.fixture
def estimator() -> RoiEstimator:
    return RoiEstimator()


class TestIncrementalVolume:

    def test_lift_above_baseline(self, estimator) -> None:
        assert estimator.incremental_volume(Decimal("1500"), Decimal("1000")) == Decimal("500")

    def test_below_baseline_clamps_to_zero(self, estimator) -> None:
        assert estimator.incremental_volume(Decimal("800"), Decimal("1000")) == Decimal("0")

    def test_module_function(self) -> None:
        assert calculate_incremental_volume(Decimal("1000"), Decimal("1000")) == Decimal("0")


class TestRoi:

    def test_revenue_over_cost(self, estimator) -> None:
        estimate = estimator.estimate(
            incremental_volume=Decimal("500"),
            base_price=Decimal("100"),
            total_discount=Decimal("1000"),
            actual_spend=Decimal("0"),
        )
        assert estimate.incremental_revenue == Decimal("50000")
        assert estimate.promotion_cost == Decimal("1000")
        assert estimate.roi == Decimal("50.0000")
        assert estimate.incremental_volume == Decimal("500.000")

    def test_actual_spend_is_part_of_cost(self, estimator) -> None:
        roi = estimator.roi(Decimal("500"), Decimal("100"), Decimal("1000"), Decimal("1500"))
        assert roi == Decimal("20.0000")

    def test_zero_cost_gives_zero_roi(self, estimator) -> None:
        roi = estimator.roi(Decimal("500"), Decimal("100"), Decimal("0"), Decimal("0"))
        assert roi == Decimal("0.0000")

    def test_no_lift_gives_zero_roi(self, estimator) -> None:
        roi = estimator.roi(Decimal("0"), Decimal("100"), Decimal("1000"), Decimal("0"))
        assert roi == Decimal("0.0000")

    def test_roi_rounds_half_even(self) -> None:
        # 1 * 1 / 3 = 0.33333...
        assert calculate_roi(Decimal("1"), Decimal("1"), Decimal("3"), Decimal("0")) == Decimal("0.3333")
