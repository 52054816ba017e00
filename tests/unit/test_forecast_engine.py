"""
Unit Tests for the Forecast Engine

Reliability Level: L5 High

Tests:
- Forecast period parsing (PROMO-005)
- Base forecast from history and from baseline
- Market/seasonal adjustment
- Confidence scoring and its ceiling
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from promo_engine.logic.forecast_engine import ForecastEngine, parse_forecast_period
from promo_services.market_data import StaticMarketDataProvider
from promo_services.promotion_config import PromotionEngineConfig
from promo_services.promotion_errors import InvalidForecastPeriodError
from promo_services.promotion_models import (
    ForecastFactor,
    PerformanceSnapshot,
    Promotion,
    PromotionMechanic,
    PromotionTerms,
)


def make_promotion(budget: str = "25000.00") -> Promotion:
    return Promotion(
        id="PROMO-1",
        name="Winter Volume Push",
        mechanic=PromotionMechanic.PERCENTAGE_DISCOUNT,
        terms=PromotionTerms(discount_percentage=Decimal("10")),
        start_date=date(2026, 6, 1),
        end_date=date(2026, 6, 30),
        budget=Decimal(budget),
        products=frozenset({"SKU-100"}),
        channels=frozenset({"modern_trade"}),
    )


def snapshot(start: date, days: int, volume: str, revenue: str, cost: str) -> PerformanceSnapshot:
    return PerformanceSnapshot(
        promotion_id="PROMO-1",
        period_start=start,
        period_end=start + timedelta(days=days - 1),
        volume=Decimal(volume),
        revenue=Decimal(revenue),
        cost=Decimal(cost),
        roi=Decimal("1.5"),
    )


@pytest.fixture
def engine() -> ForecastEngine:
    return ForecastEngine(StaticMarketDataProvider(), PromotionEngineConfig())


# =============================================================================
# Period parsing
# =============================================================================

class TestParseForecastPeriod:

    @pytest.mark.parametrize("label,days", [
        ("30d", 30),
        ("1d", 1),
        ("2w", 14),
        ("3m", 90),
        (" 7D ", 7),
    ])
    def test_valid_labels(self, label: str, days: int) -> None:
        assert parse_forecast_period(label) == days

    @pytest.mark.parametrize("label", ["", "abc", "0d", "10y", "d30", "-5d", "1.5w"])
    def test_invalid_labels(self, label: str) -> None:
        with pytest.raises(InvalidForecastPeriodError) as exc_info:
            parse_forecast_period(label)
        assert exc_info.value.error_code == "PROMO-005"


# =============================================================================
# Forecast
# =============================================================================

class TestForecastWithoutHistory:

    def test_baseline_adjusted_by_default_factors(self, engine) -> None:
        result = engine.forecast(make_promotion(), [], "30d")

        # 1 + (-0.03 + 0.01 + 0.06 + 0.06) = 1.10
        assert result.expected_volume == Decimal("1100.000")
        assert result.expected_revenue == Decimal("110000.00")
        assert result.expected_cost == Decimal("25000.00")
        assert result.expected_roi == Decimal("4.4000")
        assert result.confidence == Decimal("0.3500")

    def test_factors_market_then_seasonal(self, engine) -> None:
        result = engine.forecast(make_promotion(), [], "30d")
        assert [f.name for f in result.factors] == [
            "competitor_activity",
            "market_growth",
            "seasonal_demand",
            "holiday_effect",
        ]

    def test_zero_budget_gives_zero_roi(self, engine) -> None:
        result = engine.forecast(make_promotion(budget="0"), [], "30d")
        assert result.expected_roi == Decimal("0.0000")

    def test_invalid_period_raises(self, engine) -> None:
        with pytest.raises(InvalidForecastPeriodError):
            engine.forecast(make_promotion(), [], "soon")


class TestForecastWithHistory:

    def test_daily_rates_projected_over_period(self, engine) -> None:
        history = [
            snapshot(date(2026, 6, 1), 10, "500", "50000", "5000"),
            snapshot(date(2026, 6, 11), 10, "500", "50000", "5000"),
        ]
        result = engine.forecast(make_promotion(), history, "30d")

        # 1000 units over 20 days -> 50/day -> 1500 over 30 days, then x 1.10
        assert result.expected_volume == Decimal("1650.000")
        assert result.expected_revenue == Decimal("165000.00")
        assert result.expected_cost == Decimal("15000.00")
        assert result.expected_roi == Decimal("11.0000")

    def test_no_factors_means_no_adjustment(self) -> None:
        engine = ForecastEngine(
            StaticMarketDataProvider(market_factors=[], seasonal_factors=[]),
            PromotionEngineConfig(),
        )
        history = [snapshot(date(2026, 6, 1), 7, "700", "70000", "7000")]
        result = engine.forecast(make_promotion(), history, "1w")

        assert result.expected_volume == Decimal("700.000")
        assert result.expected_revenue == Decimal("70000.00")
        assert result.factors == ()

    def test_custom_factor(self) -> None:
        engine = ForecastEngine(
            StaticMarketDataProvider(
                market_factors=[ForecastFactor("price_war", Decimal("-0.5"), Decimal("1"))],
                seasonal_factors=[],
            ),
            PromotionEngineConfig(),
        )
        result = engine.forecast(make_promotion(), [], "30d")
        assert result.expected_volume == Decimal("500.000")


# =============================================================================
# Confidence
# =============================================================================

class TestConfidence:

    def test_sparse_history(self, engine) -> None:
        assert engine.confidence(0) == Decimal("0.3500")
        assert engine.confidence(10) == Decimal("0.3500")

    def test_sufficient_history(self, engine) -> None:
        assert engine.confidence(11) == Decimal("0.5600")

    def test_forecast_uses_history_count(self, engine) -> None:
        history = [
            snapshot(date(2026, 6, 1) + timedelta(days=i), 1, "10", "1000", "100")
            for i in range(11)
        ]
        assert engine.forecast(make_promotion(), history, "30d").confidence == Decimal("0.5600")

    def test_capped_at_maximum(self) -> None:
        config = PromotionEngineConfig(
            forecast_data_quality_sufficient=Decimal("1"),
            forecast_factor_reliability=Decimal("1"),
        )
        engine = ForecastEngine(StaticMarketDataProvider(), config)
        assert engine.confidence(50) == Decimal("0.9500")
