# ============================================================================
# Promotion Decision Engine v1.0.0
# Forecast Engine - Historical Projection with Market Adjustment
# ============================================================================
#
# Reliability Level: L5 High
# Purpose: Project a promotion's volume, revenue, cost and ROI over a period
#
# PIPELINE:
#   1. Parse the period label: <n>d, <n>w, <n>m (1m = 30 days)
#   2. Base forecast:
#        history  -> daily rates (sum / inclusive days) x period days
#        no history -> baseline volume, baseline x base price, budget
#   3. Adjustment factor = 1 + sum(impact x weight), market then seasonal
#        volume and revenue scale by the factor, cost does not
#   4. ROI = adjusted revenue / cost (0 when cost <= 0)
#   5. Confidence = min(max_confidence, data_quality x factor_reliability)
#
# Error Codes:
#   - PROMO-005: Invalid forecast period label
#
# ============================================================================

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from promo_engine.arithmetic.decimal_gateway import (
    DecimalGateway,
    MONEY_PRECISION,
    ONE,
    RATIO_PRECISION,
    VOLUME_PRECISION,
    ZERO,
    get_decimal_gateway,
)
from promo_services.market_data import MarketDataProvider
from promo_services.promotion_config import PromotionEngineConfig, get_promotion_config
from promo_services.promotion_errors import InvalidForecastPeriodError
from promo_services.promotion_models import (
    ForecastFactor,
    ForecastResult,
    PerformanceSnapshot,
    Promotion,
)

logger = logging.getLogger(__name__)

DAYS_PER_UNIT = {"d": 1, "w": 7, "m": 30}

_PERIOD_PATTERN = re.compile(r"^\s*(\d+)\s*([dwm])\s*$", re.IGNORECASE)


# ============================================================================
# Period Parsing
# ============================================================================

def parse_forecast_period(label: str) -> int:
    """
    Convert a period label to a day count.

    Example:
        parse_forecast_period("30d")  # 30
        parse_forecast_period("2w")   # 14
        parse_forecast_period("3m")   # 90

    Raises:
        InvalidForecastPeriodError: Unparsable label or zero length (PROMO-005)
    """
    match = _PERIOD_PATTERN.match(label or "")
    if match is None or int(match.group(1)) <= 0:
        logger.error(f"[PROMO-005] Invalid forecast period | forecast_period={label!r}")
        raise InvalidForecastPeriodError(
            f"Invalid forecast period {label!r}; expected <n>d, <n>w or <n>m"
        )
    return int(match.group(1)) * DAYS_PER_UNIT[match.group(2).lower()]


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class BaseForecast:
    volume: Decimal
    revenue: Decimal
    cost: Decimal
    from_history: bool


# ============================================================================
# Forecast Engine
# ============================================================================

class ForecastEngine:
    """
    Promotion performance forecasting.

    Reliability Level: L5 High

    Example Usage:
        engine = ForecastEngine(market_data=StaticMarketDataProvider())
        result = engine.forecast(promotion, history, "30d")
        result.confidence   # Decimal('0.3500') with sparse history
    """

    def __init__(
        self,
        market_data: MarketDataProvider,
        config: Optional[PromotionEngineConfig] = None,
        gateway: Optional[DecimalGateway] = None,
    ):
        self.market_data = market_data
        self.config = config or get_promotion_config()
        self.gateway = gateway or get_decimal_gateway()

    def forecast(
        self,
        promotion: Promotion,
        history: Sequence[PerformanceSnapshot],
        forecast_period: str = "30d",
    ) -> ForecastResult:
        period_days = parse_forecast_period(forecast_period)

        base = self.base_forecast(promotion, history, period_days)
        factors = self.collect_factors(promotion)
        adjustment = self.adjustment_factor(factors)

        expected_volume = self.gateway.multiply(base.volume, adjustment)
        expected_revenue = self.gateway.multiply(base.revenue, adjustment)
        expected_cost = base.cost

        if expected_cost > ZERO:
            expected_roi = self.gateway.divide(expected_revenue, expected_cost)
        else:
            expected_roi = ZERO

        confidence = self.confidence(len(history))

        result = ForecastResult(
            promotion_id=promotion.id,
            forecast_period=forecast_period,
            expected_volume=self.gateway.quantize(expected_volume, VOLUME_PRECISION),
            expected_revenue=self.gateway.quantize(expected_revenue, MONEY_PRECISION),
            expected_cost=self.gateway.quantize(expected_cost, MONEY_PRECISION),
            expected_roi=self.gateway.quantize(expected_roi, RATIO_PRECISION),
            confidence=confidence,
            factors=tuple(factors),
        )

        logger.info(
            f"[PROMO-FORECAST] Forecast generated | promotion_id={promotion.id} | "
            f"forecast_period={forecast_period} | history={len(history)} | "
            f"from_history={base.from_history} | adjustment={adjustment} | "
            f"expected_roi={result.expected_roi} | confidence={confidence}"
        )
        return result

    def base_forecast(
        self,
        promotion: Promotion,
        history: Sequence[PerformanceSnapshot],
        period_days: int,
    ) -> BaseForecast:
        """
        Unadjusted projection for the period.

        With history, each metric's daily rate is its sum over the sum of
        inclusive snapshot days. Without history the baseline figures are
        used as they are, not scaled to the period.
        """
        if not history:
            volume = self.market_data.get_baseline_volume(promotion.products)
            base_price = self.market_data.get_base_price(promotion.products)
            return BaseForecast(
                volume=volume,
                revenue=self.gateway.multiply(volume, base_price),
                cost=promotion.budget,
                from_history=False,
            )

        total_days = Decimal(sum(s.days for s in history))
        days = Decimal(period_days)

        def project(total: Decimal) -> Decimal:
            return self.gateway.multiply(self.gateway.divide(total, total_days), days)

        return BaseForecast(
            volume=project(self.gateway.add(*(s.volume for s in history))),
            revenue=project(self.gateway.add(*(s.revenue for s in history))),
            cost=project(self.gateway.add(*(s.cost for s in history))),
            from_history=True,
        )

    def collect_factors(self, promotion: Promotion) -> List[ForecastFactor]:
        """Market factors followed by seasonal factors."""
        return (
            list(self.market_data.get_market_factors(promotion))
            + list(self.market_data.get_seasonal_factors(promotion))
        )

    def adjustment_factor(self, factors: Sequence[ForecastFactor]) -> Decimal:
        """1 + sum(impact x weight)."""
        return self.gateway.add(
            ONE, *(self.gateway.multiply(f.impact, f.weight) for f in factors)
        )

    def confidence(self, history_count: int) -> Decimal:
        cfg = self.config
        if history_count > cfg.forecast_sufficient_history:
            data_quality = cfg.forecast_data_quality_sufficient
        else:
            data_quality = cfg.forecast_data_quality_sparse

        raw = self.gateway.multiply(data_quality, cfg.forecast_factor_reliability)
        return self.gateway.quantize(min(raw, cfg.forecast_max_confidence), RATIO_PRECISION)
