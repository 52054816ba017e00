"""
Unit Tests for the Static Market Data Provider
"""

from datetime import date
from decimal import Decimal

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from promo_services.market_data import (
    DEFAULT_MARKET_FACTORS,
    DEFAULT_SEASONAL_FACTORS,
    StaticMarketDataProvider,
)
from promo_services.promotion_models import Promotion, PromotionMechanic, PromotionTerms


def make_promotion() -> Promotion:
    return Promotion(
        id="PROMO-1",
        name="Winter Volume Push",
        mechanic=PromotionMechanic.FIXED_AMOUNT,
        terms=PromotionTerms(discount_amount=Decimal("5")),
        start_date=date(2026, 6, 1),
        end_date=date(2026, 6, 30),
        budget=Decimal("25000.00"),
    )


class TestStaticMarketDataProvider:

    def test_defaults(self) -> None:
        provider = StaticMarketDataProvider()
        assert provider.get_base_price([]) == Decimal("100.00")
        assert provider.get_baseline_volume([]) == Decimal("1000")
        assert provider.get_base_price(["SKU-100"]) == Decimal("100.00")
        assert provider.get_baseline_volume(["SKU-100"]) == Decimal("1000")

    def test_price_is_mean_across_products(self) -> None:
        provider = StaticMarketDataProvider(
            product_prices={"SKU-1": Decimal("80"), "SKU-2": Decimal("120")}
        )
        assert provider.get_base_price(["SKU-1", "SKU-2"]) == Decimal("100")

    def test_baseline_is_sum_across_products(self) -> None:
        provider = StaticMarketDataProvider(
            product_baselines={"SKU-1": Decimal("300"), "SKU-2": Decimal("200")}
        )
        assert provider.get_baseline_volume(["SKU-1", "SKU-2"]) == Decimal("500")

    def test_default_factors(self) -> None:
        provider = StaticMarketDataProvider()
        promotion = make_promotion()
        assert tuple(provider.get_market_factors(promotion)) == DEFAULT_MARKET_FACTORS
        assert tuple(provider.get_seasonal_factors(promotion)) == DEFAULT_SEASONAL_FACTORS

    def test_factors_can_be_disabled(self) -> None:
        provider = StaticMarketDataProvider(market_factors=[], seasonal_factors=[])
        assert provider.get_market_factors(make_promotion()) == []
