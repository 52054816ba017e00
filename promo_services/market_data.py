"""
============================================================================
Market Data Provider - Pricing & Factor Collaborator
============================================================================

Reliability Level: L5 High

Supplies the engine with the figures it cannot derive from a promotion:
base price, baseline (non-promoted) volume, and the market and seasonal
factors that adjust forecasts.

StaticMarketDataProvider serves fixed figures. Overrides can be given per
product; anything not overridden falls back to the defaults below.

DEFAULTS:
    - Base price:       100.00
    - Baseline volume:  1000
    - Market factors:   competitor_activity (-0.1 x 0.3),
                        market_growth (0.05 x 0.2)
    - Seasonal factors: seasonal_demand (0.15 x 0.4),
                        holiday_effect (0.2 x 0.3)

============================================================================
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
import logging

from promo_engine.arithmetic.decimal_gateway import get_decimal_gateway
from promo_services.promotion_models import ForecastFactor, Promotion

# Configure module logger
logger = logging.getLogger(__name__)


DEFAULT_BASE_PRICE = Decimal("100.00")
DEFAULT_BASELINE_VOLUME = Decimal("1000")

DEFAULT_MARKET_FACTORS = (
    ForecastFactor(name="competitor_activity", impact=Decimal("-0.1"), weight=Decimal("0.3")),
    ForecastFactor(name="market_growth", impact=Decimal("0.05"), weight=Decimal("0.2")),
)

DEFAULT_SEASONAL_FACTORS = (
    ForecastFactor(name="seasonal_demand", impact=Decimal("0.15"), weight=Decimal("0.4")),
    ForecastFactor(name="holiday_effect", impact=Decimal("0.2"), weight=Decimal("0.3")),
)


# =============================================================================
# Provider Interface
# =============================================================================

class MarketDataProvider(ABC):
    """
    Abstract interface for market data.

    Implementations raise PromotionSystemError (SYS-001) when the
    underlying source is unavailable.
    """

    @abstractmethod
    def get_base_price(
        self,
        products: Iterable[str],
        customer_id: Optional[str] = None,
    ) -> Decimal:
        """Unit list price for the product set (customer-specific if known)."""
        pass

    @abstractmethod
    def get_baseline_volume(self, products: Iterable[str]) -> Decimal:
        """Volume expected without any promotion."""
        pass

    @abstractmethod
    def get_market_factors(self, promotion: Promotion) -> List[ForecastFactor]:
        pass

    @abstractmethod
    def get_seasonal_factors(self, promotion: Promotion) -> List[ForecastFactor]:
        pass


# =============================================================================
# Static Provider Implementation
# =============================================================================

class StaticMarketDataProvider(MarketDataProvider):
    """
    Fixed-figure provider for tests, demos and offline runs.

    With several products, the base price is the mean of their prices and
    the baseline is the sum of their baselines. An empty product set uses
    the defaults.
    """

    def __init__(
        self,
        base_price: Decimal = DEFAULT_BASE_PRICE,
        baseline_volume: Decimal = DEFAULT_BASELINE_VOLUME,
        product_prices: Optional[Dict[str, Decimal]] = None,
        product_baselines: Optional[Dict[str, Decimal]] = None,
        market_factors: Optional[Iterable[ForecastFactor]] = None,
        seasonal_factors: Optional[Iterable[ForecastFactor]] = None,
    ):
        self.base_price = base_price
        self.baseline_volume = baseline_volume
        self.product_prices = dict(product_prices or {})
        self.product_baselines = dict(product_baselines or {})
        self.market_factors = tuple(
            DEFAULT_MARKET_FACTORS if market_factors is None else market_factors
        )
        self.seasonal_factors = tuple(
            DEFAULT_SEASONAL_FACTORS if seasonal_factors is None else seasonal_factors
        )

    def get_base_price(
        self,
        products: Iterable[str],
        customer_id: Optional[str] = None,
    ) -> Decimal:
        products = list(products or [])
        if not products:
            return self.base_price
        prices = [self.product_prices.get(p, self.base_price) for p in products]
        gateway = get_decimal_gateway()
        price = gateway.divide(gateway.add(*prices), Decimal(len(prices)))
        logger.debug(
            f"[MARKET-DATA] Base price resolved | products={products} | "
            f"customer_id={customer_id} | base_price={price}"
        )
        return price

    def get_baseline_volume(self, products: Iterable[str]) -> Decimal:
        products = list(products or [])
        if not products:
            return self.baseline_volume
        return sum(
            (self.product_baselines.get(p, self.baseline_volume) for p in products),
            Decimal("0"),
        )

    def get_market_factors(self, promotion: Promotion) -> List[ForecastFactor]:
        return list(self.market_factors)

    def get_seasonal_factors(self, promotion: Promotion) -> List[ForecastFactor]:
        return list(self.seasonal_factors)
