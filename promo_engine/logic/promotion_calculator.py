"""
============================================================================
Promotion Calculator - Pricing + Incremental Volume + ROI
============================================================================

Reliability Level: L6 Critical

Composes the discount calculator and the ROI estimator with market data:

    1. base price       <- market data (products, customer)
    2. discount         <- DiscountCalculator.price_promotion
    3. baseline volume  <- market data (products)
    4. incremental + ROI <- RoiEstimator

Used by the engine facade for calculate_promotion and by the claim
processor to value a claim (claim amount = total_discount).

============================================================================
"""

from decimal import Decimal
from typing import Iterable, Optional
import logging

from promo_engine.logic.discount_calculator import DiscountCalculator
from promo_engine.logic.roi_estimator import RoiEstimator
from promo_services.market_data import MarketDataProvider
from promo_services.promotion_models import Promotion, PromotionCalculation

logger = logging.getLogger(__name__)


class PromotionCalculator:

    def __init__(
        self,
        market_data: MarketDataProvider,
        discount_calculator: Optional[DiscountCalculator] = None,
        roi_estimator: Optional[RoiEstimator] = None,
    ):
        self.market_data = market_data
        self.discount_calculator = discount_calculator or DiscountCalculator()
        self.roi_estimator = roi_estimator or RoiEstimator()

    def calculate(
        self,
        promotion: Promotion,
        products: Iterable[str],
        volume: Decimal,
        customer_id: Optional[str] = None,
    ) -> PromotionCalculation:
        """
        Full calculation for a promotion at a volume.

        Raises:
            InvalidPriceError / InvalidVolumeError / UnsupportedMechanicError
            from the discount calculator, unchanged.
        """
        products = list(products or [])
        base_price = self.market_data.get_base_price(products, customer_id)
        breakdown = self.discount_calculator.price_promotion(promotion, base_price, volume)

        baseline_volume = self.market_data.get_baseline_volume(products)
        incremental_volume = self.roi_estimator.incremental_volume(volume, baseline_volume)
        estimate = self.roi_estimator.estimate(
            incremental_volume=incremental_volume,
            base_price=base_price,
            total_discount=breakdown.total_discount,
            actual_spend=promotion.actual_spend,
        )

        logger.debug(
            f"[PROMO-CALC] Calculation complete | promotion_id={promotion.id} | "
            f"volume={volume} | baseline={baseline_volume} | "
            f"incremental={estimate.incremental_volume} | roi={estimate.roi}"
        )

        return PromotionCalculation(
            promotion_id=promotion.id,
            base_price=base_price,
            discount_amount=breakdown.discount_amount,
            final_price=breakdown.final_price,
            discount_percentage=breakdown.discount_percentage,
            volume=volume,
            total_discount=breakdown.total_discount,
            incremental_volume=estimate.incremental_volume,
            roi=estimate.roi,
        )
