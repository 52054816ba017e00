"""
============================================================================
Incremental Volume & ROI Estimator
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: All values Decimal, ROI quantized to RATIO_PRECISION

    incremental_volume   = max(0, current_volume - baseline_volume)
    incremental_revenue  = incremental_volume * base_price
    promotion_cost       = total_discount + actual_spend
    roi                  = incremental_revenue / promotion_cost

ROI is zero when there is no incremental volume or no cost. It is never
negative and never the result of a division by zero.

============================================================================
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
import logging

from promo_engine.arithmetic.decimal_gateway import (
    DecimalGateway,
    RATIO_PRECISION,
    VOLUME_PRECISION,
    ZERO,
    get_decimal_gateway,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoiEstimate:
    incremental_volume: Decimal
    incremental_revenue: Decimal
    promotion_cost: Decimal
    roi: Decimal


class RoiEstimator:
    """Pure incremental-volume and ROI arithmetic."""

    def __init__(self, gateway: Optional[DecimalGateway] = None):
        self.gateway = gateway or get_decimal_gateway()

    def incremental_volume(self, current_volume: Decimal, baseline_volume: Decimal) -> Decimal:
        lift = self.gateway.subtract(current_volume, baseline_volume)
        return lift if lift > ZERO else ZERO

    def roi(
        self,
        incremental_volume: Decimal,
        base_price: Decimal,
        total_discount: Decimal,
        actual_spend: Decimal,
    ) -> Decimal:
        return self.estimate(
            incremental_volume, base_price, total_discount, actual_spend
        ).roi

    def estimate(
        self,
        incremental_volume: Decimal,
        base_price: Decimal,
        total_discount: Decimal,
        actual_spend: Decimal,
    ) -> RoiEstimate:
        incremental_revenue = self.gateway.multiply(incremental_volume, base_price)
        promotion_cost = self.gateway.add(total_discount, actual_spend)

        if incremental_volume <= ZERO or promotion_cost <= ZERO:
            roi = ZERO
        else:
            roi = self.gateway.divide(incremental_revenue, promotion_cost)

        return RoiEstimate(
            incremental_volume=self.gateway.quantize(incremental_volume, VOLUME_PRECISION),
            incremental_revenue=incremental_revenue,
            promotion_cost=promotion_cost,
            roi=self.gateway.quantize(roi, RATIO_PRECISION),
        )


_estimator = RoiEstimator()


def calculate_incremental_volume(current_volume: Decimal, baseline_volume: Decimal) -> Decimal:
    return _estimator.incremental_volume(current_volume, baseline_volume)


def calculate_roi(
    incremental_volume: Decimal,
    base_price: Decimal,
    total_discount: Decimal,
    actual_spend: Decimal,
) -> Decimal:
    return _estimator.roi(incremental_volume, base_price, total_discount, actual_spend)
