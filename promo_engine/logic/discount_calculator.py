# ============================================================================
# Promotion Decision Engine v1.0.0
# Discount Calculator - Mechanic Resolution & Volume Tiers
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Resolve the discount a promotion grants at a base price and volume
#
# MANDATE:
#   - Every intermediate value is an exact Decimal (28-digit context)
#   - Rounding happens once, when the DiscountBreakdown is produced
#   - Promotion terms are read, never mutated (volume tiers are scanned
#     from a sorted copy, highest min_volume first)
#   - Unknown mechanics raise PROMO-003; they never price at zero
#
# Mechanics:
#   - PERCENTAGE_DISCOUNT: base_price * pct / 100
#   - FIXED_AMOUNT:        constant, volume independent
#   - VOLUME_BASED:        volume * rate (volume-scaled, NOT per unit)
#   - TIERED_DISCOUNT:     volume partitioned across ascending tiers,
#                          accumulated discount divided by total volume
#
# Error Codes:
#   - PROMO-002: Invalid volume
#   - PROMO-003: Unsupported mechanic
#   - PROMO-004: Invalid base price
#
# ============================================================================

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Any, Iterable, Optional

from promo_engine.arithmetic.decimal_gateway import (
    DecimalGateway,
    get_decimal_gateway,
    HUNDRED,
    MONEY_PRECISION,
    PERCENT_PRECISION,
    UNIT_PRECISION,
    ZERO,
    to_wire,
)
from promo_services.promotion_errors import (
    InvalidPriceError,
    InvalidVolumeError,
    UnsupportedMechanicError,
)
from promo_services.promotion_models import (
    DiscountTier,
    Promotion,
    PromotionMechanic,
    VolumeTier,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class DiscountBreakdown:
    """
    Priced discount for one promotion at one base price and volume.

    Reliability Level: L6 Critical
    All values are Decimal, quantized at the documented scales.
    """
    promotion_id: str
    mechanic: PromotionMechanic
    base_price: Decimal
    discount_amount: Decimal      # per unit after volume tiers (UNIT_PRECISION)
    final_price: Decimal          # base_price - discount_amount (UNIT_PRECISION)
    discount_percentage: Decimal  # discount_amount / base_price * 100 (PERCENT_PRECISION)
    volume: Decimal
    total_discount: Decimal       # discount_amount * volume (MONEY_PRECISION)
    tier_multiplier: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "promotion_id": self.promotion_id,
            "mechanic": self.mechanic.value,
            "base_price": to_wire(self.base_price),
            "discount_amount": to_wire(self.discount_amount),
            "final_price": to_wire(self.final_price),
            "discount_percentage": to_wire(self.discount_percentage),
            "volume": to_wire(self.volume),
            "total_discount": to_wire(self.total_discount),
            "tier_multiplier": to_wire(self.tier_multiplier),
        }


# ============================================================================
# Discount Calculator
# ============================================================================

class DiscountCalculator:
    """
    Per-mechanic discount resolution.

    Reliability Level: L6 Critical

    Pure: every method is a function of its arguments. Identical inputs
    always produce identical Decimal outputs, so results are safe to memoize.

    Example Usage:
        calculator = DiscountCalculator()

        breakdown = calculator.price_promotion(
            promotion=promo,                 # 10% PERCENTAGE_DISCOUNT
            base_price=Decimal("100"),
            volume=Decimal("50"),
        )
        breakdown.discount_amount           # Decimal('10.000')
        breakdown.final_price               # Decimal('90.000')
        breakdown.total_discount            # Decimal('500.00')
    """

    def __init__(self, gateway: Optional[DecimalGateway] = None):
        self.gateway = gateway or get_decimal_gateway()

    # ------------------------------------------------------------------------
    # Mechanic resolution
    # ------------------------------------------------------------------------

    def calculate_discount(
        self,
        promotion: Promotion,
        base_price: Decimal,
        volume: Decimal,
    ) -> Decimal:
        """
        Resolve the raw discount for the promotion's mechanic.

        The result is unrounded. For VOLUME_BASED it is volume-scaled
        (volume * rate), not per unit.

        Raises:
            InvalidVolumeError: Tiered mechanic with volume <= 0 (PROMO-002)
            UnsupportedMechanicError: Mechanic outside the enum (PROMO-003)
        """
        mechanic = promotion.mechanic
        terms = promotion.terms

        if mechanic == PromotionMechanic.PERCENTAGE_DISCOUNT:
            return self.gateway.percent_of(base_price, terms.discount_percentage)

        if mechanic == PromotionMechanic.FIXED_AMOUNT:
            return terms.discount_amount

        if mechanic == PromotionMechanic.VOLUME_BASED:
            return self.gateway.multiply(volume, terms.volume_rate)

        if mechanic == PromotionMechanic.TIERED_DISCOUNT:
            return self.calculate_tiered_discount(
                terms.discount_tiers, base_price, volume, promotion_id=promotion.id
            )

        logger.error(
            f"[PROMO-003] Unsupported promotion mechanic | "
            f"promotion_id={promotion.id} | mechanic={mechanic!r}"
        )
        raise UnsupportedMechanicError(
            f"Unsupported promotion mechanic {mechanic!r} for promotion {promotion.id}"
        )

    def calculate_tiered_discount(
        self,
        tiers: Iterable[DiscountTier],
        base_price: Decimal,
        volume: Decimal,
        promotion_id: Optional[str] = None,
    ) -> Decimal:
        """
        Per-unit discount across ascending discount tiers.

        Volume is consumed tier by tier (min(remaining, tier width)); each
        consumed slice is discounted at that tier's percentage. The sum is
        divided by the total volume. Volume beyond the last tier's upper
        bound earns no discount.

        Example:
            tiers [(0-100, 5%), (100-200, 10%)], base 100, volume 150
            (100 * 5 + 50 * 10) / 150 = 1000 / 150 = 6.666...

        Raises:
            InvalidVolumeError: If volume <= 0 (PROMO-002)
        """
        if volume <= ZERO:
            logger.error(
                f"[PROMO-002] Tiered discount requires positive volume | "
                f"promotion_id={promotion_id} | volume={volume}"
            )
            raise InvalidVolumeError(
                f"Tiered discount requires a positive volume, got {volume}"
                + (f" for promotion {promotion_id}" if promotion_id else "")
            )

        total_discount = ZERO
        remaining = volume

        for tier in sorted(tiers, key=lambda t: t.min_volume):
            volume_for_tier = min(remaining, tier.width)

            if volume_for_tier > ZERO:
                unit_discount = self.gateway.percent_of(base_price, tier.discount_percentage)
                total_discount = self.gateway.add(
                    total_discount,
                    self.gateway.multiply(unit_discount, volume_for_tier),
                )
                remaining = self.gateway.subtract(remaining, volume_for_tier)

            if remaining <= ZERO:
                break

        return self.gateway.divide(total_discount, volume)

    # ------------------------------------------------------------------------
    # Volume tiers
    # ------------------------------------------------------------------------

    def select_volume_tier(
        self,
        tiers: Iterable[VolumeTier],
        volume: Decimal,
    ) -> Optional[VolumeTier]:
        """
        Highest tier whose min_volume <= volume, or None.

        Scans a descending copy; the promotion's own tier sequence is never
        reordered. Tiers sharing a min_volume resolve to the one declared
        first.
        """
        for tier in sorted(tiers, key=lambda t: t.min_volume, reverse=True):
            if volume >= tier.min_volume:
                return tier
        return None

    def apply_volume_tiers(
        self,
        promotion: Promotion,
        volume: Decimal,
        base_discount: Decimal,
    ) -> Decimal:
        """Multiply base_discount by the matching volume tier's multiplier."""
        tier = self.select_volume_tier(promotion.terms.volume_tiers, volume)
        if tier is None:
            return base_discount
        return self.gateway.multiply(base_discount, tier.multiplier)

    # ------------------------------------------------------------------------
    # Full pricing
    # ------------------------------------------------------------------------

    def price_promotion(
        self,
        promotion: Promotion,
        base_price: Decimal,
        volume: Decimal,
    ) -> DiscountBreakdown:
        """
        Price a promotion end to end.

        final_price = base_price - discount
        discount_percentage = discount / base_price * 100
        total_discount = discount * volume

        Raises:
            InvalidPriceError: base_price <= 0 (PROMO-004)
            InvalidVolumeError: volume < 0, or tiered with volume == 0 (PROMO-002)
            UnsupportedMechanicError: Unknown mechanic (PROMO-003)
        """
        if base_price <= ZERO:
            logger.error(
                f"[PROMO-004] Base price must be positive | "
                f"promotion_id={promotion.id} | base_price={base_price}"
            )
            raise InvalidPriceError(
                f"Base price must be positive for promotion {promotion.id}, got {base_price}"
            )
        if volume < ZERO:
            logger.error(
                f"[PROMO-002] Volume must not be negative | "
                f"promotion_id={promotion.id} | volume={volume}"
            )
            raise InvalidVolumeError(
                f"Volume must not be negative for promotion {promotion.id}, got {volume}"
            )

        raw_discount = self.calculate_discount(promotion, base_price, volume)
        discount = self.apply_volume_tiers(promotion, volume, raw_discount)
        tier = self.select_volume_tier(promotion.terms.volume_tiers, volume)
        multiplier = tier.multiplier if tier is not None else Decimal("1")

        final_price = self.gateway.subtract(base_price, discount)
        discount_percentage = self.gateway.multiply(
            self.gateway.divide(discount, base_price), HUNDRED
        )
        total_discount = self.gateway.multiply(discount, volume)

        breakdown = DiscountBreakdown(
            promotion_id=promotion.id,
            mechanic=promotion.mechanic,
            base_price=base_price,
            discount_amount=self.gateway.quantize(discount, UNIT_PRECISION),
            final_price=self.gateway.quantize(final_price, UNIT_PRECISION),
            discount_percentage=self.gateway.quantize(discount_percentage, PERCENT_PRECISION),
            volume=volume,
            total_discount=self.gateway.quantize(total_discount, MONEY_PRECISION),
            tier_multiplier=multiplier,
        )

        logger.debug(
            f"[PROMO-CALC] Discount priced | promotion_id={promotion.id} | "
            f"mechanic={promotion.mechanic.value} | volume={volume} | "
            f"discount={breakdown.discount_amount} | "
            f"total_discount={breakdown.total_discount}"
        )
        return breakdown


# ============================================================================
# Module-level convenience functions
# ============================================================================

_calculator = DiscountCalculator()


def calculate_discount(promotion: Promotion, base_price: Decimal, volume: Decimal) -> Decimal:
    """Module-level convenience function for raw discount resolution."""
    return _calculator.calculate_discount(promotion, base_price, volume)


def price_promotion(
    promotion: Promotion,
    base_price: Decimal,
    volume: Decimal,
) -> DiscountBreakdown:
    """Module-level convenience function for full pricing."""
    return _calculator.price_promotion(promotion, base_price, volume)
