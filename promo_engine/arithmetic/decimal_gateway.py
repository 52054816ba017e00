# ============================================================================
# Promotion Decision Engine v1.0.0
# Decimal Gateway - Exact Arithmetic Core
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Every money, percentage, rate and volume value in the engine is a
#          decimal.Decimal produced by this gateway and rounded ROUND_HALF_EVEN
#
# MANDATE:
#   - Float contamination is FORBIDDEN in pricing, forecast and claim math
#   - Floats are only accepted at the edge and are converted via str()
#   - Intermediate results keep full context precision (28 digits)
#   - Quantization happens once, at the result boundary
#
# Scales:
#   - MONEY_PRECISION:   0.01    (totals, claim amounts, revenue, cost)
#   - UNIT_PRECISION:    0.001   (per-unit discount, final unit price)
#   - PERCENT_PRECISION: 0.0001  (discount percentage)
#   - RATIO_PRECISION:   0.0001  (ROI, adjustment factor, confidence)
#   - VOLUME_PRECISION:  0.001   (units)
#
# Error Codes:
#   - DEC-001: Decimal conversion failed
#   - DEC-002: Division by zero
#
# ============================================================================

from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    ROUND_HALF_EVEN,
    localcontext,
)
from typing import Optional, Union, Any
import logging

from promo_services.promotion_errors import (
    DecimalConversionError,
    DivisionByZeroError,
)

logger = logging.getLogger(__name__)

Numeric = Union[Decimal, str, int, float, None]

# Precision constants
MONEY_PRECISION = Decimal('0.01')
UNIT_PRECISION = Decimal('0.001')
PERCENT_PRECISION = Decimal('0.0001')
RATIO_PRECISION = Decimal('0.0001')
VOLUME_PRECISION = Decimal('0.001')

ZERO = Decimal('0')
ONE = Decimal('1')
HUNDRED = Decimal('100')

# Shared arithmetic context: 28 significant digits, Banker's Rounding.
# Traps make 1/0 and 0/0 raise instead of yielding Infinity/NaN.
ENGINE_CONTEXT = Context(
    prec=28,
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, DivisionByZero],
)


class DecimalGateway:
    """
    Exact arithmetic gateway for the promotion engine.

    Reliability Level: L6 Critical
    Input Constraints: Any numeric value (Decimal, str, int, float, None)
    Side Effects: Logs DEC-001 on conversion failure

    Example Usage:
        gateway = DecimalGateway()

        # Factor impacts arrive as JSON numbers from market data feeds
        impact = gateway.to_decimal(-0.1)            # Decimal('-0.1')

        # Quantize a per-unit discount for output
        unit = gateway.quantize(raw, UNIT_PRECISION)

        # Division never returns Infinity
        per_unit = gateway.divide(total, volume)     # raises DEC-002 on zero
    """

    def to_decimal(
        self,
        value: Numeric,
        precision: Optional[Decimal] = None,
        field_name: Optional[str] = None,
    ) -> Decimal:
        """
        Convert any numeric value to Decimal.

        Floats are converted through their shortest str() representation so
        0.1 becomes Decimal('0.1'), never Decimal(0.1000000000000000055...).
        When precision is given, the result is quantized ROUND_HALF_EVEN.

        Args:
            value: Numeric value to convert (None is treated as zero)
            precision: Optional quantization step
            field_name: Field being converted (for audit logging)

        Returns:
            Finite Decimal

        Raises:
            DecimalConversionError: If value is not a finite number (DEC-001)
        """
        if value is None:
            result = ZERO
        elif isinstance(value, bool):
            # bool is an int subclass; True is not a price
            self._conversion_failed(value, field_name, "boolean input")
        else:
            try:
                result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
            except (InvalidOperation, ValueError, TypeError) as e:
                self._conversion_failed(value, field_name, str(e))

        if not result.is_finite():
            self._conversion_failed(value, field_name, "non-finite value")

        if precision is not None:
            return self.quantize(result, precision)
        return result

    def _conversion_failed(self, value: Any, field_name: Optional[str], detail: str) -> None:
        logger.error(
            f"[DEC-001] Decimal conversion failed | "
            f"field={field_name} | value={value!r} | "
            f"type={type(value).__name__} | error={detail}"
        )
        raise DecimalConversionError(
            f"Cannot convert {value!r} to Decimal"
            + (f" for field '{field_name}'" if field_name else "")
        )

    def quantize(self, value: Decimal, precision: Decimal) -> Decimal:
        """Round value to the given step with ROUND_HALF_EVEN."""
        with localcontext(ENGINE_CONTEXT):
            return value.quantize(precision, rounding=ROUND_HALF_EVEN)

    def add(self, *values: Decimal) -> Decimal:
        with localcontext(ENGINE_CONTEXT):
            total = ZERO
            for value in values:
                total = total + value
            return total

    def subtract(self, minuend: Decimal, subtrahend: Decimal) -> Decimal:
        with localcontext(ENGINE_CONTEXT):
            return minuend - subtrahend

    def multiply(self, *values: Decimal) -> Decimal:
        with localcontext(ENGINE_CONTEXT):
            product = ONE
            for value in values:
                product = product * value
            return product

    def divide(self, dividend: Decimal, divisor: Decimal) -> Decimal:
        """
        Divide under the engine context.

        Raises:
            DivisionByZeroError: If divisor is zero (DEC-002)
        """
        if divisor == ZERO:
            logger.error(
                f"[DEC-002] Division by zero | dividend={dividend}"
            )
            raise DivisionByZeroError(f"Cannot divide {dividend} by zero")
        with localcontext(ENGINE_CONTEXT):
            return dividend / divisor

    def percent_of(self, amount: Decimal, percentage: Decimal) -> Decimal:
        """amount * percentage / 100"""
        return self.divide(self.multiply(amount, percentage), HUNDRED)

    def to_wire(self, value: Decimal, precision: Optional[Decimal] = None) -> str:
        """
        Serialize a Decimal for any boundary (events, JSON, SQL).

        Always an exact decimal string in fixed-point notation, never a float.
        """
        if precision is not None:
            value = self.quantize(value, precision)
        return format(value, 'f')


# ============================================================================
# Module-level convenience functions
# ============================================================================

_gateway = DecimalGateway()


def get_decimal_gateway() -> DecimalGateway:
    """Shared stateless gateway instance."""
    return _gateway


def to_decimal(
    value: Numeric,
    precision: Optional[Decimal] = None,
    field_name: Optional[str] = None,
) -> Decimal:
    """Module-level convenience function for Decimal conversion."""
    return _gateway.to_decimal(value, precision, field_name)


def to_money(value: Numeric, field_name: Optional[str] = None) -> Decimal:
    """Convert and quantize to MONEY_PRECISION."""
    return _gateway.to_decimal(value, MONEY_PRECISION, field_name)


def to_wire(value: Decimal, precision: Optional[Decimal] = None) -> str:
    """Module-level convenience function for exact string serialization."""
    return _gateway.to_wire(value, precision)


# ============================================================================
# Reliability Audit
# ============================================================================
#
# Decimal Integrity: [Verified - ROUND_HALF_EVEN, 28-digit context]
# Float Contamination: [Verified - floats converted via str() only]
# Division Safety: [Verified - DEC-002 raised instead of Infinity/NaN]
#
# ============================================================================
