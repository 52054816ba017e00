# ============================================================================
# Promotion Decision Engine v1.0.0
# Arithmetic Module - Exact Decimal Core
# ============================================================================

from promo_engine.arithmetic.decimal_gateway import (
    DecimalGateway,
    get_decimal_gateway,
    to_decimal,
    to_money,
    to_wire,
    MONEY_PRECISION,
    UNIT_PRECISION,
    PERCENT_PRECISION,
    RATIO_PRECISION,
    VOLUME_PRECISION,
)

__all__ = [
    "DecimalGateway",
    "get_decimal_gateway",
    "to_decimal",
    "to_money",
    "to_wire",
    "MONEY_PRECISION",
    "UNIT_PRECISION",
    "PERCENT_PRECISION",
    "RATIO_PRECISION",
    "VOLUME_PRECISION",
]
