# ============================================================================
# Promotion Decision Engine v1.0.0
# Schemas Module - Inbound Payload Validation
# ============================================================================

from promo_engine.schemas.promotion_payloads import (
    ClaimSubmission,
    PromotionDefinition,
    validate_decimal_value,
)

__all__ = ["ClaimSubmission", "PromotionDefinition", "validate_decimal_value"]
