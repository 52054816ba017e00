"""
============================================================================
Promotion Decision Engine v1.0.0
Payload Schemas - Pydantic Models for Inbound Promotion & Claim Data
============================================================================

Reliability Level: L6 Critical
Input Constraints: Money, percentages, rates and volumes as Decimal,
                   int or numeric string; zero floats
Side Effects: None (pure validation)

MANDATE:
- All financial values MUST arrive as Decimal, int or str
- Maximum 10 decimal places, 28 total digits
- NaN and Infinity are rejected
- Business rules (date ordering, budget > 0, discount ceiling) are NOT
  checked here; the validation gate and claim eligibility report them

============================================================================
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)

from promo_services.promotion_models import (
    DiscountTier,
    Promotion,
    PromotionMechanic,
    PromotionStatus,
    PromotionTerms,
    VolumeTier,
)


# ============================================================================
# CONSTANTS
# ============================================================================

MAX_DECIMAL_PLACES = 10
MAX_TOTAL_DIGITS = 28


# ============================================================================
# CUSTOM VALIDATORS
# ============================================================================

def validate_decimal_value(
    value: Any,
    field_name: str,
    allow_negative: bool = False,
) -> Decimal:
    """
    Validate a numeric payload value and return it as Decimal.

    Raises:
        ValueError: On float input, non-finite values, excess precision,
                    or a negative value where one is not allowed
    """
    if value is None:
        raise ValueError(f"[DEC-001] {field_name} cannot be None")

    # Zero-float mandate
    if isinstance(value, float):
        raise ValueError(
            f"[DEC-001] {field_name} received float type. "
            f"Send money and rates as strings or integers. Received: {value}"
        )
    if isinstance(value, bool):
        raise ValueError(f"[DEC-001] {field_name} received boolean type")

    try:
        if isinstance(value, Decimal):
            decimal_value = value
        elif isinstance(value, (str, int)):
            decimal_value = Decimal(str(value).strip())
        else:
            raise ValueError(
                f"[DEC-001] {field_name} must be Decimal, str, or int. "
                f"Received: {type(value).__name__}"
            )
    except InvalidOperation as e:
        raise ValueError(
            f"[DEC-001] {field_name} is not a valid decimal number. "
            f"Received: {value}. Error: {e}"
        )

    if not decimal_value.is_finite():
        raise ValueError(f"[DEC-001] {field_name} must be a finite number. Received: {decimal_value}")

    sign, digits, exponent = decimal_value.as_tuple()
    if exponent < 0 and abs(exponent) > MAX_DECIMAL_PLACES:
        raise ValueError(
            f"[DEC-001] {field_name} exceeds maximum {MAX_DECIMAL_PLACES} decimal places. "
            f"Received: {decimal_value}"
        )
    if len(digits) > MAX_TOTAL_DIGITS:
        raise ValueError(
            f"[DEC-001] {field_name} exceeds maximum {MAX_TOTAL_DIGITS} total digits. "
            f"Received: {decimal_value}"
        )

    if not allow_negative and decimal_value < 0:
        raise ValueError(f"[DEC-001] {field_name} must not be negative. Received: {decimal_value}")

    return decimal_value


# ============================================================================
# PROMOTION TERMS SCHEMAS
# ============================================================================

class VolumeTierIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min_volume: Decimal
    multiplier: Decimal = Decimal("1")

    @field_validator("min_volume", "multiplier", mode="before")
    @classmethod
    def validate_decimals(cls, v: Any, info: ValidationInfo) -> Decimal:
        return validate_decimal_value(v, info.field_name)


class DiscountTierIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min_volume: Decimal
    max_volume: Decimal
    discount_percentage: Decimal

    @field_validator("min_volume", "max_volume", "discount_percentage", mode="before")
    @classmethod
    def validate_decimals(cls, v: Any, info: ValidationInfo) -> Decimal:
        return validate_decimal_value(v, info.field_name)


class PromotionTermsIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    discount_percentage: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    volume_rate: Decimal = Decimal("0")
    volume_tiers: List[VolumeTierIn] = Field(default_factory=list)
    discount_tiers: List[DiscountTierIn] = Field(default_factory=list)

    @field_validator("discount_percentage", "discount_amount", "volume_rate", mode="before")
    @classmethod
    def validate_decimals(cls, v: Any, info: ValidationInfo) -> Decimal:
        return validate_decimal_value(v, info.field_name)

    def to_terms(self) -> PromotionTerms:
        return PromotionTerms(
            discount_percentage=self.discount_percentage,
            discount_amount=self.discount_amount,
            volume_rate=self.volume_rate,
            volume_tiers=tuple(
                VolumeTier(min_volume=t.min_volume, multiplier=t.multiplier)
                for t in self.volume_tiers
            ),
            discount_tiers=tuple(
                DiscountTier(
                    min_volume=t.min_volume,
                    max_volume=t.max_volume,
                    discount_percentage=t.discount_percentage,
                )
                for t in self.discount_tiers
            ),
        )


# ============================================================================
# PROMOTION DEFINITION SCHEMA
# ============================================================================

class PromotionDefinition(BaseModel):
    """
    Inbound promotion definition.

    Reliability Level: L6 Critical
    Input Constraints:
        - mechanic: One of the four supported mechanics
        - budget / actual_spend / target_roi: Decimal-compatible, NO FLOATS
        - currency: 3-letter ISO code
    Side Effects: None (pure validation)
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "id": "PROMO-2026-001",
                "name": "Winter Volume Push",
                "mechanic": "PERCENTAGE_DISCOUNT",
                "terms": {"discount_percentage": "10"},
                "start_date": "2026-06-01",
                "end_date": "2026-06-30",
                "budget": "25000.00",
                "products": ["SKU-100"],
                "channels": ["modern_trade"],
            }
        }
    )

    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    mechanic: PromotionMechanic
    terms: PromotionTermsIn = Field(default_factory=PromotionTermsIn)
    start_date: date
    end_date: date
    budget: Decimal
    currency: str = Field("USD", min_length=3, max_length=3)
    status: PromotionStatus = PromotionStatus.DRAFT
    actual_spend: Decimal = Decimal("0")
    target_roi: Optional[Decimal] = None
    products: List[str] = Field(default_factory=list)
    channels: List[str] = Field(default_factory=list)
    budget_pool: Optional[str] = None
    resources: List[str] = Field(default_factory=list)
    promotion_type: Optional[str] = None

    @field_validator("budget", "actual_spend", mode="before")
    @classmethod
    def validate_money(cls, v: Any, info: ValidationInfo) -> Decimal:
        # Budget sign is a business rule reported by the validation gate
        return validate_decimal_value(v, info.field_name, allow_negative=True)

    @field_validator("target_roi", mode="before")
    @classmethod
    def validate_target_roi(cls, v: Any) -> Optional[Decimal]:
        if v is None:
            return None
        return validate_decimal_value(v, "target_roi")

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency_uppercase(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    def to_promotion(self) -> Promotion:
        return Promotion(
            id=self.id,
            name=self.name,
            mechanic=self.mechanic,
            terms=self.terms.to_terms(),
            start_date=self.start_date,
            end_date=self.end_date,
            budget=self.budget,
            currency=self.currency,
            status=self.status,
            actual_spend=self.actual_spend,
            target_roi=self.target_roi,
            products=frozenset(p for p in self.products if p),
            channels=frozenset(c for c in self.channels if c),
            budget_pool=self.budget_pool or None,
            resources=frozenset(r for r in self.resources if r),
            promotion_type=self.promotion_type,
        )


# ============================================================================
# CLAIM SUBMISSION SCHEMA
# ============================================================================

class ClaimSubmission(BaseModel):
    """
    Inbound claim against a promotion.

    Period ordering and containment are eligibility rules, checked by the
    claim processor so the rejection reason can cite both periods.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "customer_id": "CUST-0042",
                "customer_name": "Northwind Retail",
                "volume": "150",
                "products": ["SKU-100"],
                "period_start": "2026-06-05",
                "period_end": "2026-06-20",
                "documentation": ["invoice-8812.pdf"],
                "created_by": "kam.jdoe",
            }
        }
    )

    customer_id: str = Field(..., min_length=1, max_length=64)
    customer_name: Optional[str] = None
    volume: Decimal
    products: List[str] = Field(default_factory=list)
    period_start: date
    period_end: date
    documentation: List[str] = Field(default_factory=list)
    created_by: Optional[str] = None

    @field_validator("volume", mode="before")
    @classmethod
    def validate_volume(cls, v: Any) -> Decimal:
        return validate_decimal_value(v, "volume")


# ============================================================================
# END OF PAYLOAD SCHEMAS
# ============================================================================
