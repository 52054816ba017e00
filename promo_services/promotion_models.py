"""
============================================================================
Promotion Decision Engine - Core Data Models
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: All money, percentage, rate and volume fields are
                   decimal.Decimal; serialization emits exact strings

This module defines the domain records shared by every engine component:
- Promotion / PromotionTerms / VolumeTier / DiscountTier
- Claim and its lifecycle enums
- PerformanceSnapshot and ForecastFactor (analytics inputs)
- Result records: PromotionCalculation, ForecastResult, ConflictRecord,
  ConflictReport, ValidationResult, ClaimResult, OptimizationResult

Promotion records are frozen: tier lists are tuples and product/channel
sets are frozensets, so no engine component can mutate shared promotion
state while evaluating it.

============================================================================
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple
import json
import logging

from promo_engine.arithmetic.decimal_gateway import (
    MONEY_PRECISION,
    to_decimal,
    to_wire,
)

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Enums
# =============================================================================

class PromotionMechanic(Enum):
    """Closed set of pricing mechanics."""
    PERCENTAGE_DISCOUNT = "PERCENTAGE_DISCOUNT"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    VOLUME_BASED = "VOLUME_BASED"
    TIERED_DISCOUNT = "TIERED_DISCOUNT"


class PromotionStatus(Enum):
    """
    Promotion lifecycle status.

    Promotions are never deleted; COMPLETED and CANCELLED close them.
    """
    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


CLOSED_PROMOTION_STATUSES = frozenset({
    PromotionStatus.COMPLETED,
    PromotionStatus.CANCELLED,
})


class ClaimType(Enum):
    TRADE_ALLOWANCE = "TRADE_ALLOWANCE"
    VOLUME_DISCOUNT = "VOLUME_DISCOUNT"
    REBATE = "REBATE"
    COOPERATIVE_ADVERTISING = "COOPERATIVE_ADVERTISING"
    OTHER = "OTHER"


class ValidationStatus(Enum):
    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    REJECTED = "REJECTED"


class ApprovalStatus(Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ClaimStatus(Enum):
    """Overall claim status derived from validation and approval."""
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ConflictCategory(Enum):
    OVERLAP = "overlap"
    CANNIBALIZATION = "cannibalization"
    BUDGET = "budget"
    RESOURCE = "resource"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def map_promotion_type_to_claim_type(promotion_type: Optional[str]) -> ClaimType:
    """Claim type mirrors the promotion type; anything unknown is OTHER."""
    if not promotion_type:
        return ClaimType.OTHER
    try:
        claim_type = ClaimType(promotion_type.strip().upper())
    except ValueError:
        return ClaimType.OTHER
    return claim_type


# =============================================================================
# Custom JSON Encoder for Decimal, dates and enums
# =============================================================================

class PromotionJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for promotion engine records.

    Handles:
    - Decimal -> str (preserves precision)
    - date/datetime -> ISO format string
    - Enum -> value
    - set/frozenset -> sorted list
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return to_wire(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        return super().default(obj)


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _frozen(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(v for v in (values or ()) if v)


# =============================================================================
# Promotion Terms
# =============================================================================

@dataclass(frozen=True)
class VolumeTier:
    """Multiplier applied to the resolved discount once volume reaches min_volume."""
    min_volume: Decimal
    multiplier: Decimal = Decimal("1")

    def to_dict(self) -> Dict[str, str]:
        return {"min_volume": to_wire(self.min_volume), "multiplier": to_wire(self.multiplier)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VolumeTier":
        multiplier = data.get("multiplier")
        return cls(
            min_volume=to_decimal(data.get("min_volume"), field_name="min_volume"),
            multiplier=to_decimal(
                multiplier if multiplier is not None else 1, field_name="multiplier"
            ),
        )


@dataclass(frozen=True)
class DiscountTier:
    """Volume bucket [min_volume, max_volume) discounted at discount_percentage."""
    min_volume: Decimal
    max_volume: Decimal
    discount_percentage: Decimal

    @property
    def width(self) -> Decimal:
        return self.max_volume - self.min_volume

    def to_dict(self) -> Dict[str, str]:
        return {
            "min_volume": to_wire(self.min_volume),
            "max_volume": to_wire(self.max_volume),
            "discount_percentage": to_wire(self.discount_percentage),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiscountTier":
        return cls(
            min_volume=to_decimal(data.get("min_volume"), field_name="min_volume"),
            max_volume=to_decimal(data.get("max_volume"), field_name="max_volume"),
            discount_percentage=to_decimal(
                data.get("discount_percentage"), field_name="discount_percentage"
            ),
        )


@dataclass(frozen=True)
class PromotionTerms:
    """
    Mechanic-specific terms.

    Only the fields relevant to the promotion's mechanic are read; the rest
    default to zero / empty.
    """
    discount_percentage: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    volume_rate: Decimal = Decimal("0")
    volume_tiers: Tuple[VolumeTier, ...] = ()
    discount_tiers: Tuple[DiscountTier, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discount_percentage": to_wire(self.discount_percentage),
            "discount_amount": to_wire(self.discount_amount),
            "volume_rate": to_wire(self.volume_rate),
            "volume_tiers": [t.to_dict() for t in self.volume_tiers],
            "discount_tiers": [t.to_dict() for t in self.discount_tiers],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PromotionTerms":
        data = data or {}
        return cls(
            discount_percentage=to_decimal(
                data.get("discount_percentage"), field_name="discount_percentage"
            ),
            discount_amount=to_decimal(data.get("discount_amount"), field_name="discount_amount"),
            volume_rate=to_decimal(data.get("volume_rate"), field_name="volume_rate"),
            volume_tiers=tuple(
                VolumeTier.from_dict(t) for t in data.get("volume_tiers") or []
            ),
            discount_tiers=tuple(
                DiscountTier.from_dict(t) for t in data.get("discount_tiers") or []
            ),
        )


# =============================================================================
# Promotion
# =============================================================================

@dataclass(frozen=True)
class Promotion:
    """
    Promotion definition.

    ============================================================================
    PROMOTION FIELDS:
    ============================================================================
    - id / name: Identity
    - mechanic / terms: How the discount is priced
    - start_date / end_date: Active window (inclusive dates)
    - budget / actual_spend: Funding and spend to date
    - target_roi: ROI the promotion is expected to reach
    - currency: ISO currency code for every money field
    - status: Lifecycle status
    - products / channels: Targeting
    - budget_pool: Shared budget the promotion draws from (optional)
    - resources: Constrained operational resources it consumes (optional)
    - promotion_type: Trade promotion type, drives the claim type
    ============================================================================
    """

    id: str
    name: str
    mechanic: PromotionMechanic
    terms: PromotionTerms
    start_date: date
    end_date: date
    budget: Decimal
    currency: str = "USD"
    status: PromotionStatus = PromotionStatus.DRAFT
    actual_spend: Decimal = Decimal("0")
    target_roi: Optional[Decimal] = None
    products: FrozenSet[str] = field(default_factory=frozenset)
    channels: FrozenSet[str] = field(default_factory=frozenset)
    budget_pool: Optional[str] = None
    resources: FrozenSet[str] = field(default_factory=frozenset)
    promotion_type: Optional[str] = None

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_PROMOTION_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible types (Decimals as exact strings)."""
        return {
            "id": self.id,
            "name": self.name,
            "mechanic": self.mechanic.value,
            "terms": self.terms.to_dict(),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "budget": to_wire(self.budget),
            "currency": self.currency,
            "status": self.status.value,
            "actual_spend": to_wire(self.actual_spend),
            "target_roi": to_wire(self.target_roi) if self.target_roi is not None else None,
            "products": sorted(self.products),
            "channels": sorted(self.channels),
            "budget_pool": self.budget_pool,
            "resources": sorted(self.resources),
            "promotion_type": self.promotion_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Promotion":
        """
        Create Promotion from a dictionary (repository row or payload).

        Raises:
            ValueError: Unknown mechanic/status or unparsable dates
            DecimalConversionError: Non-numeric money fields (DEC-001)
        """
        target_roi = data.get("target_roi")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or str(data["id"]),
            mechanic=PromotionMechanic(data["mechanic"]),
            terms=PromotionTerms.from_dict(data.get("terms")),
            start_date=_parse_date(data["start_date"]),
            end_date=_parse_date(data["end_date"]),
            budget=to_decimal(data.get("budget"), field_name="budget"),
            currency=data.get("currency") or "USD",
            status=PromotionStatus(data.get("status") or PromotionStatus.DRAFT.value),
            actual_spend=to_decimal(data.get("actual_spend"), field_name="actual_spend"),
            target_roi=(
                to_decimal(target_roi, field_name="target_roi") if target_roi is not None else None
            ),
            products=_frozen(data.get("products")),
            channels=_frozen(data.get("channels")),
            budget_pool=data.get("budget_pool") or None,
            resources=_frozen(data.get("resources")),
            promotion_type=data.get("promotion_type"),
        )


# =============================================================================
# Claim
# =============================================================================

@dataclass
class Claim:
    """
    Monetary claim filed against a promotion.

    validation_status and approval_status move monotonically out of
    PENDING; transitions are enforced by claim_state_machine.
    """

    id: str
    promotion_id: str
    claim_number: str
    claim_type: ClaimType
    customer_id: str
    amount: Decimal
    currency: str
    claim_date: datetime
    period_start: date
    period_end: date
    customer_name: Optional[str] = None
    products: List[str] = field(default_factory=list)
    documentation: List[str] = field(default_factory=list)
    created_by: Optional[str] = None
    validation_status: ValidationStatus = ValidationStatus.PENDING
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    rejection_reason: Optional[str] = None

    @property
    def status(self) -> ClaimStatus:
        if (
            self.validation_status == ValidationStatus.REJECTED
            or self.approval_status == ApprovalStatus.REJECTED
        ):
            return ClaimStatus.REJECTED
        if self.approval_status == ApprovalStatus.APPROVED:
            return ClaimStatus.APPROVED
        return ClaimStatus.PENDING_REVIEW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "promotion_id": self.promotion_id,
            "claim_number": self.claim_number,
            "claim_type": self.claim_type.value,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "amount": to_wire(self.amount, MONEY_PRECISION),
            "currency": self.currency,
            "claim_date": self.claim_date.isoformat(),
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "products": list(self.products),
            "documentation": list(self.documentation),
            "created_by": self.created_by,
            "validation_status": self.validation_status.value,
            "approval_status": self.approval_status.value,
            "rejection_reason": self.rejection_reason,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Claim":
        return cls(
            id=str(data["id"]),
            promotion_id=str(data["promotion_id"]),
            claim_number=data["claim_number"],
            claim_type=ClaimType(data.get("claim_type") or ClaimType.OTHER.value),
            customer_id=data["customer_id"],
            customer_name=data.get("customer_name"),
            amount=to_decimal(data.get("amount"), MONEY_PRECISION, field_name="amount"),
            currency=data["currency"],
            claim_date=_parse_datetime(data["claim_date"]),
            period_start=_parse_date(data["period_start"]),
            period_end=_parse_date(data["period_end"]),
            products=list(data.get("products") or []),
            documentation=list(data.get("documentation") or []),
            created_by=data.get("created_by"),
            validation_status=ValidationStatus(
                data.get("validation_status") or ValidationStatus.PENDING.value
            ),
            approval_status=ApprovalStatus(
                data.get("approval_status") or ApprovalStatus.PENDING.value
            ),
            rejection_reason=data.get("rejection_reason"),
        )


# =============================================================================
# Analytics Inputs
# =============================================================================

@dataclass(frozen=True)
class PerformanceSnapshot:
    """Historical per-period metrics for a promotion (append-only)."""
    promotion_id: str
    period_start: date
    period_end: date
    volume: Decimal
    revenue: Decimal
    cost: Decimal
    roi: Decimal

    @property
    def days(self) -> int:
        """Inclusive day count of the bucket."""
        return (self.period_end - self.period_start).days + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "promotion_id": self.promotion_id,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "volume": to_wire(self.volume),
            "revenue": to_wire(self.revenue),
            "cost": to_wire(self.cost),
            "roi": to_wire(self.roi),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PerformanceSnapshot":
        return cls(
            promotion_id=str(data["promotion_id"]),
            period_start=_parse_date(data["period_start"]),
            period_end=_parse_date(data["period_end"]),
            volume=to_decimal(data.get("volume"), field_name="volume"),
            revenue=to_decimal(data.get("revenue"), field_name="revenue"),
            cost=to_decimal(data.get("cost"), field_name="cost"),
            roi=to_decimal(data.get("roi"), field_name="roi"),
        )


@dataclass(frozen=True)
class ForecastFactor:
    """Market or seasonal adjustment: contributes impact * weight."""
    name: str
    impact: Decimal
    weight: Decimal

    def to_dict(self) -> Dict[str, str]:
        return {"factor": self.name, "impact": to_wire(self.impact), "weight": to_wire(self.weight)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ForecastFactor":
        return cls(
            name=data.get("factor") or data.get("name") or "unnamed",
            impact=to_decimal(data.get("impact"), field_name="impact"),
            weight=to_decimal(data.get("weight"), field_name="weight"),
        )


# =============================================================================
# Result Records
# =============================================================================

@dataclass(frozen=True)
class PromotionCalculation:
    """Full pricing computation for a promotion at a given volume."""
    promotion_id: str
    base_price: Decimal
    discount_amount: Decimal
    final_price: Decimal
    discount_percentage: Decimal
    volume: Decimal
    total_discount: Decimal
    incremental_volume: Decimal
    roi: Decimal

    def to_dict(self) -> Dict[str, str]:
        return {
            "promotion_id": self.promotion_id,
            "base_price": to_wire(self.base_price),
            "discount_amount": to_wire(self.discount_amount),
            "final_price": to_wire(self.final_price),
            "discount_percentage": to_wire(self.discount_percentage),
            "volume": to_wire(self.volume),
            "total_discount": to_wire(self.total_discount),
            "incremental_volume": to_wire(self.incremental_volume),
            "roi": to_wire(self.roi),
        }


@dataclass(frozen=True)
class ForecastResult:
    promotion_id: str
    forecast_period: str
    expected_volume: Decimal
    expected_revenue: Decimal
    expected_cost: Decimal
    expected_roi: Decimal
    confidence: Decimal
    factors: Tuple[ForecastFactor, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "promotion_id": self.promotion_id,
            "forecast_period": self.forecast_period,
            "expected_volume": to_wire(self.expected_volume),
            "expected_revenue": to_wire(self.expected_revenue),
            "expected_cost": to_wire(self.expected_cost),
            "expected_roi": to_wire(self.expected_roi),
            "confidence": to_wire(self.confidence),
            "factors": [f.to_dict() for f in self.factors],
        }


@dataclass(frozen=True)
class ConflictRecord:
    conflicting_promotion_id: str
    name: str
    category: ConflictCategory
    severity: Severity
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.conflicting_promotion_id,
            "name": self.name,
            "conflict_type": self.category.value,
            "severity": self.severity.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class ConflictReport:
    promotion_id: str
    conflicts: Tuple[ConflictRecord, ...]
    resolution: str

    @property
    def has_high_severity(self) -> bool:
        return any(c.severity == Severity.HIGH for c in self.conflicts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "promotion_id": self.promotion_id,
            "conflicting_promotions": [c.to_dict() for c in self.conflicts],
            "resolution": self.resolution,
        }


@dataclass
class ValidationResult:
    """Aggregated validation outcome; valid iff errors is empty."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


@dataclass(frozen=True)
class ClaimResult:
    claim_id: str
    claim_number: str
    status: ClaimStatus
    amount: Decimal
    validation_status: ValidationStatus
    approval_status: ApprovalStatus
    event_published: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claim_id": self.claim_id,
            "claim_number": self.claim_number,
            "status": self.status.value,
            "amount": to_wire(self.amount, MONEY_PRECISION),
            "validation_status": self.validation_status.value,
            "approval_status": self.approval_status.value,
            "event_published": self.event_published,
        }


@dataclass(frozen=True)
class PerformanceGap:
    metric: str
    gap: Decimal
    severity: Severity


@dataclass(frozen=True)
class Recommendation:
    type: str
    description: str
    expected_impact: Decimal
    confidence: Decimal
    priority: Severity


@dataclass(frozen=True)
class OptimizationResult:
    promotion_id: str
    current_performance: Optional[PerformanceSnapshot]
    gaps: Tuple[PerformanceGap, ...]
    recommendations: Tuple[Recommendation, ...]
    optimized_parameters: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "promotion_id": self.promotion_id,
            "current_performance": (
                self.current_performance.to_dict() if self.current_performance else {}
            ),
            "gaps": [
                {"metric": g.metric, "gap": to_wire(g.gap), "severity": g.severity.value}
                for g in self.gaps
            ],
            "recommendations": [
                {
                    "type": r.type,
                    "description": r.description,
                    "expected_impact": to_wire(r.expected_impact),
                    "confidence": to_wire(r.confidence),
                    "priority": r.priority.value,
                }
                for r in self.recommendations
            ],
            "optimized_parameters": json.loads(
                json.dumps(self.optimized_parameters, cls=PromotionJSONEncoder)
            ),
        }


__all__ = [
    "PromotionMechanic",
    "PromotionStatus",
    "CLOSED_PROMOTION_STATUSES",
    "ClaimType",
    "ValidationStatus",
    "ApprovalStatus",
    "ClaimStatus",
    "ConflictCategory",
    "Severity",
    "map_promotion_type_to_claim_type",
    "PromotionJSONEncoder",
    "VolumeTier",
    "DiscountTier",
    "PromotionTerms",
    "Promotion",
    "Claim",
    "PerformanceSnapshot",
    "ForecastFactor",
    "PromotionCalculation",
    "ForecastResult",
    "ConflictRecord",
    "ConflictReport",
    "ValidationResult",
    "ClaimResult",
    "PerformanceGap",
    "Recommendation",
    "OptimizationResult",
]
