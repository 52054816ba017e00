# ============================================================================
# Promotion Decision Engine v1.0.0
# Conflict Detector - Concurrent Promotion Contention
# ============================================================================
#
# Reliability Level: L5 High
# Purpose: Find promotions that contend with a given promotion and grade
#          each contention by severity
#
# CATEGORIES (one pair may appear under several):
#   - OVERLAP:          windows intersect AND products intersect
#   - CANNIBALIZATION:  windows intersect AND channels intersect
#   - BUDGET:           windows intersect AND same non-empty budget pool
#   - RESOURCE:         windows intersect AND constrained resources intersect
#
# SEVERITY INPUT:
#   fraction = intersection days / own days (both inclusive)
#
# The promotion itself and closed promotions (COMPLETED, CANCELLED) are
# skipped. Findings are reported, never raised.
#
# ============================================================================

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from promo_engine.arithmetic.decimal_gateway import (
    DecimalGateway,
    RATIO_PRECISION,
    ZERO,
    get_decimal_gateway,
)
from promo_services.promotion_models import (
    ConflictCategory,
    ConflictRecord,
    ConflictReport,
    Promotion,
    Severity,
)

logger = logging.getLogger(__name__)

NO_CONFLICTS_RESOLUTION = "No conflicts detected"
HIGH_SEVERITY_RESOLUTION = (
    "High severity conflicts require immediate attention. "
    "Consider adjusting dates, budgets, or targeting."
)
ADVISORY_RESOLUTION = (
    "Medium/low severity conflicts detected. Review and optimize for better performance."
)

HALF = Decimal("0.5")
QUARTER = Decimal("0.25")


def window_intersection(
    start_a: date, end_a: date, start_b: date, end_b: date
) -> Optional[Tuple[date, date]]:
    """Inclusive intersection of two date windows, or None."""
    start = max(start_a, start_b)
    end = min(end_a, end_b)
    if start > end:
        return None
    return start, end


def generate_resolution(conflicts: Iterable[ConflictRecord]) -> str:
    conflicts = list(conflicts)
    if not conflicts:
        return NO_CONFLICTS_RESOLUTION
    if any(c.severity == Severity.HIGH for c in conflicts):
        return HIGH_SEVERITY_RESOLUTION
    return ADVISORY_RESOLUTION


class ConflictDetector:
    """
    Pairwise conflict grading.

    Example Usage:
        detector = ConflictDetector()
        report = detector.detect_conflicts(promo, repository.list_promotions())
        report.resolution    # "No conflicts detected"
    """

    def __init__(self, gateway: Optional[DecimalGateway] = None):
        self.gateway = gateway or get_decimal_gateway()

    def detect_conflicts(
        self,
        promotion: Promotion,
        candidates: Iterable[Promotion],
    ) -> ConflictReport:
        conflicts = []  # type: List[ConflictRecord]

        for other in candidates:
            if other.id == promotion.id or other.is_closed:
                continue
            conflicts.extend(self.compare(promotion, other))

        report = ConflictReport(
            promotion_id=promotion.id,
            conflicts=tuple(conflicts),
            resolution=generate_resolution(conflicts),
        )

        if conflicts:
            logger.warning(
                f"[PROMO-CONFLICT] Conflicts detected | promotion_id={promotion.id} | "
                f"count={len(conflicts)} | high_severity={report.has_high_severity}"
            )
        else:
            logger.debug(f"[PROMO-CONFLICT] No conflicts | promotion_id={promotion.id}")
        return report

    def compare(self, promotion: Promotion, other: Promotion) -> List[ConflictRecord]:
        """All conflict records between promotion and one other promotion."""
        window = window_intersection(
            promotion.start_date, promotion.end_date, other.start_date, other.end_date
        )
        if window is None:
            return []

        fraction = self.overlap_fraction(promotion, window)
        overlap_start, overlap_end = window
        period = f"{overlap_start.isoformat()} to {overlap_end.isoformat()}"
        records = []  # type: List[ConflictRecord]

        shared_products = promotion.products & other.products
        if shared_products:
            records.append(self._record(
                other,
                ConflictCategory.OVERLAP,
                self._count_severity(fraction, len(shared_products)),
                f"Shares {len(shared_products)} product(s) "
                f"({', '.join(sorted(shared_products))}) during {period}",
            ))

        shared_channels = promotion.channels & other.channels
        if shared_channels:
            records.append(self._record(
                other,
                ConflictCategory.CANNIBALIZATION,
                self._cannibalization_severity(promotion, shared_channels, fraction),
                f"Competes in channel(s) {', '.join(sorted(shared_channels))} during {period}",
            ))

        if promotion.budget_pool and promotion.budget_pool == other.budget_pool:
            records.append(self._record(
                other,
                ConflictCategory.BUDGET,
                self._budget_severity(promotion, other, fraction),
                f"Draws on budget pool {promotion.budget_pool} during {period}",
            ))

        shared_resources = promotion.resources & other.resources
        if shared_resources:
            records.append(self._record(
                other,
                ConflictCategory.RESOURCE,
                self._count_severity(fraction, len(shared_resources)),
                f"Competes for resource(s) {', '.join(sorted(shared_resources))} during {period}",
            ))

        return records

    def overlap_fraction(self, promotion: Promotion, window: Tuple[date, date]) -> Decimal:
        own_days = (promotion.end_date - promotion.start_date).days + 1
        if own_days <= 0:
            return ZERO
        shared_days = (window[1] - window[0]).days + 1
        return self.gateway.quantize(
            self.gateway.divide(Decimal(shared_days), Decimal(own_days)), RATIO_PRECISION
        )

    # ------------------------------------------------------------------------
    # Severity grading
    # ------------------------------------------------------------------------

    @staticmethod
    def _count_severity(fraction: Decimal, shared_count: int) -> Severity:
        """Shared by OVERLAP (products) and RESOURCE (resources)."""
        if fraction >= HALF and shared_count >= 2:
            return Severity.HIGH
        if fraction >= QUARTER or shared_count >= 2:
            return Severity.MEDIUM
        return Severity.LOW

    def _cannibalization_severity(
        self,
        promotion: Promotion,
        shared_channels: frozenset,
        fraction: Decimal,
    ) -> Severity:
        channel_share = self.gateway.divide(
            Decimal(len(shared_channels)), Decimal(len(promotion.channels))
        )
        if shared_channels == promotion.channels and fraction >= HALF:
            return Severity.HIGH
        if channel_share >= HALF or fraction >= HALF:
            return Severity.MEDIUM
        return Severity.LOW

    @staticmethod
    def _budget_severity(promotion: Promotion, other: Promotion, fraction: Decimal) -> Severity:
        if other.budget >= promotion.budget and fraction >= HALF:
            return Severity.HIGH
        if fraction >= QUARTER:
            return Severity.MEDIUM
        return Severity.LOW

    @staticmethod
    def _record(
        other: Promotion,
        category: ConflictCategory,
        severity: Severity,
        description: str,
    ) -> ConflictRecord:
        return ConflictRecord(
            conflicting_promotion_id=other.id,
            name=other.name,
            category=category,
            severity=severity,
            description=description,
        )
