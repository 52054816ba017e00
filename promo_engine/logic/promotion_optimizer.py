"""
============================================================================
Promotion Optimizer - Performance Gaps & Recommendations
============================================================================

Reliability Level: L5 High

Compares a promotion's latest performance with its targets and proposes
parameter changes:

    ROI gap = target_roi - current roi        (recorded when positive)
    severity = HIGH if gap > 0.5 else MEDIUM

    HIGH ROI gap -> discount_adjustment
                    "Reduce discount percentage to improve ROI"
                    expected impact 0.3, confidence 0.8, priority HIGH
                 -> optimized discount = current percentage x 0.9

apply_optimization() produces a new Promotion record with the optimized
parameters; the caller persists it as the next version.

============================================================================
"""

from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from promo_engine.arithmetic.decimal_gateway import (
    DecimalGateway,
    PERCENT_PRECISION,
    ZERO,
    get_decimal_gateway,
)
from promo_services.promotion_models import (
    OptimizationResult,
    PerformanceGap,
    PerformanceSnapshot,
    Promotion,
    Recommendation,
    Severity,
)

logger = logging.getLogger(__name__)

ROI_GAP_HIGH_THRESHOLD = Decimal("0.5")
DISCOUNT_REDUCTION_FACTOR = Decimal("0.9")

DISCOUNT_ADJUSTMENT = "discount_adjustment"


class PromotionOptimizer:

    def __init__(self, gateway: Optional[DecimalGateway] = None):
        self.gateway = gateway or get_decimal_gateway()

    def optimize(
        self,
        promotion: Promotion,
        latest_performance: Optional[PerformanceSnapshot],
    ) -> OptimizationResult:
        gaps = self.analyze_gaps(promotion, latest_performance)
        recommendations = self.recommend(gaps)
        optimized = self.optimized_parameters(promotion, recommendations)

        logger.info(
            f"[PROMO-OPTIMIZE] Optimization complete | promotion_id={promotion.id} | "
            f"gaps={len(gaps)} | recommendations={len(recommendations)} | "
            f"optimized_parameters={sorted(optimized)}"
        )
        return OptimizationResult(
            promotion_id=promotion.id,
            current_performance=latest_performance,
            gaps=tuple(gaps),
            recommendations=tuple(recommendations),
            optimized_parameters=optimized,
        )

    def analyze_gaps(
        self,
        promotion: Promotion,
        performance: Optional[PerformanceSnapshot],
    ) -> List[PerformanceGap]:
        gaps = []  # type: List[PerformanceGap]
        if performance is None or promotion.target_roi is None:
            return gaps

        roi_gap = self.gateway.subtract(promotion.target_roi, performance.roi)
        if roi_gap > ZERO:
            severity = Severity.HIGH if roi_gap > ROI_GAP_HIGH_THRESHOLD else Severity.MEDIUM
            gaps.append(PerformanceGap(metric="roi", gap=roi_gap, severity=severity))
        return gaps

    @staticmethod
    def recommend(gaps: List[PerformanceGap]) -> List[Recommendation]:
        recommendations = []  # type: List[Recommendation]
        for gap in gaps:
            if gap.metric == "roi" and gap.severity == Severity.HIGH:
                recommendations.append(Recommendation(
                    type=DISCOUNT_ADJUSTMENT,
                    description="Reduce discount percentage to improve ROI",
                    expected_impact=Decimal("0.3"),
                    confidence=Decimal("0.8"),
                    priority=Severity.HIGH,
                ))
        return recommendations

    def optimized_parameters(
        self,
        promotion: Promotion,
        recommendations: List[Recommendation],
    ) -> Dict[str, Any]:
        optimized = {}  # type: Dict[str, Any]
        for recommendation in recommendations:
            if recommendation.type == DISCOUNT_ADJUSTMENT:
                optimized["discount"] = self.gateway.quantize(
                    self.gateway.multiply(
                        promotion.terms.discount_percentage, DISCOUNT_REDUCTION_FACTOR
                    ),
                    PERCENT_PRECISION,
                )
        return optimized

    @staticmethod
    def apply_optimization(promotion: Promotion, result: OptimizationResult) -> Promotion:
        """New promotion record carrying the optimized discount, if any."""
        discount = result.optimized_parameters.get("discount")
        if discount is None:
            return promotion
        return replace(promotion, terms=replace(promotion.terms, discount_percentage=discount))
