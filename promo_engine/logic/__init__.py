"""
============================================================================
Promotion Decision Engine v1.0.0
Logic Layer - Pricing, Forecasting, Conflicts, Claims, Validation
============================================================================

Reliability Level: L6 Critical

This module contains the engine's decision logic:
- DiscountCalculator: per-mechanic discount and volume tiers
- RoiEstimator: incremental volume and ROI
- ForecastEngine: historical projection with market adjustment
- ConflictDetector: overlap, cannibalization, budget, resource contention
- ClaimProcessor: eligibility, valuation, auto-approval, publication
- ValidationGate: aggregated business-rule checks
- PromotionOptimizer: performance gaps and recommendations
- PromotionEngine: facade over all of the above

============================================================================
"""

from promo_engine.logic.discount_calculator import (
    DiscountBreakdown,
    DiscountCalculator,
    calculate_discount,
    price_promotion,
)

from promo_engine.logic.roi_estimator import (
    RoiEstimate,
    RoiEstimator,
    calculate_incremental_volume,
    calculate_roi,
)

from promo_engine.logic.promotion_calculator import PromotionCalculator

from promo_engine.logic.forecast_engine import (
    ForecastEngine,
    parse_forecast_period,
)

from promo_engine.logic.conflict_detector import (
    ConflictDetector,
    generate_resolution,
)

from promo_engine.logic.claim_processor import (
    ClaimProcessor,
    generate_claim_number,
)

from promo_engine.logic.validation_gate import ValidationGate

from promo_engine.logic.promotion_optimizer import PromotionOptimizer

from promo_engine.logic.promotion_engine import PromotionEngine

__all__ = [
    "DiscountBreakdown",
    "DiscountCalculator",
    "calculate_discount",
    "price_promotion",
    "RoiEstimate",
    "RoiEstimator",
    "calculate_incremental_volume",
    "calculate_roi",
    "PromotionCalculator",
    "ForecastEngine",
    "parse_forecast_period",
    "ConflictDetector",
    "generate_resolution",
    "ClaimProcessor",
    "generate_claim_number",
    "ValidationGate",
    "PromotionOptimizer",
    "PromotionEngine",
]
