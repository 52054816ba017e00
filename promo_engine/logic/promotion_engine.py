# ============================================================================
# Promotion Decision Engine v1.0.0
# Promotion Engine - Facade over Pricing, Forecast, Conflicts, Claims
# ============================================================================
#
# Reliability Level: L6 Critical
# Purpose: Single entry point that resolves records through the injected
#          repository and delegates to the pure engine components
#
# OPERATIONS:
#   - calculate_promotion          (cached: promotion_calc:{id}:{volume})
#   - forecast_promotion           (cached: promotion_forecast:{id}:{period})
#   - optimize_promotion / apply_promotion_optimization
#   - detect_promotion_conflicts
#   - validate_promotion / validate_promotion_payload
#   - process_promotion_claim
#   - validate_claim / approve_claim / reject_claim
#
# ERROR POLICY:
#   - Any failure in a promotion operation is logged with promotion id
#     and operation, then re-raised unchanged
#   - Validation never raises (structured result)
#   - Missing promotion -> NotFoundError (PROMO-001)
#
# ============================================================================

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Union

from promo_engine.arithmetic.decimal_gateway import get_decimal_gateway
from promo_engine.logic.claim_processor import ClaimProcessor
from promo_engine.logic.conflict_detector import ConflictDetector
from promo_engine.logic.discount_calculator import DiscountCalculator
from promo_engine.logic.forecast_engine import ForecastEngine
from promo_engine.logic.promotion_calculator import PromotionCalculator
from promo_engine.logic.promotion_optimizer import PromotionOptimizer
from promo_engine.logic.validation_gate import ValidationGate
from promo_engine.observability import metrics
from promo_engine.schemas.promotion_payloads import ClaimSubmission
from promo_services.calculation_cache import (
    CalculationCache,
    calculation_key,
    forecast_key,
)
from promo_services.claim_event_publisher import ClaimEventPublisher, EventSink
from promo_services.market_data import MarketDataProvider
from promo_services.promotion_config import PromotionEngineConfig, get_promotion_config
from promo_services.promotion_errors import (
    IneligibleClaimError,
    NotFoundError,
    ValidationError,
)
from promo_services.promotion_models import (
    Claim,
    ClaimResult,
    ConflictReport,
    ForecastResult,
    OptimizationResult,
    Promotion,
    PromotionCalculation,
    ValidationResult,
)
from promo_services.promotion_repository import PromotionRepository

logger = logging.getLogger(__name__)


class PromotionEngine:
    """
    Promotion decision engine facade.

    Reliability Level: L6 Critical

    Collaborators are injected; the engine holds no domain state of its
    own beyond the TTL cache.

    Example Usage:
        engine = PromotionEngine(
            repository=InMemoryPromotionRepository([promo]),
            market_data=StaticMarketDataProvider(),
            event_sink=InMemoryEventSink(),
        )
        calc = engine.calculate_promotion("PROMO-1", ["SKU-100"], Decimal("1500"))
        calc.roi    # Decimal('...')
    """

    def __init__(
        self,
        repository: PromotionRepository,
        market_data: MarketDataProvider,
        event_sink: EventSink,
        config: Optional[PromotionEngineConfig] = None,
        cache: Optional[CalculationCache] = None,
    ):
        self.repository = repository
        self.market_data = market_data
        self.config = config or get_promotion_config()
        self.cache = cache if cache is not None else CalculationCache()
        self.gateway = get_decimal_gateway()

        self.discount_calculator = DiscountCalculator(self.gateway)
        self.calculator = PromotionCalculator(market_data, self.discount_calculator)
        self.forecast_engine = ForecastEngine(market_data, self.config, self.gateway)
        self.conflict_detector = ConflictDetector(self.gateway)
        self.optimizer = PromotionOptimizer(self.gateway)
        self.validation_gate = ValidationGate(repository, self.conflict_detector, self.config)
        self.publisher = ClaimEventPublisher(event_sink, self.config.claim_events_topic)
        self.claim_processor = ClaimProcessor(
            repository, self.calculator, self.publisher, self.config
        )

    # ------------------------------------------------------------------------
    # Record resolution
    # ------------------------------------------------------------------------

    def get_promotion(self, promotion_id: str, operation: str = "get_promotion") -> Promotion:
        promotion = self.repository.find_promotion_by_id(promotion_id)
        if promotion is None:
            logger.error(
                f"[PROMO-001] Promotion not found | promotion_id={promotion_id} | "
                f"operation={operation}"
            )
            raise NotFoundError("Promotion", promotion_id)
        return promotion

    def _failed(self, operation: str, promotion_id: str, error: Exception) -> None:
        logger.error(
            f"[PROMO-ENGINE] Operation failed | operation={operation} | "
            f"promotion_id={promotion_id} | error={type(error).__name__}: {error}"
        )

    # ------------------------------------------------------------------------
    # Calculation
    # ------------------------------------------------------------------------

    def calculate_promotion(
        self,
        promotion_id: str,
        products: Iterable[str],
        volume: Union[Decimal, int, str],
        customer_id: Optional[str] = None,
    ) -> PromotionCalculation:
        """
        Price a promotion at a volume and estimate its incremental ROI.

        Results are cached per (promotion_id, volume) for
        calculation_ttl_seconds, regardless of products or customer.
        """
        try:
            volume = self.gateway.to_decimal(volume, field_name="volume")
            key = calculation_key(promotion_id, volume)
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"[PROMO-CACHE] Hit | key={key}")
                return cached

            promotion = self.get_promotion(promotion_id, "calculate_promotion")
            calculation = self.calculator.calculate(promotion, products, volume, customer_id)
        except Exception as e:
            self._failed("calculate_promotion", promotion_id, e)
            raise

        self.cache.set(key, calculation, self.config.calculation_ttl_seconds)
        metrics.record_calculation(promotion.mechanic.value, promotion_id)

        logger.info(
            f"[PROMO-CALC] Promotion calculated | promotion_id={promotion_id} | "
            f"volume={volume} | discount={calculation.discount_amount} | "
            f"total_discount={calculation.total_discount} | roi={calculation.roi}"
        )
        return calculation

    # ------------------------------------------------------------------------
    # Forecast
    # ------------------------------------------------------------------------

    def forecast_promotion(self, promotion_id: str, forecast_period: str = "30d") -> ForecastResult:
        key = forecast_key(promotion_id, forecast_period)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"[PROMO-CACHE] Hit | key={key}")
            return cached

        try:
            promotion = self.get_promotion(promotion_id, "forecast_promotion")
            history = self.repository.find_performance_by_promotion(promotion_id)
            forecast = self.forecast_engine.forecast(promotion, history, forecast_period)
        except Exception as e:
            self._failed("forecast_promotion", promotion_id, e)
            raise

        self.cache.set(key, forecast, self.config.forecast_ttl_seconds)
        metrics.record_forecast_confidence(forecast.confidence, promotion_id)
        return forecast

    # ------------------------------------------------------------------------
    # Optimization
    # ------------------------------------------------------------------------

    def optimize_promotion(self, promotion_id: str) -> OptimizationResult:
        try:
            promotion = self.get_promotion(promotion_id, "optimize_promotion")
            latest = self.repository.find_latest_performance(promotion_id)
            return self.optimizer.optimize(promotion, latest)
        except Exception as e:
            self._failed("optimize_promotion", promotion_id, e)
            raise

    def apply_promotion_optimization(self, promotion_id: str) -> Promotion:
        """Optimize and persist the adjusted promotion as its next version."""
        try:
            promotion = self.get_promotion(promotion_id, "apply_promotion_optimization")
            result = self.optimizer.optimize(
                promotion, self.repository.find_latest_performance(promotion_id)
            )
            updated = self.optimizer.apply_optimization(promotion, result)
            if updated is promotion:
                return promotion
            self.repository.update_promotion(updated)
        except Exception as e:
            self._failed("apply_promotion_optimization", promotion_id, e)
            raise

        logger.info(
            f"[PROMO-OPTIMIZE] Optimization applied | promotion_id={promotion_id} | "
            f"discount_percentage={promotion.terms.discount_percentage} -> "
            f"{updated.terms.discount_percentage}"
        )
        return updated

    # ------------------------------------------------------------------------
    # Conflicts & validation
    # ------------------------------------------------------------------------

    def detect_promotion_conflicts(self, promotion_id: str) -> ConflictReport:
        try:
            promotion = self.get_promotion(promotion_id, "detect_promotion_conflicts")
            report = self.conflict_detector.detect_conflicts(
                promotion, self.repository.list_promotions()
            )
        except Exception as e:
            self._failed("detect_promotion_conflicts", promotion_id, e)
            raise
        metrics.record_conflicts(report.conflicts)
        return report

    def validate_promotion(self, promotion: Promotion) -> ValidationResult:
        result = self.validation_gate.validate(promotion)
        metrics.record_validation(result.valid, promotion.id)
        return result

    def validate_promotion_payload(self, payload: Mapping[str, Any]) -> ValidationResult:
        result = self.validation_gate.validate_payload(payload)
        metrics.record_validation(result.valid, payload.get("id"))
        return result

    def activate_promotion(self, promotion: Promotion) -> Promotion:
        """
        Validate and raise on failure; valid promotions are returned as-is.

        Raises:
            ValidationError: With the gate's errors and warnings (VAL-001)
        """
        result = self.validate_promotion(promotion)
        if not result.valid:
            raise ValidationError(result.errors, result.warnings)
        return promotion

    # ------------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------------

    def process_promotion_claim(
        self,
        promotion_id: str,
        claim_data: Union[ClaimSubmission, Mapping[str, Any]],
    ) -> ClaimResult:
        try:
            promotion = self.get_promotion(promotion_id, "process_promotion_claim")
            result = self.claim_processor.process_claim(promotion, claim_data)
        except IneligibleClaimError as e:
            metrics.record_claim_processed("INELIGIBLE", promotion_id)
            self._failed("process_promotion_claim", promotion_id, e)
            raise
        except ValidationError as e:
            metrics.record_claim_processed("INVALID", promotion_id)
            self._failed("process_promotion_claim", promotion_id, e)
            raise
        except Exception as e:
            self._failed("process_promotion_claim", promotion_id, e)
            raise

        metrics.record_claim_processed(result.status.value, promotion_id)
        return result

    def validate_claim(self, claim_id: str, actor_id: Optional[str] = None) -> Claim:
        return self.claim_processor.validate_claim(claim_id, actor_id)

    def approve_claim(self, claim_id: str, actor_id: Optional[str] = None) -> Claim:
        return self.claim_processor.approve_claim(claim_id, actor_id)

    def reject_claim(self, claim_id: str, reason: str, actor_id: Optional[str] = None) -> Claim:
        return self.claim_processor.reject_claim(claim_id, reason, actor_id)
