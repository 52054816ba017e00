"""
============================================================================
Promotion Repository - Persistence Interface
============================================================================

Reliability Level: L6 Critical

The engine never touches storage directly. Everything it reads or writes
goes through PromotionRepository, which allows swapping between the
in-memory repository (tests, demos) and the SQL repository (production).

Records handed out and accepted are domain dataclasses. Promotions are
frozen, so the in-memory store shares them; claims are mutable, so the
store copies them on the way in and out.

ERROR CODES:
    - PROMO-001: Promotion or claim not found (update of a missing record)

============================================================================
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Dict, List, Optional
import logging
import threading

from promo_services.promotion_errors import NotFoundError
from promo_services.promotion_models import (
    Claim,
    PerformanceSnapshot,
    Promotion,
)

# Configure module logger
logger = logging.getLogger(__name__)


def _copy_claim(claim: Claim) -> Claim:
    return replace(
        claim,
        products=list(claim.products),
        documentation=list(claim.documentation),
    )


# =============================================================================
# Repository Interface
# =============================================================================

class PromotionRepository(ABC):
    """
    Abstract interface for promotion, claim and performance persistence.

    Implementations raise PromotionSystemError (SYS-001) for storage
    failures and NotFoundError (PROMO-001) when updating a missing record.
    """

    # ------------------------------------------------------------------
    # Promotions
    # ------------------------------------------------------------------

    @abstractmethod
    def find_promotion_by_id(self, promotion_id: str) -> Optional[Promotion]:
        """Return the promotion or None."""
        pass

    @abstractmethod
    def list_promotions(self) -> List[Promotion]:
        """All promotions, any status."""
        pass

    @abstractmethod
    def save_promotion(self, promotion: Promotion) -> Promotion:
        """Insert a new promotion."""
        pass

    @abstractmethod
    def update_promotion(self, promotion: Promotion) -> Promotion:
        """Replace an existing promotion record."""
        pass

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    @abstractmethod
    def find_claim(self, claim_id: str) -> Optional[Claim]:
        pass

    @abstractmethod
    def create_claim(self, claim: Claim) -> Claim:
        pass

    @abstractmethod
    def update_claim(self, claim: Claim) -> Claim:
        pass

    @abstractmethod
    def append_claim_audit(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Store one claim transition audit record (see claim_state_machine)."""
        pass

    @abstractmethod
    def find_claim_audit(self, claim_id: str) -> List[Dict[str, Any]]:
        """Audit records for a claim in the order they were appended."""
        pass

    # ------------------------------------------------------------------
    # Performance history
    # ------------------------------------------------------------------

    @abstractmethod
    def find_performance_by_promotion(self, promotion_id: str) -> List[PerformanceSnapshot]:
        """History ordered by period_start ascending."""
        pass

    @abstractmethod
    def find_latest_performance(self, promotion_id: str) -> Optional[PerformanceSnapshot]:
        """Most recent snapshot by period_end, or None."""
        pass

    @abstractmethod
    def append_performance(self, snapshot: PerformanceSnapshot) -> PerformanceSnapshot:
        pass


# =============================================================================
# In-Memory Repository Implementation
# =============================================================================

class InMemoryPromotionRepository(PromotionRepository):
    """
    Dict-backed repository for tests and demos.

    Thread-safe: every operation runs under a single lock.
    """

    def __init__(
        self,
        promotions: Optional[List[Promotion]] = None,
        performance: Optional[List[PerformanceSnapshot]] = None,
    ):
        self._lock = threading.Lock()
        self._promotions = {}  # type: Dict[str, Promotion]
        self._claims = {}  # type: Dict[str, Claim]
        self._claim_audit = []  # type: List[Dict[str, Any]]
        self._performance = {}  # type: Dict[str, List[PerformanceSnapshot]]

        for promotion in promotions or []:
            self._promotions[promotion.id] = promotion
        for snapshot in performance or []:
            self._performance.setdefault(snapshot.promotion_id, []).append(snapshot)

    # ------------------------------------------------------------------
    # Promotions
    # ------------------------------------------------------------------

    def find_promotion_by_id(self, promotion_id: str) -> Optional[Promotion]:
        with self._lock:
            return self._promotions.get(promotion_id)

    def list_promotions(self) -> List[Promotion]:
        with self._lock:
            return list(self._promotions.values())

    def save_promotion(self, promotion: Promotion) -> Promotion:
        with self._lock:
            self._promotions[promotion.id] = promotion
        logger.debug(f"[PROMO-REPO] Promotion saved | promotion_id={promotion.id}")
        return promotion

    def update_promotion(self, promotion: Promotion) -> Promotion:
        with self._lock:
            if promotion.id not in self._promotions:
                raise NotFoundError("Promotion", promotion.id)
            self._promotions[promotion.id] = promotion
        logger.debug(f"[PROMO-REPO] Promotion updated | promotion_id={promotion.id}")
        return promotion

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def find_claim(self, claim_id: str) -> Optional[Claim]:
        with self._lock:
            claim = self._claims.get(claim_id)
            return _copy_claim(claim) if claim is not None else None

    def create_claim(self, claim: Claim) -> Claim:
        with self._lock:
            self._claims[claim.id] = _copy_claim(claim)
        logger.debug(
            f"[PROMO-REPO] Claim created | claim_id={claim.id} | "
            f"promotion_id={claim.promotion_id}"
        )
        return claim

    def update_claim(self, claim: Claim) -> Claim:
        with self._lock:
            if claim.id not in self._claims:
                raise NotFoundError("Claim", claim.id)
            self._claims[claim.id] = _copy_claim(claim)
        return claim

    def append_claim_audit(self, record: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._claim_audit.append(dict(record))
        return record

    def find_claim_audit(self, claim_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(r) for r in self._claim_audit if r["target_id"] == claim_id]

    def list_claims(self, promotion_id: Optional[str] = None) -> List[Claim]:
        with self._lock:
            return [
                _copy_claim(c) for c in self._claims.values()
                if promotion_id is None or c.promotion_id == promotion_id
            ]

    # ------------------------------------------------------------------
    # Performance history
    # ------------------------------------------------------------------

    def find_performance_by_promotion(self, promotion_id: str) -> List[PerformanceSnapshot]:
        with self._lock:
            history = list(self._performance.get(promotion_id, []))
        return sorted(history, key=lambda s: s.period_start)

    def find_latest_performance(self, promotion_id: str) -> Optional[PerformanceSnapshot]:
        with self._lock:
            history = list(self._performance.get(promotion_id, []))
        if not history:
            return None
        return max(history, key=lambda s: s.period_end)

    def append_performance(self, snapshot: PerformanceSnapshot) -> PerformanceSnapshot:
        with self._lock:
            self._performance.setdefault(snapshot.promotion_id, []).append(snapshot)
        return snapshot
