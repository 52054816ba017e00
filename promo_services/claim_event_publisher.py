"""
============================================================================
Claim Event Publisher - Append-Only Topic Sink
============================================================================

Reliability Level: L5 High
Decimal Integrity: Amounts cross the sink boundary as exact strings

Every accepted claim emits one claim.created event:

    {
        "type": "claim.created",
        "claimId": "...",
        "promotionId": "...",
        "amount": "1000.00",
        "customerId": "...",
        "timestamp": "2026-03-01T09:30:00+00:00"
    }

Delivery is best effort. A sink failure is logged with EVT-001 and
reported to the caller as a False return; the claim already persisted is
never rolled back.

ERROR CODES:
    - EVT-001: Event publish failed

============================================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import threading

from promo_engine.arithmetic.decimal_gateway import MONEY_PRECISION, to_wire
from promo_services.promotion_models import Claim

# Configure module logger
logger = logging.getLogger(__name__)


CLAIM_CREATED_EVENT = "claim.created"


class EventPublishErrorCode:
    PUBLISH_FAILED = "EVT-001"


# =============================================================================
# Event Sink Interface
# =============================================================================

class EventSink(ABC):
    """
    Abstract append-only topic sink.

    Implementations raise on delivery failure; the publisher decides what
    a failure means for the caller.
    """

    @abstractmethod
    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        pass


class InMemoryEventSink(EventSink):
    """Thread-safe list-backed sink for tests and demos."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events = []  # type: List[Tuple[str, Dict[str, Any]]]

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self._events.append((topic, dict(payload)))

    def events(self, topic: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(p) for t, p in self._events if topic is None or t == topic]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


# =============================================================================
# Claim Event Publisher
# =============================================================================

class ClaimEventPublisher:
    """
    Builds and publishes claim lifecycle events.

    Args:
        sink: Destination EventSink
        topic: Claims topic (claim_events_topic from config)
        clock: Returns the current UTC datetime (injectable for tests)
    """

    def __init__(
        self,
        sink: EventSink,
        topic: str = "claim.events",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.sink = sink
        self.topic = topic
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build_claim_created(self, claim: Claim) -> Dict[str, Any]:
        return {
            "type": CLAIM_CREATED_EVENT,
            "claimId": claim.id,
            "promotionId": claim.promotion_id,
            "amount": to_wire(claim.amount, MONEY_PRECISION),
            "customerId": claim.customer_id,
            "timestamp": self._clock().isoformat(),
        }

    def publish_claim_created(self, claim: Claim) -> bool:
        """
        Publish claim.created.

        Returns:
            True if the sink accepted the event, False if it failed (EVT-001)
        """
        payload = self.build_claim_created(claim)
        try:
            self.sink.publish(self.topic, payload)
        except Exception as e:
            logger.error(
                f"[{EventPublishErrorCode.PUBLISH_FAILED}] Claim event publish failed | "
                f"claim_id={claim.id} | promotion_id={claim.promotion_id} | "
                f"topic={self.topic} | error={e}"
            )
            return False

        logger.info(
            f"[CLAIM-EVENT] Published {CLAIM_CREATED_EVENT} | "
            f"claim_id={claim.id} | promotion_id={claim.promotion_id} | "
            f"topic={self.topic}"
        )
        return True
