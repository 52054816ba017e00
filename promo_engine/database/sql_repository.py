"""
============================================================================
Promotion Decision Engine v1.0.0
SQL Repository - SQLAlchemy-backed PromotionRepository
============================================================================

Reliability Level: L6 Critical
Input Constraints: Any SQLAlchemy URL (PostgreSQL in production,
                   SQLite for tests and local runs)
Side Effects: Database reads and writes

MANDATE:
- Decimals are stored as exact strings, never as floating columns
- Promotion and claim records are stored as JSON documents next to the
  columns the engine filters on
- Every SQLAlchemyError is wrapped in PromotionSystemError (SYS-001)
- Claim audit rows sort by created_at, then validation before approval

TABLES:
- promotions:            id, status, document, updated_at
- promotion_claims:      id, promotion_id, claim_number, validation_status,
                         approval_status, document, updated_at
- promotion_performance: id, promotion_id, period_start, period_end,
                         volume, revenue, cost, roi
- claim_audit_log:       id, claim_id, actor_id, action, axis, previous_state,
                         new_state, reason, created_at

============================================================================
"""

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from promo_engine.arithmetic.decimal_gateway import to_wire
from promo_services.promotion_errors import NotFoundError, PromotionSystemError
from promo_services.promotion_models import (
    Claim,
    PerformanceSnapshot,
    Promotion,
)
from promo_services.promotion_repository import PromotionRepository

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# DATABASE CONFIGURATION
# ============================================================================

DEFAULT_DATABASE_URL = "sqlite:///promotions.db"


def get_database_url() -> str:
    """
    Environment Variables:
        PROMOTION_DATABASE_URL: SQLAlchemy URL (default: sqlite:///promotions.db)
    """
    load_dotenv()
    return os.getenv("PROMOTION_DATABASE_URL", DEFAULT_DATABASE_URL)


def create_engine_from_environment() -> Engine:
    return create_engine(
        get_database_url(),
        pool_pre_ping=True,
        echo=os.getenv("DB_ECHO", "false").lower() == "true",
    )


SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS promotions (
        id VARCHAR(64) PRIMARY KEY,
        status VARCHAR(32) NOT NULL,
        document TEXT NOT NULL,
        updated_at VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS promotion_claims (
        id VARCHAR(64) PRIMARY KEY,
        promotion_id VARCHAR(64) NOT NULL,
        claim_number VARCHAR(40) NOT NULL UNIQUE,
        validation_status VARCHAR(16) NOT NULL,
        approval_status VARCHAR(16) NOT NULL,
        document TEXT NOT NULL,
        updated_at VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS promotion_performance (
        id VARCHAR(64) PRIMARY KEY,
        promotion_id VARCHAR(64) NOT NULL,
        period_start VARCHAR(10) NOT NULL,
        period_end VARCHAR(10) NOT NULL,
        volume VARCHAR(40) NOT NULL,
        revenue VARCHAR(40) NOT NULL,
        cost VARCHAR(40) NOT NULL,
        roi VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS claim_audit_log (
        id VARCHAR(64) PRIMARY KEY,
        claim_id VARCHAR(64) NOT NULL,
        actor_id VARCHAR(64) NOT NULL,
        action VARCHAR(32) NOT NULL,
        axis VARCHAR(16) NOT NULL,
        previous_state VARCHAR(16) NOT NULL,
        new_state VARCHAR(16) NOT NULL,
        reason TEXT,
        created_at VARCHAR(40) NOT NULL
    )
    """,
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================================
# SQL REPOSITORY
# ============================================================================

class SqlPromotionRepository(PromotionRepository):
    """
    PromotionRepository over SQLAlchemy Core text() statements.

    Example Usage:
        engine = create_engine("sqlite://")
        repository = SqlPromotionRepository(engine)
        repository.create_schema()
        repository.save_promotion(promotion)
    """

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or create_engine_from_environment()

    def create_schema(self) -> None:
        def op(conn):
            for statement in SCHEMA_STATEMENTS:
                conn.execute(text(statement))
        self._write("create_schema", op)
        logger.info("[PROMO-DB] Schema ensured")

    # ------------------------------------------------------------------------
    # Execution helpers
    # ------------------------------------------------------------------------

    def _write(self, operation: str, op) -> Any:
        try:
            with self.engine.begin() as conn:
                return op(conn)
        except SQLAlchemyError as e:
            logger.error(f"[SYS-001] Database write failed | operation={operation} | error={e}")
            raise PromotionSystemError(
                f"Database write failed during {operation}: {e}", operation=operation
            )

    def _read(self, operation: str, sql: str, params: Dict[str, Any]) -> List[Any]:
        try:
            with self.engine.connect() as conn:
                return list(conn.execute(text(sql), params).mappings())
        except SQLAlchemyError as e:
            logger.error(f"[SYS-001] Database read failed | operation={operation} | error={e}")
            raise PromotionSystemError(
                f"Database read failed during {operation}: {e}", operation=operation
            )

    # ------------------------------------------------------------------------
    # Promotions
    # ------------------------------------------------------------------------

    def find_promotion_by_id(self, promotion_id: str) -> Optional[Promotion]:
        rows = self._read(
            "find_promotion_by_id",
            "SELECT document FROM promotions WHERE id = :id",
            {"id": promotion_id},
        )
        if not rows:
            return None
        return Promotion.from_dict(json.loads(rows[0]["document"]))

    def list_promotions(self) -> List[Promotion]:
        rows = self._read("list_promotions", "SELECT document FROM promotions ORDER BY id", {})
        return [Promotion.from_dict(json.loads(row["document"])) for row in rows]

    def save_promotion(self, promotion: Promotion) -> Promotion:
        params = {
            "id": promotion.id,
            "status": promotion.status.value,
            "document": json.dumps(promotion.to_dict()),
            "updated_at": _now(),
        }
        self._write("save_promotion", lambda conn: conn.execute(text(
            "INSERT INTO promotions (id, status, document, updated_at) "
            "VALUES (:id, :status, :document, :updated_at)"
        ), params))
        logger.info(f"[PROMO-DB] Promotion saved | promotion_id={promotion.id}")
        return promotion

    def update_promotion(self, promotion: Promotion) -> Promotion:
        params = {
            "id": promotion.id,
            "status": promotion.status.value,
            "document": json.dumps(promotion.to_dict()),
            "updated_at": _now(),
        }
        rowcount = self._write("update_promotion", lambda conn: conn.execute(text(
            "UPDATE promotions SET status = :status, document = :document, "
            "updated_at = :updated_at WHERE id = :id"
        ), params).rowcount)
        if rowcount == 0:
            raise NotFoundError("Promotion", promotion.id)
        logger.info(f"[PROMO-DB] Promotion updated | promotion_id={promotion.id}")
        return promotion

    # ------------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------------

    def find_claim(self, claim_id: str) -> Optional[Claim]:
        rows = self._read(
            "find_claim",
            "SELECT document FROM promotion_claims WHERE id = :id",
            {"id": claim_id},
        )
        if not rows:
            return None
        return Claim.from_dict(json.loads(rows[0]["document"]))

    def create_claim(self, claim: Claim) -> Claim:
        params = self._claim_params(claim)
        self._write("create_claim", lambda conn: conn.execute(text(
            "INSERT INTO promotion_claims (id, promotion_id, claim_number, "
            "validation_status, approval_status, document, updated_at) "
            "VALUES (:id, :promotion_id, :claim_number, :validation_status, "
            ":approval_status, :document, :updated_at)"
        ), params))
        logger.info(
            f"[PROMO-DB] Claim created | claim_id={claim.id} | "
            f"claim_number={claim.claim_number} | promotion_id={claim.promotion_id}"
        )
        return claim

    def update_claim(self, claim: Claim) -> Claim:
        params = self._claim_params(claim)
        rowcount = self._write("update_claim", lambda conn: conn.execute(text(
            "UPDATE promotion_claims SET validation_status = :validation_status, "
            "approval_status = :approval_status, document = :document, "
            "updated_at = :updated_at WHERE id = :id"
        ), params).rowcount)
        if rowcount == 0:
            raise NotFoundError("Claim", claim.id)
        return claim

    def append_claim_audit(self, record: Dict[str, Any]) -> Dict[str, Any]:
        params = {
            "id": record["id"],
            "claim_id": record["target_id"],
            "actor_id": record["actor_id"],
            "action": record["action"],
            "axis": record["axis"],
            "previous_state": record["previous_state"],
            "new_state": record["new_state"],
            "reason": record.get("reason"),
            "created_at": record["created_at"],
        }
        self._write("append_claim_audit", lambda conn: conn.execute(text(
            "INSERT INTO claim_audit_log (id, claim_id, actor_id, action, axis, "
            "previous_state, new_state, reason, created_at) VALUES (:id, :claim_id, "
            ":actor_id, :action, :axis, :previous_state, :new_state, :reason, :created_at)"
        ), params))
        return record

    def find_claim_audit(self, claim_id: str) -> List[Dict[str, Any]]:
        rows = self._read(
            "find_claim_audit",
            "SELECT id, claim_id, actor_id, action, axis, previous_state, new_state, "
            "reason, created_at FROM claim_audit_log WHERE claim_id = :claim_id "
            "ORDER BY created_at, axis DESC",
            {"claim_id": claim_id},
        )
        return [
            {
                "id": row["id"],
                "actor_id": row["actor_id"],
                "action": row["action"],
                "target_type": "claim",
                "target_id": row["claim_id"],
                "axis": row["axis"],
                "previous_state": row["previous_state"],
                "new_state": row["new_state"],
                "reason": row["reason"],
                "created_at": row["created_at"],
            }
            for row in rows
        ]

    @staticmethod
    def _claim_params(claim: Claim) -> Dict[str, Any]:
        return {
            "id": claim.id,
            "promotion_id": claim.promotion_id,
            "claim_number": claim.claim_number,
            "validation_status": claim.validation_status.value,
            "approval_status": claim.approval_status.value,
            "document": json.dumps(claim.to_dict()),
            "updated_at": _now(),
        }

    # ------------------------------------------------------------------------
    # Performance history
    # ------------------------------------------------------------------------

    def find_performance_by_promotion(self, promotion_id: str) -> List[PerformanceSnapshot]:
        rows = self._read(
            "find_performance_by_promotion",
            "SELECT promotion_id, period_start, period_end, volume, revenue, cost, roi "
            "FROM promotion_performance WHERE promotion_id = :promotion_id "
            "ORDER BY period_start",
            {"promotion_id": promotion_id},
        )
        return [PerformanceSnapshot.from_dict(dict(row)) for row in rows]

    def find_latest_performance(self, promotion_id: str) -> Optional[PerformanceSnapshot]:
        rows = self._read(
            "find_latest_performance",
            "SELECT promotion_id, period_start, period_end, volume, revenue, cost, roi "
            "FROM promotion_performance WHERE promotion_id = :promotion_id "
            "ORDER BY period_end DESC LIMIT 1",
            {"promotion_id": promotion_id},
        )
        if not rows:
            return None
        return PerformanceSnapshot.from_dict(dict(rows[0]))

    def append_performance(self, snapshot: PerformanceSnapshot) -> PerformanceSnapshot:
        params = {
            "id": str(uuid.uuid4()),
            "promotion_id": snapshot.promotion_id,
            "period_start": snapshot.period_start.isoformat(),
            "period_end": snapshot.period_end.isoformat(),
            "volume": to_wire(snapshot.volume),
            "revenue": to_wire(snapshot.revenue),
            "cost": to_wire(snapshot.cost),
            "roi": to_wire(snapshot.roi),
        }
        self._write("append_performance", lambda conn: conn.execute(text(
            "INSERT INTO promotion_performance (id, promotion_id, period_start, "
            "period_end, volume, revenue, cost, roi) VALUES (:id, :promotion_id, "
            ":period_start, :period_end, :volume, :revenue, :cost, :roi)"
        ), params))
        return snapshot


# ============================================================================
# END OF SQL REPOSITORY MODULE
# ============================================================================
