# ============================================================================
# Promotion Decision Engine v1.0.0
# Database Module - SQLAlchemy Repository
# ============================================================================

from promo_engine.database.sql_repository import (
    SqlPromotionRepository,
    create_engine_from_environment,
    get_database_url,
)

__all__ = ["SqlPromotionRepository", "create_engine_from_environment", "get_database_url"]
