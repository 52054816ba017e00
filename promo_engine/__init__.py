"""
============================================================================
Promotion Decision Engine v1.0.0
============================================================================

Exact-arithmetic promotion pricing and decision engine:
- arithmetic: DecimalGateway (28-digit context, ROUND_HALF_EVEN)
- logic: discount calculation, ROI, forecasting, conflicts, claims,
  validation, optimization and the PromotionEngine facade
- database: SQLAlchemy-backed repository
- schemas: pydantic payload models
- observability: Prometheus metrics

Subpackages are imported explicitly; this module imports nothing so the
arithmetic core and the services layer can load in either order.

============================================================================
"""

__version__ = "1.0.0"
