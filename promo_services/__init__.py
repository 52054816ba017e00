"""
============================================================================
Promotion Decision Engine - Services Layer
============================================================================

Domain models, error taxonomy, configuration, claim state machine and the
collaborator interfaces (repository, market data, event sink, cache).

Submodules are imported explicitly: the arithmetic core depends on
promotion_errors, and promotion_models depends on the arithmetic core.

Reliability Level: L6 Critical
============================================================================
"""
