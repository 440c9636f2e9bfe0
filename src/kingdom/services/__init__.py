"""Orchestration services that drive the domain rules against a State Store."""

from .attack_service import AttackOutcome, AttackService
from .cache import KingdomStateCache
from .kingdom_service import CollectionResult, KingdomService
from .retry import StorePolicy

__all__ = [
    "AttackOutcome",
    "AttackService",
    "CollectionResult",
    "KingdomService",
    "KingdomStateCache",
    "StorePolicy",
]
