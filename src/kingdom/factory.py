"""Wiring of State Store adapters and services from :class:`Settings`."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.engine import Engine

from kingdom.config import Settings
from kingdom.database import (
    check_database_health,
    create_db_engine,
    get_session_factory,
    init_db,
)
from kingdom.domain.rules_config import DEFAULT_RULES, RulesConfig
from kingdom.interfaces import Clock, IKingdomStore
from kingdom.repository import InMemoryKingdomStore, JsonKingdomStore, SqlKingdomStore
from kingdom.services import AttackService, KingdomService, KingdomStateCache, StorePolicy
from kingdom.utils.clock import utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Services:
    """Services sharing one store, policy and state cache."""

    store: IKingdomStore
    kingdoms: KingdomService
    attacks: AttackService
    engine: Engine | None = None

    def store_healthy(self) -> bool:
        """Whether the backing database answers; stores without one always do."""

        return self.engine is None or check_database_health(self.engine)

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None


def create_store(settings: Settings) -> tuple[IKingdomStore, Engine | None]:
    """Instantiate the adapter selected by ``settings.store_backend``.

    Returns the store and, for the SQL backend, the engine that owns its
    connection pool.
    """

    backend = settings.store_backend
    engine: Engine | None = None
    if backend == "memory":
        store: IKingdomStore = InMemoryKingdomStore()
    elif backend == "json":
        store = JsonKingdomStore(settings.data_dir)
    elif backend == "sql":
        engine = create_db_engine(settings)
        init_db(engine)
        store = SqlKingdomStore(get_session_factory(engine))
    else:  # pragma: no cover - guarded by the Settings literal
        raise ValueError(f"unknown store backend: {backend}")
    logger.info("using %s kingdom store", backend)
    return store, engine


def build_services(
    settings: Settings,
    *,
    store: IKingdomStore | None = None,
    rules: RulesConfig = DEFAULT_RULES,
    clock: Clock = utc_now,
) -> Services:
    """Build the kingdom and attack services for ``settings``."""

    engine: Engine | None = None
    if store is None:
        store, engine = create_store(settings)
    policy = StorePolicy(
        attempts=settings.store_retry_attempts,
        backoff_seconds=settings.store_retry_backoff_seconds,
    )
    cache = KingdomStateCache()
    kingdoms = KingdomService(
        store,
        rules=rules,
        clock=clock,
        policy=policy,
        conflict_retries=settings.conflict_retries,
        cache=cache,
    )
    attacks = AttackService(
        store,
        rules=rules,
        clock=clock,
        policy=policy,
        conflict_retries=settings.conflict_retries,
        allow_fallback_opponent=settings.allow_fallback_opponent,
        battle_seed=settings.battle_seed,
        cache=cache,
    )
    return Services(store=store, kingdoms=kingdoms, attacks=attacks, engine=engine)
