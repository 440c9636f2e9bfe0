"""Kingdom economy orchestration.

Loads a kingdom, applies one economy rule and writes the result back with
the loaded revision as compare-and-swap token.  A conflicting concurrent
write makes the operation start over from a fresh read.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from kingdom.domain import economy
from kingdom.domain.enums import BuildingKind, TroopKind
from kingdom.domain.models import KingdomID, KingdomState, WarReport
from kingdom.domain.rules_config import DEFAULT_RULES, RulesConfig
from kingdom.errors import KingdomNotFound, RevisionConflict
from kingdom.interfaces import Clock, IKingdomStore
from kingdom.services.cache import KingdomStateCache
from kingdom.services.retry import StorePolicy
from kingdom.utils.clock import utc_now

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True, slots=True)
class CollectionResult:
    """Resources credited by a collection and the persisted kingdom."""

    gold_gained: int
    food_gained: int
    kingdom: KingdomState


class KingdomService:
    """Create kingdoms and run economy operations against the State Store."""

    def __init__(
        self,
        store: IKingdomStore,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        clock: Clock = utc_now,
        policy: StorePolicy | None = None,
        conflict_retries: int = 3,
        cache: KingdomStateCache | None = None,
    ) -> None:
        self._store = store
        self._rules = rules
        self._clock = clock
        self._policy = policy or StorePolicy()
        self._conflict_retries = conflict_retries
        self._cache = cache if cache is not None else KingdomStateCache()

    def seconds_until_collection(self, state: KingdomState) -> int:
        return economy.seconds_until_collection(state, self._clock(), rules=self._rules)

    def get_kingdom(self, kingdom_id: KingdomID) -> KingdomState:
        """Load a kingdom or raise ``KingdomNotFound``."""

        state = self._policy.call(
            f"read kingdom {kingdom_id}", lambda: self._store.get_kingdom_state(kingdom_id)
        )
        self._cache.remember(state)
        return state

    def create_kingdom(
        self,
        kingdom_id: KingdomID,
        *,
        kingdom_name: str | None = None,
        username: str | None = None,
    ) -> KingdomState:
        """Seed a kingdom for a new player; an existing kingdom is returned as is."""

        try:
            return self.get_kingdom(kingdom_id)
        except KingdomNotFound:
            pass

        state = economy.new_kingdom(
            kingdom_id,
            now=self._clock(),
            kingdom_name=kingdom_name,
            username=username,
            rules=self._rules,
        )
        stored = self._policy.call(
            f"create kingdom {kingdom_id}", lambda: self._store.put_kingdom_state(state)
        )
        self._cache.remember(stored)
        logger.info("created kingdom %s (%s)", kingdom_id, stored.kingdom_name)
        return stored

    def collect_resources(self, kingdom_id: KingdomID) -> CollectionResult:
        """Settle resource production up to now."""

        def collect(state: KingdomState) -> tuple[KingdomState, economy.AccrualResult]:
            result = economy.accrue(state, self._clock(), rules=self._rules)
            return result.state, result

        stored, accrual = self._update(kingdom_id, "collect resources", collect)
        return CollectionResult(
            gold_gained=accrual.gold_gained, food_gained=accrual.food_gained, kingdom=stored
        )

    def train_troops(
        self, kingdom_id: KingdomID, troop_kind: TroopKind | str, count: int
    ) -> KingdomState:
        """Train troops; raises ``InsufficientResources`` without touching the store."""

        kind = TroopKind(troop_kind)
        stored, _ = self._update(
            kingdom_id,
            f"train {count} {kind}",
            lambda state: (economy.train_troops(state, kind, count), None),
        )
        return stored

    def upgrade_building(self, kingdom_id: KingdomID, building_kind: BuildingKind | str) -> KingdomState:
        """Upgrade a building; raises ``InsufficientResources`` without touching the store."""

        kind = BuildingKind(building_kind)
        stored, _ = self._update(
            kingdom_id,
            f"upgrade {kind}",
            lambda state: (economy.upgrade_building(state, kind), None),
        )
        return stored

    def list_war_reports(self, kingdom_id: KingdomID, *, limit: int = 10) -> list[WarReport]:
        """Latest reports where the kingdom attacked or defended."""

        return self._policy.call(
            f"list war reports of {kingdom_id}",
            lambda: self._store.list_war_reports(kingdom_id, limit=limit),
        )

    def _update(
        self,
        kingdom_id: KingdomID,
        description: str,
        change: Callable[[KingdomState], tuple[KingdomState, R]],
    ) -> tuple[KingdomState, R]:
        attempts = self._conflict_retries + 1
        for attempt in range(1, attempts + 1):
            state = self.get_kingdom(kingdom_id)
            updated, extra = change(state)
            try:
                stored = self._policy.conditional_write(
                    f"{description} for {kingdom_id}",
                    lambda: self._store.put_kingdom_state(
                        updated, expected_revision=state.revision
                    ),
                )
            except RevisionConflict:
                if attempt == attempts:
                    raise
                logger.info("%s for %s hit a concurrent update, retrying", description, kingdom_id)
                continue
            self._cache.remember(stored)
            return stored, extra
        raise AssertionError("unreachable")  # pragma: no cover
