"""Attack orchestration.

Reads both kingdoms, resolves the battle and persists the outcome in a fixed
order: attacker first, then defender, then the war report.  Only the attacker
write is mandatory; a defender or report write that cannot be completed turns
the result into ``succeeded_degraded`` instead of failing the attack.

Concurrent updates are detected through revision compare-and-swap.  A
conflicting attacker write re-runs the whole resolution on fresh state; a
conflicting defender write re-applies the already decided losses and loot to
the freshly read defender so the report stays consistent with what was
persisted for the attacker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from kingdom.domain.battle import (
    AttackPreview,
    BattleResult,
    apply_defender_outcome,
    fallback_opponent,
    preview_attack,
    resolve_battle,
)
from kingdom.domain.enums import AttackStatus, OpponentSource
from kingdom.domain.models import KingdomID, KingdomState, WarReport
from kingdom.domain.rules_config import DEFAULT_RULES, RulesConfig
from kingdom.errors import (
    TRANSIENT_STORE_ERRORS,
    ReportPersistenceFailure,
    RevisionConflict,
    StoreError,
)
from kingdom.interfaces import Clock, IKingdomStore, RandomSource
from kingdom.services.cache import KingdomStateCache
from kingdom.services.retry import StorePolicy
from kingdom.utils.clock import utc_now
from kingdom.utils.rng import SeededRandomSource, generate_seed

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AttackOutcome:
    """Result of an attack as seen by the caller."""

    status: AttackStatus
    battle: BattleResult
    attacker: KingdomState
    defender: KingdomState
    report: WarReport
    opponent_source: OpponentSource
    defender_persisted: bool
    report_persisted: bool

    @property
    def used_fallback_opponent(self) -> bool:
        return self.opponent_source is not OpponentSource.STORE


class AttackService:
    """Run attacks between kingdoms held in an :class:`IKingdomStore`."""

    def __init__(
        self,
        store: IKingdomStore,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        clock: Clock = utc_now,
        policy: StorePolicy | None = None,
        conflict_retries: int = 3,
        allow_fallback_opponent: bool = True,
        rng: RandomSource | None = None,
        battle_seed: str | None = None,
        cache: KingdomStateCache | None = None,
    ) -> None:
        self._store = store
        self._rules = rules
        self._clock = clock
        self._policy = policy or StorePolicy()
        self._conflict_retries = conflict_retries
        self._allow_fallback = allow_fallback_opponent
        self._rng = rng
        self._battle_seed = battle_seed
        self._cache = cache if cache is not None else KingdomStateCache()

    @property
    def cache(self) -> KingdomStateCache:
        return self._cache

    def preview(self, attacker_id: KingdomID, defender_id: KingdomID) -> AttackPreview:
        """Estimate the odds of an attack without changing anything."""

        if attacker_id == defender_id:
            raise ValueError("a kingdom cannot attack itself")
        attacker = self._read(attacker_id)
        defender = self._read(defender_id)
        return preview_attack(attacker, defender, rules=self._rules)

    def attack(self, attacker_id: KingdomID, defender_id: KingdomID) -> AttackOutcome:
        """Resolve and persist an attack.

        Raises:
            ValueError: for a self-attack.
            KingdomNotFound: if either kingdom does not exist.
            StoreError: if the attacker cannot be read or written, or the
                defender cannot be read and no fallback is allowed.  A
                ``StoreTimeout`` from the attacker write leaves the outcome
                unknown; the attack is not retried.
        """

        if attacker_id == defender_id:
            raise ValueError("a kingdom cannot attack itself")

        attempts = self._conflict_retries + 1
        for attempt in range(1, attempts + 1):
            attacker = self._read(attacker_id)
            defender, source = self._read_defender(defender_id)
            now = self._clock()
            battle = resolve_battle(
                attacker,
                defender,
                rng=self._random_source(attacker_id, defender_id, now),
                rules=self._rules,
                now=now,
                used_fallback_opponent=source is not OpponentSource.STORE,
            )
            try:
                stored_attacker = self._policy.conditional_write(
                    f"persist attacker {attacker_id}",
                    lambda: self._store.put_kingdom_state(
                        battle.attacker, expected_revision=attacker.revision
                    ),
                )
            except RevisionConflict:
                if attempt == attempts:
                    raise
                logger.info("attacker %s changed during the attack, resolving again", attacker_id)
                continue
            except StoreError:
                logger.error(
                    "attack %s -> %s aborted: attacker state could not be persisted",
                    attacker_id,
                    defender_id,
                )
                raise
            break

        self._cache.remember(stored_attacker)

        if source is OpponentSource.STORE:
            stored_defender, defender_persisted = self._persist_defender(battle)
        else:
            stored_defender, defender_persisted = battle.defender, False

        report_persisted = self._persist_report(battle.report)

        if defender_persisted and report_persisted:
            status = AttackStatus.SUCCEEDED
        else:
            status = AttackStatus.SUCCEEDED_DEGRADED
            logger.warning(
                "attack %s -> %s completed degraded (opponent=%s, defender_persisted=%s, "
                "report_persisted=%s)",
                attacker_id,
                defender_id,
                source,
                defender_persisted,
                report_persisted,
            )

        logger.info(
            "attack %s -> %s resolved: victory=%s adjusted_ratio=%.3f",
            attacker_id,
            defender_id,
            battle.victory,
            battle.adjusted_ratio,
        )
        return AttackOutcome(
            status=status,
            battle=battle,
            attacker=stored_attacker,
            defender=stored_defender,
            report=battle.report,
            opponent_source=source,
            defender_persisted=defender_persisted,
            report_persisted=report_persisted,
        )

    def _read(self, kingdom_id: KingdomID) -> KingdomState:
        state = self._policy.call(
            f"read kingdom {kingdom_id}", lambda: self._store.get_kingdom_state(kingdom_id)
        )
        self._cache.remember(state)
        return state

    def _read_defender(self, defender_id: KingdomID) -> tuple[KingdomState, OpponentSource]:
        try:
            return self._read(defender_id), OpponentSource.STORE
        except TRANSIENT_STORE_ERRORS as exc:
            if not self._allow_fallback:
                raise
            cached = self._cache.get(defender_id)
            if cached is not None:
                logger.warning("defender %s unreadable (%s), using cached state", defender_id, exc)
                return cached, OpponentSource.CACHE
            logger.warning("defender %s unreadable (%s), using fallback opponent", defender_id, exc)
            return (
                fallback_opponent(defender_id, now=self._clock(), rules=self._rules),
                OpponentSource.FALLBACK,
            )

    def _persist_defender(self, battle: BattleResult) -> tuple[KingdomState, bool]:
        state = battle.defender
        defender_id = state.id
        expected = state.revision
        for _ in range(self._conflict_retries + 1):
            try:
                stored = self._policy.conditional_write(
                    f"persist defender {defender_id}",
                    lambda: self._store.put_kingdom_state(state, expected_revision=expected),
                )
            except RevisionConflict:
                logger.info("defender %s changed during the attack, re-applying losses", defender_id)
                try:
                    fresh = self._read(defender_id)
                except StoreError as exc:
                    logger.warning("defender %s could not be re-read: %s", defender_id, exc)
                    return state, False
                state = apply_defender_outcome(
                    fresh, battle.defender_losses, battle.resources_stolen
                )
                expected = fresh.revision
                continue
            except StoreError as exc:
                logger.warning("defender %s not persisted: %s", defender_id, exc)
                return state, False
            self._cache.remember(stored)
            return stored, True

        logger.warning("defender %s not persisted: too many concurrent updates", defender_id)
        return state, False

    def _persist_report(self, report: WarReport) -> bool:
        try:
            self._policy.call(
                f"insert war report {report.id}", lambda: self._store.insert_war_report(report)
            )
        except (ReportPersistenceFailure, *TRANSIENT_STORE_ERRORS) as exc:
            logger.warning("war report %s not persisted: %s", report.id, exc)
            return False
        return True

    def _random_source(
        self, attacker_id: KingdomID, defender_id: KingdomID, now: datetime
    ) -> RandomSource | None:
        if self._rng is not None:
            return self._rng
        if self._battle_seed is None:
            return None
        return SeededRandomSource(
            generate_seed(attacker_id, defender_id, now.isoformat(), self._battle_seed)
        )
