"""Battle resolution rules.

An attack is resolved in one pass: normalize both kingdoms, compare attack
power against castle-boosted defense power, scale the ratio by a single
random factor, then derive losses on both sides and loot for a victorious
attacker.  The random draw is the only non-deterministic input and comes from
an injectable :class:`~kingdom.interfaces.sources.RandomSource`.
"""

from __future__ import annotations

import math
import random
import uuid
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from kingdom.interfaces.sources import RandomSource

from .economy import new_kingdom
from .enums import BuildingKind, ResourceKind, SuccessChance, TroopKind
from .models import Army, KingdomID, KingdomState, Resources, WarReport, WarReportID
from .normalize import normalize_kingdom
from .power import army_power, defense_power
from .rules_config import DEFAULT_RULES, BattleRules, RulesConfig

FALLBACK_KINGDOM_NAME = "Unknown Realm"

# (upper bound of the ratio, label) checked in order
SUCCESS_CHANCE_THRESHOLDS: tuple[tuple[float, SuccessChance], ...] = (
    (0.5, SuccessChance.VERY_LOW),
    (0.8, SuccessChance.LOW),
    (1.0, SuccessChance.MEDIUM),
    (1.5, SuccessChance.HIGH),
)

_system_random = random.Random()


@dataclass(frozen=True, slots=True)
class BattleResult:
    """Everything decided by one resolved attack."""

    victory: bool
    attack_power: float
    defense_power: float
    ratio: float
    random_factor: float
    adjusted_ratio: float
    attacker_loss_fraction: float
    defender_loss_fraction: float
    steal_percent: float
    attacker_losses: Army
    defender_losses: Army
    resources_stolen: Resources
    attacker: KingdomState
    defender: KingdomState
    report: WarReport


@dataclass(frozen=True, slots=True)
class AttackPreview:
    """Estimate shown before an attack is confirmed."""

    attack_power: float
    defense_power: float
    ratio: float
    success_chance: SuccessChance
    victory_possible: bool
    victory_guaranteed: bool
    steal_percent_min: float
    steal_percent_max: float


def resolve_battle(
    attacker: KingdomState,
    defender: KingdomState,
    *,
    rng: RandomSource | None = None,
    rules: RulesConfig = DEFAULT_RULES,
    now: datetime | None = None,
    used_fallback_opponent: bool = False,
) -> BattleResult:
    """Resolve an attack of ``attacker`` on ``defender``.

    Only armies and resources change; buildings are carried over untouched.

    Raises:
        ValueError: if a kingdom attacks itself or the random source returns
            a factor outside the configured band.
        MalformedKingdomState: if an army cannot be normalized.
    """

    if attacker.id == defender.id:
        raise ValueError("a kingdom cannot attack itself")

    battle_rules = rules.battle
    attacker = normalize_kingdom(attacker)
    defender = normalize_kingdom(defender)

    attack = army_power(attacker.army)
    defense = defense_power(defender.army, defender.building(BuildingKind.CASTLE))
    ratio = power_ratio(attack, defense, battle_rules)

    random_factor = draw_random_factor(rng or _system_random, battle_rules)
    adjusted_ratio = ratio * random_factor
    victory = adjusted_ratio > 1

    attacker_fraction, defender_fraction = loss_fractions(
        victory, ratio, adjusted_ratio, battle_rules
    )
    attacker_losses = troop_losses(attacker.army, attacker_fraction)
    defender_losses = troop_losses(defender.army, defender_fraction)

    steal = steal_percent(adjusted_ratio, battle_rules) if victory else 0.0
    stolen = loot(defender.resources, steal)

    new_attacker = apply_attacker_outcome(attacker, attacker_losses, stolen)
    new_defender = apply_defender_outcome(defender, defender_losses, stolen)

    report = WarReport(
        id=WarReportID(uuid.uuid4().hex),
        attacker_id=attacker.id,
        defender_id=defender.id,
        attacker_name=attacker.kingdom_name,
        defender_name=defender.kingdom_name,
        victory=victory,
        attack_power=attack,
        defense_power=defense,
        ratio=ratio,
        random_factor=random_factor,
        adjusted_ratio=adjusted_ratio,
        attacker_army=attacker.army,
        defender_army=defender.army,
        attacker_losses=attacker_losses,
        defender_losses=defender_losses,
        resources_stolen=stolen,
        created_at=now or datetime.now(UTC),
        used_fallback_opponent=used_fallback_opponent,
    )

    return BattleResult(
        victory=victory,
        attack_power=attack,
        defense_power=defense,
        ratio=ratio,
        random_factor=random_factor,
        adjusted_ratio=adjusted_ratio,
        attacker_loss_fraction=attacker_fraction,
        defender_loss_fraction=defender_fraction,
        steal_percent=steal,
        attacker_losses=attacker_losses,
        defender_losses=defender_losses,
        resources_stolen=stolen,
        attacker=new_attacker,
        defender=new_defender,
        report=report,
    )


def power_ratio(attack: float, defense: float, rules: BattleRules) -> float:
    """Attack over defense; the defense is floored so the ratio stays finite."""

    if attack <= 0:
        return 0.0
    return attack / max(defense, rules.min_defense_power)


def draw_random_factor(rng: RandomSource, rules: BattleRules) -> float:
    factor = rng.uniform(rules.random_factor_min, rules.random_factor_max)
    if not rules.random_factor_min <= factor <= rules.random_factor_max:
        raise ValueError(
            f"random factor {factor} outside "
            f"[{rules.random_factor_min}, {rules.random_factor_max}]"
        )
    return factor


def loss_fractions(
    victory: bool, ratio: float, adjusted_ratio: float, rules: BattleRules
) -> tuple[float, float]:
    """Fractions of each troop kind lost by (attacker, defender)."""

    if victory:
        attacker = rules.victory_attacker_loss_base + rules.victory_attacker_loss_scale / ratio
        defender = rules.victory_defender_loss_base + rules.victory_defender_loss_scale / ratio
    else:
        attacker = rules.defeat_attacker_loss_base + rules.defeat_attacker_loss_scale * adjusted_ratio
        defender = rules.defeat_defender_loss_base + rules.defeat_defender_loss_scale * adjusted_ratio

    if rules.clamp_loss_fractions:
        attacker = _clamp_unit(attacker)
        defender = _clamp_unit(defender)
    return attacker, defender


def steal_percent(adjusted_ratio: float, rules: BattleRules) -> float:
    return _clamp_unit(rules.steal_base + rules.steal_scale * adjusted_ratio)


def troop_losses(army: Army, fraction: float) -> Army:
    """Floored losses per troop kind, never more than the troops present."""

    fraction = max(0.0, fraction)
    return {kind: min(count, math.floor(count * fraction)) for kind, count in army.items()}


def loot(resources: Resources, percent: float) -> Resources:
    """Floored share of every resource kind."""

    return Resources.from_amounts(
        {kind: math.floor(resources.get(kind) * percent) for kind in ResourceKind}
    )


def apply_attacker_outcome(state: KingdomState, losses: Army, stolen: Resources) -> KingdomState:
    """Remove the attacker's losses and credit the loot."""

    return replace(
        state,
        army=_subtract_troops(state.army, losses),
        resources=Resources.from_amounts(
            {kind: state.resources.get(kind) + stolen.get(kind) for kind in ResourceKind}
        ),
    )


def apply_defender_outcome(state: KingdomState, losses: Army, stolen: Resources) -> KingdomState:
    """Remove the defender's losses and the looted resources, floored at zero."""

    return replace(
        state,
        army=_subtract_troops(state.army, losses),
        resources=Resources.from_amounts(
            {kind: max(0, state.resources.get(kind) - stolen.get(kind)) for kind in ResourceKind}
        ),
    )


def preview_attack(
    attacker: KingdomState, defender: KingdomState, *, rules: RulesConfig = DEFAULT_RULES
) -> AttackPreview:
    """Estimate an attack without drawing randomness or changing state."""

    battle_rules = rules.battle
    attacker = normalize_kingdom(attacker)
    defender = normalize_kingdom(defender)

    attack = army_power(attacker.army)
    defense = defense_power(defender.army, defender.building(BuildingKind.CASTLE))
    ratio = power_ratio(attack, defense, battle_rules)

    best = ratio * battle_rules.random_factor_max
    worst = ratio * battle_rules.random_factor_min
    possible = best > 1
    if possible:
        steal_min = steal_percent(max(worst, 1.0), battle_rules)
        steal_max = steal_percent(best, battle_rules)
    else:
        steal_min = steal_max = 0.0

    return AttackPreview(
        attack_power=attack,
        defense_power=defense,
        ratio=ratio,
        success_chance=success_chance(ratio),
        victory_possible=possible,
        victory_guaranteed=worst > 1,
        steal_percent_min=steal_min,
        steal_percent_max=steal_max,
    )


def success_chance(ratio: float) -> SuccessChance:
    for upper, label in SUCCESS_CHANCE_THRESHOLDS:
        if ratio < upper:
            return label
    return SuccessChance.VERY_HIGH


def fallback_opponent(
    defender_id: KingdomID, *, now: datetime, rules: RulesConfig = DEFAULT_RULES
) -> KingdomState:
    """Stand-in defender used when the real one cannot be read."""

    return new_kingdom(defender_id, now=now, kingdom_name=FALLBACK_KINGDOM_NAME, rules=rules)


def _subtract_troops(army: Army, losses: Army) -> Army:
    return {kind: max(0, army.get(kind, 0) - losses.get(kind, 0)) for kind in TroopKind}


def _clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, value))
