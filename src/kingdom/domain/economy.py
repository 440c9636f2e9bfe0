"""Resource economy rules: accrual, training and building upgrades.

Every operation takes a :class:`KingdomState` and returns a new one; a
rejected spend raises :class:`~kingdom.errors.InsufficientResources` and
leaves the input untouched.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime

from kingdom.errors import InsufficientResources

from .catalog import building_for_level, starting_buildings, troop_spec, upgrade_cost
from .enums import BuildingKind, ResourceKind, TroopKind
from .models import KingdomID, KingdomState, Resources
from .normalize import as_utc, normalize_kingdom
from .rules_config import DEFAULT_RULES, RulesConfig


@dataclass(frozen=True, slots=True)
class AccrualResult:
    """Resources credited by one collection and the resulting state."""

    gold_gained: int
    food_gained: int
    state: KingdomState


def default_kingdom_name(username: str | None, rules: RulesConfig = DEFAULT_RULES) -> str:
    return f"{username or rules.economy.default_username}'s Realm"


def new_kingdom(
    kingdom_id: KingdomID,
    *,
    now: datetime,
    kingdom_name: str | None = None,
    username: str | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> KingdomState:
    """Seed state for a newly registered player."""

    economy = rules.economy
    return KingdomState(
        id=kingdom_id,
        kingdom_name=kingdom_name or default_kingdom_name(username, rules),
        resources=Resources(
            gold=economy.starting_gold,
            food=economy.starting_food,
            wood=economy.starting_wood,
            stone=economy.starting_stone,
        ),
        buildings=starting_buildings(),
        army={
            TroopKind.SWORDSMEN: economy.starting_swordsmen,
            TroopKind.ARCHERS: economy.starting_archers,
            TroopKind.CAVALRY: 0,
            TroopKind.CATAPULTS: 0,
        },
        last_resource_collection=as_utc(now),
    )


def elapsed_seconds(state: KingdomState, now: datetime) -> float:
    """Seconds since the last collection, never negative."""

    delta = as_utc(now) - as_utc(state.last_resource_collection)
    return max(0.0, delta.total_seconds())


def accrue(
    state: KingdomState, now: datetime, *, rules: RulesConfig = DEFAULT_RULES
) -> AccrualResult:
    """Settle production since ``last_resource_collection`` up to ``now``.

    Gold comes from the mine and food from the farm, both rated per hour.
    A clock that moved backwards yields no gain; the collection timestamp is
    still moved to ``now``.
    """

    state = normalize_kingdom(state)
    elapsed = elapsed_seconds(state, now)
    per_hour = rules.economy.seconds_per_hour

    gold_rate = max(0, state.building(BuildingKind.MINE).effect("gold_production"))
    food_rate = max(0, state.building(BuildingKind.FARM).effect("food_production"))
    gold_gained = math.floor(elapsed * gold_rate / per_hour)
    food_gained = math.floor(elapsed * food_rate / per_hour)

    resources = replace(
        state.resources,
        gold=state.resources.gold + gold_gained,
        food=state.resources.food + food_gained,
    )
    updated = replace(state, resources=resources, last_resource_collection=as_utc(now))
    return AccrualResult(gold_gained=gold_gained, food_gained=food_gained, state=updated)


def seconds_until_collection(
    state: KingdomState, now: datetime, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    """Remaining collection cooldown, for display."""

    remaining = rules.economy.collection_cooldown_seconds - elapsed_seconds(state, now)
    return max(0, math.ceil(remaining))


def training_cost(troop_kind: TroopKind | str, count: int) -> Resources:
    spec = troop_spec(troop_kind)
    return Resources(gold=spec.gold_cost * count, food=spec.food_cost * count)


def train_troops(state: KingdomState, troop_kind: TroopKind | str, count: int) -> KingdomState:
    """Pay for and add ``count`` troops of ``troop_kind``.

    ``count == 0`` is accepted and returns the state unchanged.

    Raises:
        ValueError: unknown troop kind or negative count.
        InsufficientResources: gold or food does not cover the cost.
    """

    kind = TroopKind(troop_kind)
    if count < 0:
        raise ValueError(f"count must not be negative, got {count}")
    state = normalize_kingdom(state)
    if count == 0:
        return state

    cost = training_cost(kind, count)
    _ensure_affordable(state.resources, cost)

    resources = replace(
        state.resources,
        gold=state.resources.gold - cost.gold,
        food=state.resources.food - cost.food,
    )
    army = {**state.army, kind: state.troops(kind) + count}
    return replace(state, resources=resources, army=army)


def upgrade_building(state: KingdomState, building_kind: BuildingKind | str) -> KingdomState:
    """Pay gold and raise a building by one level.

    Effect fields of the building are rebuilt from the new level.

    Raises:
        ValueError: unknown building kind.
        InsufficientResources: gold does not cover the upgrade cost.
    """

    kind = BuildingKind(building_kind)
    state = normalize_kingdom(state)
    current = state.building(kind)
    cost = Resources(gold=upgrade_cost(kind, current.level))
    _ensure_affordable(state.resources, cost)

    resources = replace(state.resources, gold=state.resources.gold - cost.gold)
    buildings = {**state.buildings, kind: building_for_level(kind, current.level + 1)}
    return replace(state, resources=resources, buildings=buildings)


def _ensure_affordable(available: Resources, cost: Resources) -> None:
    if any(available.get(kind) < cost.get(kind) for kind in ResourceKind):
        raise InsufficientResources(required=cost, available=available)
