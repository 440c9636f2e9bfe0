"""Static troop and building tables.

Pure lookups; nothing in here touches kingdom state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .enums import BuildingKind, TroopKind
from .models import Building


@dataclass(frozen=True, slots=True)
class TroopSpec:
    """Catalog entry describing a troop type."""

    kind: TroopKind
    power_per_unit: float
    gold_cost: int
    food_cost: int


@dataclass(frozen=True, slots=True)
class BuildingUpgradeRule:
    """Upgrade cost curve and per-level effect of a building type."""

    kind: BuildingKind
    base_cost: int
    effect_field: str
    effect_per_level: int
    cost_growth_factor: float = 1.5

    def cost_at(self, current_level: int) -> int:
        return math.floor(self.base_cost * self.cost_growth_factor**current_level)

    def effect_at(self, level: int) -> dict[str, int]:
        return {self.effect_field: self.effect_per_level * level}


TROOP_SPECS: dict[TroopKind, TroopSpec] = {
    TroopKind.SWORDSMEN: TroopSpec(TroopKind.SWORDSMEN, 1.0, gold_cost=50, food_cost=20),
    TroopKind.ARCHERS: TroopSpec(TroopKind.ARCHERS, 1.5, gold_cost=80, food_cost=15),
    TroopKind.CAVALRY: TroopSpec(TroopKind.CAVALRY, 3.0, gold_cost=150, food_cost=30),
    TroopKind.CATAPULTS: TroopSpec(TroopKind.CATAPULTS, 5.0, gold_cost=300, food_cost=50),
}

BUILDING_RULES: dict[BuildingKind, BuildingUpgradeRule] = {
    BuildingKind.CASTLE: BuildingUpgradeRule(BuildingKind.CASTLE, 1000, "defense_bonus", 10),
    BuildingKind.BARRACKS: BuildingUpgradeRule(BuildingKind.BARRACKS, 500, "training_speed", 1),
    BuildingKind.FARM: BuildingUpgradeRule(BuildingKind.FARM, 300, "food_production", 10),
    BuildingKind.MINE: BuildingUpgradeRule(BuildingKind.MINE, 400, "gold_production", 5),
}


def troop_spec(kind: TroopKind | str) -> TroopSpec:
    """Return the catalog entry for ``kind`` (``ValueError`` if unknown)."""

    return TROOP_SPECS[TroopKind(kind)]


def upgrade_rule(kind: BuildingKind | str) -> BuildingUpgradeRule:
    """Return the upgrade rule for ``kind`` (``ValueError`` if unknown)."""

    return BUILDING_RULES[BuildingKind(kind)]


def upgrade_cost(kind: BuildingKind | str, current_level: int) -> int:
    """Gold needed to take a building from ``current_level`` to the next level."""

    return upgrade_rule(kind).cost_at(current_level)


def building_for_level(kind: BuildingKind | str, level: int) -> Building:
    """Build a fresh :class:`Building` whose effects are derived from ``level``."""

    if level < 1:
        raise ValueError(f"building level must be at least 1, got {level}")
    rule = upgrade_rule(kind)
    return Building(kind=rule.kind, level=level, effects=rule.effect_at(level))


def starting_buildings() -> dict[BuildingKind, Building]:
    """All four buildings at level 1."""

    return {kind: building_for_level(kind, 1) for kind in BuildingKind}
