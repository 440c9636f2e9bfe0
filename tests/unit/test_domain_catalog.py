"""Tests for the troop and building catalog."""

from __future__ import annotations

import pytest

from kingdom.domain import catalog
from kingdom.domain.enums import BuildingKind, TroopKind


def test_troop_specs_match_published_table():
    assert catalog.troop_spec(TroopKind.SWORDSMEN).power_per_unit == 1.0
    assert catalog.troop_spec("archers").power_per_unit == 1.5
    cavalry = catalog.troop_spec(TroopKind.CAVALRY)
    assert (cavalry.power_per_unit, cavalry.gold_cost, cavalry.food_cost) == (3.0, 150, 30)
    catapults = catalog.troop_spec(TroopKind.CATAPULTS)
    assert (catapults.gold_cost, catapults.food_cost) == (300, 50)


def test_unknown_kinds_raise_value_error():
    with pytest.raises(ValueError):
        catalog.troop_spec("dragons")
    with pytest.raises(ValueError):
        catalog.upgrade_cost("wizard_tower", 1)


@pytest.mark.parametrize(
    ("kind", "level", "expected"),
    [
        (BuildingKind.CASTLE, 1, 1500),
        (BuildingKind.CASTLE, 2, 2250),
        (BuildingKind.BARRACKS, 1, 750),
        (BuildingKind.FARM, 1, 450),
        (BuildingKind.FARM, 3, 1012),
        (BuildingKind.MINE, 1, 600),
    ],
)
def test_upgrade_cost_is_floored_geometric_curve(kind, level, expected):
    assert catalog.upgrade_cost(kind, level) == expected


def test_building_effects_scale_with_level():
    assert catalog.building_for_level(BuildingKind.CASTLE, 3).effects == {"defense_bonus": 30}
    assert catalog.building_for_level(BuildingKind.BARRACKS, 2).effects == {"training_speed": 2}
    assert catalog.building_for_level(BuildingKind.FARM, 2).effects == {"food_production": 20}
    assert catalog.building_for_level(BuildingKind.MINE, 4).effects == {"gold_production": 20}


def test_building_level_below_one_is_rejected():
    with pytest.raises(ValueError, match="at least 1"):
        catalog.building_for_level(BuildingKind.MINE, 0)


def test_starting_buildings_cover_every_kind_at_level_one():
    buildings = catalog.starting_buildings()
    assert set(buildings) == set(BuildingKind)
    assert all(building.level == 1 for building in buildings.values())
    assert buildings[BuildingKind.CASTLE].effect("defense_bonus") == 10
