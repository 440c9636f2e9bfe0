"""Tests for normalization of partially formed kingdom data."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from kingdom.domain.enums import BuildingKind, TroopKind
from kingdom.domain.models import Building, KingdomID, KingdomState, Resources
from kingdom.domain.normalize import (
    kingdom_from_record,
    kingdom_to_record,
    normalize_army,
    normalize_kingdom,
)
from kingdom.errors import MalformedKingdomState

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def test_missing_buildings_become_level_one_stand_ins():
    state = KingdomState(
        id=KingdomID("k1"),
        kingdom_name="Sparse",
        resources=Resources(gold=5),
        buildings={},
        army={},
        last_resource_collection=NOW,
    )

    normalized = normalize_kingdom(state)

    assert set(normalized.buildings) == set(BuildingKind)
    assert normalized.building(BuildingKind.CASTLE).effect("defense_bonus") == 10
    assert normalized.army == {kind: 0 for kind in TroopKind}


def test_missing_effect_field_is_derived_from_level():
    state = KingdomState(
        id=KingdomID("k1"),
        kingdom_name="Old",
        resources=Resources(),
        buildings={BuildingKind.MINE: Building(BuildingKind.MINE, level=3, effects={})},
        army={TroopKind.SWORDSMEN: 2},
        last_resource_collection=NOW,
    )

    assert normalize_kingdom(state).building(BuildingKind.MINE).effect("gold_production") == 15


def test_negative_quantities_and_naive_timestamps_are_repaired():
    state = KingdomState(
        id=KingdomID("k1"),
        kingdom_name="Broken",
        resources=Resources(gold=-50, food=10),
        buildings={},
        army={TroopKind.ARCHERS: -3},
        last_resource_collection=datetime(2025, 1, 1, 12, 0),
    )

    normalized = normalize_kingdom(state)

    assert normalized.resources == Resources(gold=0, food=10)
    assert normalized.troops(TroopKind.ARCHERS) == 0
    assert normalized.last_resource_collection == NOW


def test_army_that_is_not_a_mapping_is_malformed():
    with pytest.raises(MalformedKingdomState):
        normalize_army([("swordsmen", 5)])


def test_record_decoder_tolerates_missing_sections():
    state = kingdom_from_record(
        {"id": "k9", "army": {"swordsmen": 7, "dragons": 3}}, fallback_time=NOW
    )

    assert state.id == "k9"
    assert state.kingdom_name == ""
    assert state.troops(TroopKind.SWORDSMEN) == 7
    assert state.resources == Resources()
    assert state.last_resource_collection == NOW
    assert state.building(BuildingKind.FARM).level == 1


def test_record_without_id_is_rejected():
    with pytest.raises(MalformedKingdomState, match="no id"):
        kingdom_from_record({"kingdom_name": "nobody"})


def test_record_with_list_army_is_rejected():
    with pytest.raises(MalformedKingdomState):
        kingdom_from_record({"id": "k1", "army": [1, 2, 3]})


def test_record_conversion_preserves_kingdom():
    state = normalize_kingdom(
        KingdomState(
            id=KingdomID("k1"),
            kingdom_name="Round",
            resources=Resources(gold=10, food=20, wood=30, stone=40),
            buildings={BuildingKind.CASTLE: Building(BuildingKind.CASTLE, 2, {"defense_bonus": 20})},
            army={TroopKind.CAVALRY: 4},
            last_resource_collection=NOW,
            revision=3,
        )
    )

    assert kingdom_from_record(kingdom_to_record(state)) == state
