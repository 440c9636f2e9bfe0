"""Tests for accrual, training and building upgrades."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from kingdom.domain import economy
from kingdom.domain.catalog import building_for_level
from kingdom.domain.enums import BuildingKind, TroopKind
from kingdom.domain.models import KingdomID, Resources
from kingdom.errors import InsufficientResources

NOW = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)


def _kingdom(**overrides):
    state = economy.new_kingdom(KingdomID("player-1"), now=NOW, username="alice")
    return replace(state, **overrides)


def test_new_kingdom_seed_state():
    state = _kingdom()

    assert state.kingdom_name == "alice's Realm"
    assert state.resources == Resources(gold=1000, food=500, wood=300, stone=200)
    assert state.troops(TroopKind.SWORDSMEN) == 10
    assert state.troops(TroopKind.ARCHERS) == 5
    assert state.troops(TroopKind.CATAPULTS) == 0
    assert all(building.level == 1 for building in state.buildings.values())
    assert state.last_resource_collection == NOW
    assert state.revision == 0


def test_default_name_without_username():
    state = economy.new_kingdom(KingdomID("p"), now=NOW)
    assert state.kingdom_name == "Kingdom's Realm"


def test_accrue_one_hour_at_level_one():
    result = economy.accrue(_kingdom(), NOW + timedelta(hours=1))

    assert (result.gold_gained, result.food_gained) == (5, 10)
    assert result.state.resources.gold == 1005
    assert result.state.resources.food == 510
    assert result.state.last_resource_collection == NOW + timedelta(hours=1)


def test_accrue_floors_partial_units():
    # 11 minutes at 5 gold/hour is 0.9166 gold
    result = economy.accrue(_kingdom(), NOW + timedelta(minutes=11))
    assert result.gold_gained == 0
    assert result.food_gained == 1


def test_accrue_with_clock_moving_backwards_gains_nothing():
    result = economy.accrue(_kingdom(), NOW - timedelta(hours=2))
    assert (result.gold_gained, result.food_gained) == (0, 0)
    assert result.state.resources == _kingdom().resources


def test_accrue_uses_upgraded_production():
    buildings = {**_kingdom().buildings, BuildingKind.MINE: building_for_level(BuildingKind.MINE, 4)}
    result = economy.accrue(_kingdom(buildings=buildings), NOW + timedelta(hours=2))
    assert result.gold_gained == 40


def test_seconds_until_collection_counts_down_to_zero():
    state = _kingdom()
    assert economy.seconds_until_collection(state, NOW) == 300
    assert economy.seconds_until_collection(state, NOW + timedelta(seconds=120)) == 180
    assert economy.seconds_until_collection(state, NOW + timedelta(hours=1)) == 0


@given(st.integers(min_value=-10_000, max_value=10_000_000))
def test_accrual_gains_are_never_negative(seconds):
    result = economy.accrue(_kingdom(), NOW + timedelta(seconds=seconds))
    assert result.gold_gained >= 0
    assert result.food_gained >= 0
    assert result.state.resources.gold >= 1000


@given(st.integers(min_value=0, max_value=10_000_000))
def test_second_accrual_at_the_same_instant_gains_nothing(seconds):
    now = NOW + timedelta(seconds=seconds)
    first = economy.accrue(_kingdom(), now)

    second = economy.accrue(first.state, now)

    assert (second.gold_gained, second.food_gained) == (0, 0)
    assert second.state.resources == first.state.resources
    assert second.state.last_resource_collection == now


def test_train_troops_debits_gold_and_food():
    trained = economy.train_troops(_kingdom(), TroopKind.ARCHERS, 5)

    assert trained.troops(TroopKind.ARCHERS) == 10
    assert trained.resources.gold == 1000 - 5 * 80
    assert trained.resources.food == 500 - 5 * 15


def test_train_troops_rejects_when_food_is_short():
    state = _kingdom(resources=Resources(gold=10_000, food=10))

    with pytest.raises(InsufficientResources) as excinfo:
        economy.train_troops(state, "cavalry", 1)

    assert excinfo.value.required == Resources(gold=150, food=30)
    assert excinfo.value.available.food == 10


def test_train_zero_is_a_no_op_and_negative_is_rejected():
    state = _kingdom()
    assert economy.train_troops(state, TroopKind.SWORDSMEN, 0) == state
    with pytest.raises(ValueError, match="negative"):
        economy.train_troops(state, TroopKind.SWORDSMEN, -1)


def test_train_unknown_troop_kind():
    with pytest.raises(ValueError):
        economy.train_troops(_kingdom(), "wizards", 1)


@given(st.sampled_from(list(TroopKind)), st.integers(min_value=0, max_value=50))
def test_training_never_overdraws(kind, count):
    state = _kingdom()
    try:
        trained = economy.train_troops(state, kind, count)
    except InsufficientResources:
        return
    assert trained.resources.gold >= 0
    assert trained.resources.food >= 0
    assert trained.troops(kind) == state.troops(kind) + count


def test_upgrade_building_recomputes_effects():
    state = _kingdom(resources=Resources(gold=5000))

    upgraded = economy.upgrade_building(state, BuildingKind.CASTLE)

    castle = upgraded.building(BuildingKind.CASTLE)
    assert castle.level == 2
    assert castle.effects == {"defense_bonus": 20}
    assert upgraded.resources.gold == 5000 - 1500


def test_upgrade_building_without_gold_leaves_state_untouched():
    state = _kingdom(resources=Resources(gold=599))

    with pytest.raises(InsufficientResources):
        economy.upgrade_building(state, "mine")

    assert state.building(BuildingKind.MINE).level == 1
    assert state.resources.gold == 599
