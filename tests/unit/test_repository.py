"""Tests for the in-memory and JSON State Store adapters."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from kingdom.domain.battle import resolve_battle
from kingdom.domain.economy import new_kingdom
from kingdom.domain.enums import BuildingKind, TroopKind
from kingdom.domain.models import KingdomID
from kingdom.errors import (
    KingdomNotFound,
    MalformedKingdomState,
    RevisionConflict,
    StoreUnavailable,
)
from kingdom.repository import InMemoryKingdomStore, JsonKingdomStore
from kingdom.utils.rng import FixedRandomSource

NOW = datetime(2025, 1, 1, tzinfo=UTC)


def _kingdom(kingdom_id: str = "alice"):
    return new_kingdom(KingdomID(kingdom_id), now=NOW, username=kingdom_id)


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryKingdomStore()
    return JsonKingdomStore(tmp_path)


def test_put_and_get_kingdom(store):
    stored = store.put_kingdom_state(_kingdom())

    assert stored.revision == 1
    loaded = store.get_kingdom_state(KingdomID("alice"))
    assert loaded == stored


def test_missing_kingdom_raises_not_found(store):
    with pytest.raises(KingdomNotFound):
        store.get_kingdom_state(KingdomID("nobody"))


def test_conditional_write_bumps_revision(store):
    stored = store.put_kingdom_state(_kingdom())
    changed = replace(stored, kingdom_name="Renamed")

    updated = store.put_kingdom_state(changed, expected_revision=stored.revision)

    assert updated.revision == stored.revision + 1
    assert store.get_kingdom_state(KingdomID("alice")).kingdom_name == "Renamed"


def test_stale_write_is_rejected(store):
    stored = store.put_kingdom_state(_kingdom())
    store.put_kingdom_state(stored, expected_revision=stored.revision)

    with pytest.raises(RevisionConflict) as excinfo:
        store.put_kingdom_state(replace(stored, kingdom_name="Stale"), expected_revision=stored.revision)

    assert excinfo.value.expected == stored.revision
    assert excinfo.value.actual == stored.revision + 1
    assert store.get_kingdom_state(KingdomID("alice")).kingdom_name == "alice's Realm"


def test_expected_revision_for_unknown_kingdom_conflicts(store):
    with pytest.raises(RevisionConflict):
        store.put_kingdom_state(_kingdom("ghost"), expected_revision=1)


def test_war_reports_listed_newest_first(store):
    alice, bob, carol = _kingdom("alice"), _kingdom("bob"), _kingdom("carol")
    for offset, (attacker, defender) in enumerate([(alice, bob), (bob, carol), (carol, alice)]):
        report = resolve_battle(
            attacker, defender, rng=FixedRandomSource(1.0), now=NOW + timedelta(minutes=offset)
        ).report
        store.insert_war_report(report)

    reports = store.list_war_reports(KingdomID("alice"))

    assert [(r.attacker_id, r.defender_id) for r in reports] == [("carol", "alice"), ("alice", "bob")]
    assert store.list_war_reports(KingdomID("alice"), limit=1)[0].attacker_id == "carol"
    assert store.list_war_reports(KingdomID("dave")) == []


def test_json_documents_are_readable(tmp_path):
    store = JsonKingdomStore(tmp_path)
    store.put_kingdom_state(_kingdom())

    document = json.loads((tmp_path / "kingdom_alice.json").read_text())

    assert document["resources"]["gold"] == 1000
    assert document["buildings"]["castle"] == {"level": 1, "defense_bonus": 10}
    assert document["army"]["swordsmen"] == 10
    assert document["revision"] == 1


def test_json_store_repairs_partial_documents(tmp_path):
    store = JsonKingdomStore(tmp_path)
    (tmp_path / "kingdom_legacy.json").write_text(
        json.dumps({"id": "legacy", "kingdom_name": "Old", "army": {"archers": 3}})
    )

    state = store.get_kingdom_state(KingdomID("legacy"))

    assert state.troops(TroopKind.ARCHERS) == 3
    assert state.building(BuildingKind.CASTLE).effect("defense_bonus") == 10


def test_json_store_rejects_unsafe_ids(tmp_path):
    store = JsonKingdomStore(tmp_path)
    with pytest.raises(ValueError, match="safe file name"):
        store.get_kingdom_state(KingdomID("../escape"))


def test_json_store_read_failure_is_unavailable(tmp_path):
    store = JsonKingdomStore(tmp_path)
    (tmp_path / "kingdom_alice.json").mkdir()

    with pytest.raises(StoreUnavailable):
        store.get_kingdom_state(KingdomID("alice"))


@pytest.mark.parametrize("content", ['{"id": "alice", ', "[1, 2, 3]"])
def test_json_store_corrupt_document_is_malformed(tmp_path, content):
    store = JsonKingdomStore(tmp_path)
    (tmp_path / "kingdom_alice.json").write_text(content)

    with pytest.raises(MalformedKingdomState):
        store.get_kingdom_state(KingdomID("alice"))
