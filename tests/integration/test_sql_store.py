"""Integration tests for the SQLAlchemy State Store.

Each test runs against a fresh SQLite file created with ``init_db``.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import inspect

from kingdom.config import Settings
from kingdom.database import (
    check_database_health,
    create_db_engine,
    get_session_factory,
    init_db,
)
from kingdom.domain.battle import resolve_battle
from kingdom.domain.economy import new_kingdom
from kingdom.domain.enums import AttackStatus, TroopKind
from kingdom.domain.models import KingdomID
from kingdom.errors import (
    KingdomNotFound,
    ReportPersistenceFailure,
    RevisionConflict,
    StoreUnavailable,
)
from kingdom.repository import SqlKingdomStore
from kingdom.services import AttackService, KingdomService
from kingdom.utils.rng import FixedRandomSource

pytestmark = pytest.mark.integration

NOW = datetime(2025, 2, 1, 9, 30, tzinfo=UTC)


@pytest.fixture
def engine(tmp_path):
    settings = Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'kingdom.db'}")
    engine = create_db_engine(settings)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return SqlKingdomStore(get_session_factory(engine))


def _kingdom(kingdom_id: str):
    return new_kingdom(KingdomID(kingdom_id), now=NOW, username=kingdom_id)


def test_schema_is_created(engine):
    assert check_database_health(engine) is True
    assert {"kingdoms", "war_reports"} <= set(inspect(engine).get_table_names())


def test_put_and_get_round_trip(store):
    stored = store.put_kingdom_state(_kingdom("alice"))

    loaded = store.get_kingdom_state(KingdomID("alice"))

    assert stored.revision == 1
    assert loaded == stored
    assert loaded.last_resource_collection == NOW


def test_missing_kingdom(store):
    with pytest.raises(KingdomNotFound):
        store.get_kingdom_state(KingdomID("ghost"))


def test_conditional_update_detects_stale_revision(store):
    stored = store.put_kingdom_state(_kingdom("alice"))
    trained = replace(stored, army={**stored.army, TroopKind.CAVALRY: 3})
    updated = store.put_kingdom_state(trained, expected_revision=1)
    assert updated.revision == 2

    with pytest.raises(RevisionConflict) as excinfo:
        store.put_kingdom_state(stored, expected_revision=1)

    assert excinfo.value.actual == 2
    assert store.get_kingdom_state(KingdomID("alice")).troops(TroopKind.CAVALRY) == 3


def test_conditional_write_of_unknown_kingdom(store):
    with pytest.raises(RevisionConflict):
        store.put_kingdom_state(_kingdom("ghost"), expected_revision=0)


def test_war_reports_are_listed_newest_first(store):
    alice, bob = _kingdom("alice"), _kingdom("bob")
    first = resolve_battle(alice, bob, rng=FixedRandomSource(1.0), now=NOW).report
    second = resolve_battle(bob, alice, rng=FixedRandomSource(1.1), now=NOW + timedelta(hours=1)).report
    store.insert_war_report(first)
    store.insert_war_report(second)

    reports = store.list_war_reports(KingdomID("alice"))

    assert [report.id for report in reports] == [second.id, first.id]
    assert reports[0].random_factor == pytest.approx(1.1)
    assert reports[1].attacker_army == first.attacker_army
    assert reports[1].created_at == NOW
    assert store.list_war_reports(KingdomID("alice"), limit=1)[0].id == second.id


def test_duplicate_report_is_a_persistence_failure(store):
    report = resolve_battle(
        _kingdom("alice"), _kingdom("bob"), rng=FixedRandomSource(1.0), now=NOW
    ).report
    store.insert_war_report(report)

    with pytest.raises(ReportPersistenceFailure):
        store.insert_war_report(report)


def test_unreachable_database_is_unavailable(tmp_path):
    settings = Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'missing' / 'dir' / 'kingdom.db'}")
    engine = create_db_engine(settings)
    store = SqlKingdomStore(get_session_factory(engine))

    with pytest.raises(StoreUnavailable):
        store.get_kingdom_state(KingdomID("alice"))
    assert check_database_health(engine) is False
    engine.dispose()


def test_attack_end_to_end(store):
    kingdoms = KingdomService(store, clock=lambda: NOW)
    kingdoms.create_kingdom(KingdomID("alice"))
    kingdoms.create_kingdom(KingdomID("bob"))
    kingdoms.train_troops(KingdomID("alice"), TroopKind.CAVALRY, 5)

    outcome = AttackService(store, clock=lambda: NOW, rng=FixedRandomSource(1.0)).attack(
        KingdomID("alice"), KingdomID("bob")
    )

    assert outcome.status is AttackStatus.SUCCEEDED
    assert outcome.battle.victory is True
    stolen = outcome.battle.resources_stolen.gold
    assert store.get_kingdom_state(KingdomID("bob")).resources.gold == 1000 - stolen
    assert [report.id for report in kingdoms.list_war_reports(KingdomID("bob"))] == [
        outcome.report.id
    ]
