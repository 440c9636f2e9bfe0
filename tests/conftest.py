"""Pytest configuration to ensure the `src` package layout is importable.

This adds the `src/` directory to `sys.path` so tests can import the
`kingdom` package (e.g., `from kingdom.api.app import create_app`) without
requiring an editable install in CI.
"""

import sys
from pathlib import Path

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from collections.abc import Callable  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402

from kingdom.domain import models as dm  # noqa: E402
from kingdom.repository import InMemoryKingdomStore  # noqa: E402


class ScriptedStore(InMemoryKingdomStore):
    """In-memory store whose calls can be made to fail or race on demand.

    ``fail_reads`` / ``fail_writes`` map a kingdom id to exceptions raised by
    the next calls; ``fail_after_write`` raises after the write has been
    applied (a lost acknowledgement); ``before_write`` runs once before the
    next write of a kingdom (to simulate a concurrent update); ``writes``
    records applied kingdom writes in order.
    """

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads: dict[str, list[Exception]] = {}
        self.fail_writes: dict[str, list[Exception]] = {}
        self.fail_after_write: dict[str, list[Exception]] = {}
        self.fail_reports: list[Exception] = []
        self.before_write: dict[str, Callable[[], None]] = {}
        self.writes: list[str] = []

    def seed(self, state: dm.KingdomState) -> dm.KingdomState:
        return InMemoryKingdomStore.put_kingdom_state(self, state)

    def get_kingdom_state(self, kingdom_id):
        queue = self.fail_reads.get(kingdom_id)
        if queue:
            raise queue.pop(0)
        return super().get_kingdom_state(kingdom_id)

    def put_kingdom_state(self, state, *, expected_revision=None):
        hook = self.before_write.pop(state.id, None)
        if hook is not None:
            hook()
        queue = self.fail_writes.get(state.id)
        if queue:
            raise queue.pop(0)
        stored = super().put_kingdom_state(state, expected_revision=expected_revision)
        self.writes.append(state.id)
        lost = self.fail_after_write.get(state.id)
        if lost:
            raise lost.pop(0)
        return stored

    def insert_war_report(self, report):
        if self.fail_reports:
            raise self.fail_reports.pop(0)
        return super().insert_war_report(report)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def scripted_store() -> ScriptedStore:
    return ScriptedStore()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
