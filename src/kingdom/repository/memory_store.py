"""In-process State Store used for tests and throwaway servers."""

from __future__ import annotations

import threading
from dataclasses import replace

from kingdom.domain import models as dm
from kingdom.domain.normalize import normalize_kingdom
from kingdom.errors import KingdomNotFound, RevisionConflict


class InMemoryKingdomStore:
    """Keep kingdoms and war reports in dictionaries guarded by one lock."""

    def __init__(self) -> None:
        self._kingdoms: dict[dm.KingdomID, dm.KingdomState] = {}
        self._reports: list[dm.WarReport] = []
        self._lock = threading.Lock()

    def get_kingdom_state(self, kingdom_id: dm.KingdomID) -> dm.KingdomState:
        try:
            return self._kingdoms[kingdom_id]
        except KeyError:
            raise KingdomNotFound(kingdom_id) from None

    def put_kingdom_state(
        self, state: dm.KingdomState, *, expected_revision: int | None = None
    ) -> dm.KingdomState:
        with self._lock:
            current = self._kingdoms.get(state.id)
            if expected_revision is not None:
                actual = current.revision if current is not None else None
                if actual != expected_revision:
                    raise RevisionConflict(state.id, expected_revision, actual)
            revision = current.revision + 1 if current is not None else state.revision + 1
            stored = replace(normalize_kingdom(state), revision=revision)
            self._kingdoms[state.id] = stored
        return stored

    def insert_war_report(self, report: dm.WarReport) -> dm.WarReport:
        with self._lock:
            self._reports.append(report)
        return report

    def list_war_reports(self, kingdom_id: dm.KingdomID, *, limit: int = 10) -> list[dm.WarReport]:
        with self._lock:
            involved = [
                report
                for report in self._reports
                if kingdom_id in (report.attacker_id, report.defender_id)
            ]
        involved.sort(key=lambda report: report.created_at, reverse=True)
        return involved[:limit]
