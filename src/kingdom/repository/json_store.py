"""JSON-based State Store persisting kingdoms as documents on disk."""

from __future__ import annotations

import json
import re
import threading
from dataclasses import replace
from pathlib import Path

from kingdom.domain import models as dm
from kingdom.domain.normalize import (
    kingdom_from_record,
    kingdom_to_record,
    war_report_from_record,
    war_report_to_record,
)
from kingdom.errors import (
    KingdomNotFound,
    MalformedKingdomState,
    ReportPersistenceFailure,
    RevisionConflict,
    StoreUnavailable,
)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonKingdomStore:
    """Persist each kingdom as ``kingdom_<id>.json`` and each report under ``reports/``."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.reports_path = base_path / "reports"
        self.reports_path.mkdir(exist_ok=True)
        self._write_lock = threading.Lock()

    def _path_for(self, kingdom_id: dm.KingdomID) -> Path:
        if not _SAFE_ID.match(str(kingdom_id)):
            raise ValueError(f"kingdom id {kingdom_id!r} is not a safe file name")
        return self.base_path / f"kingdom_{kingdom_id}.json"

    def get_kingdom_state(self, kingdom_id: dm.KingdomID) -> dm.KingdomState:
        """Load and normalize a kingdom document."""

        path = self._path_for(kingdom_id)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            raise KingdomNotFound(kingdom_id) from None
        except OSError as exc:
            raise StoreUnavailable(f"cannot read {path}: {exc}") from exc
        try:
            record = json.loads(data)
        except ValueError as exc:
            raise MalformedKingdomState(f"{path} is not valid JSON: {exc}") from exc
        if not isinstance(record, dict):
            raise MalformedKingdomState(f"{path} does not hold a JSON object")
        return kingdom_from_record(record)

    def put_kingdom_state(
        self, state: dm.KingdomState, *, expected_revision: int | None = None
    ) -> dm.KingdomState:
        """Write the document, checking the stored revision first when asked."""

        path = self._path_for(state.id)
        with self._write_lock:
            current: int | None = None
            if path.exists():
                current = self.get_kingdom_state(state.id).revision
            if expected_revision is not None and current != expected_revision:
                raise RevisionConflict(state.id, expected_revision, current)

            base = current if current is not None else state.revision
            stored = replace(state, revision=base + 1)
            payload = json.dumps(kingdom_to_record(stored), indent=2)
            tmp_path = path.with_suffix(".json.tmp")
            try:
                tmp_path.write_text(payload, encoding="utf-8")
                tmp_path.replace(path)
            except OSError as exc:
                raise StoreUnavailable(f"cannot write {path}: {exc}") from exc
        return kingdom_from_record(kingdom_to_record(stored))

    def insert_war_report(self, report: dm.WarReport) -> dm.WarReport:
        path = self.reports_path / f"report_{report.id}.json"
        try:
            path.write_text(json.dumps(war_report_to_record(report), indent=2), encoding="utf-8")
        except OSError as exc:
            raise ReportPersistenceFailure(f"cannot write {path}: {exc}") from exc
        return report

    def list_war_reports(self, kingdom_id: dm.KingdomID, *, limit: int = 10) -> list[dm.WarReport]:
        """Return reports involving the kingdom, newest first."""

        reports: list[dm.WarReport] = []
        for path in self.reports_path.glob("report_*.json"):
            try:
                report = war_report_from_record(json.loads(path.read_bytes()))
            except (KeyError, ValueError):  # pragma: no cover - ignored malformed file
                continue
            if kingdom_id in (report.attacker_id, report.defender_id):
                reports.append(report)
        reports.sort(key=lambda report: report.created_at, reverse=True)
        return reports[:limit]
