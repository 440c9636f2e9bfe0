"""SQLAlchemy-backed State Store.

Kingdom writes are conditional on the stored revision, so concurrent attacks
on the same defender cannot silently overwrite each other.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from kingdom.domain import models as dm
from kingdom.domain.normalize import (
    army_to_record,
    as_utc,
    kingdom_from_record,
    war_report_from_record,
)
from kingdom.errors import (
    KingdomNotFound,
    ReportPersistenceFailure,
    RevisionConflict,
    StoreTimeout,
    StoreUnavailable,
)
from kingdom.models import KingdomRow, WarReportRow

logger = logging.getLogger(__name__)


class SqlKingdomStore:
    """Persist kingdoms and war reports through SQLAlchemy sessions."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except PoolTimeoutError as exc:
            session.rollback()
            raise StoreTimeout(str(exc)) from exc
        except OperationalError as exc:
            session.rollback()
            raise StoreUnavailable(str(exc)) from exc
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def get_kingdom_state(self, kingdom_id: dm.KingdomID) -> dm.KingdomState:
        with self._session() as session:
            row = session.get(KingdomRow, str(kingdom_id))
            if row is None:
                raise KingdomNotFound(kingdom_id)
            return kingdom_from_record(_row_to_record(row))

    def put_kingdom_state(
        self, state: dm.KingdomState, *, expected_revision: int | None = None
    ) -> dm.KingdomState:
        with self._session() as session:
            row = session.get(KingdomRow, str(state.id))
            if row is None:
                if expected_revision is not None:
                    raise RevisionConflict(state.id, expected_revision, None)
                row = KingdomRow(id=str(state.id), revision=state.revision + 1)
                _copy_state(row, state)
                session.add(row)
                try:
                    session.flush()
                except IntegrityError as exc:
                    # another writer created the kingdom first
                    raise RevisionConflict(state.id, state.revision, None) from exc
                return replace(state, revision=row.revision)

            if expected_revision is None:
                new_revision = row.revision + 1
                _copy_state(row, state)
                row.revision = new_revision
                return replace(state, revision=new_revision)

            new_revision = expected_revision + 1
            result = session.execute(
                update(KingdomRow)
                .where(KingdomRow.id == str(state.id), KingdomRow.revision == expected_revision)
                .values(
                    kingdom_name=state.kingdom_name,
                    resources=state.resources.as_dict(),
                    buildings=_buildings_record(state),
                    army=army_to_record(state.army),
                    last_resource_collection=as_utc(state.last_resource_collection),
                    revision=new_revision,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                logger.info(
                    "kingdom %s: write at revision %s rejected, stored revision is %s",
                    state.id,
                    expected_revision,
                    row.revision,
                )
                raise RevisionConflict(state.id, expected_revision, row.revision)
            return replace(state, revision=new_revision)

    def insert_war_report(self, report: dm.WarReport) -> dm.WarReport:
        try:
            with self._session() as session:
                session.add(
                    WarReportRow(
                        id=str(report.id),
                        attacker_id=str(report.attacker_id),
                        defender_id=str(report.defender_id),
                        attacker_name=report.attacker_name,
                        defender_name=report.defender_name,
                        victory=report.victory,
                        attack_power=report.attack_power,
                        defense_power=report.defense_power,
                        ratio=report.ratio,
                        random_factor=report.random_factor,
                        adjusted_ratio=report.adjusted_ratio,
                        attacker_army=army_to_record(report.attacker_army),
                        defender_army=army_to_record(report.defender_army),
                        attacker_losses=army_to_record(report.attacker_losses),
                        defender_losses=army_to_record(report.defender_losses),
                        resources_stolen=report.resources_stolen.as_dict(),
                        used_fallback_opponent=report.used_fallback_opponent,
                        created_at=as_utc(report.created_at),
                    )
                )
        except (StoreUnavailable, StoreTimeout, SQLAlchemyError) as exc:
            raise ReportPersistenceFailure(f"war report {report.id} not stored: {exc}") from exc
        return report

    def list_war_reports(self, kingdom_id: dm.KingdomID, *, limit: int = 10) -> list[dm.WarReport]:
        with self._session() as session:
            rows = session.scalars(
                select(WarReportRow)
                .where(
                    or_(
                        WarReportRow.attacker_id == str(kingdom_id),
                        WarReportRow.defender_id == str(kingdom_id),
                    )
                )
                .order_by(WarReportRow.created_at.desc())
                .limit(limit)
            ).all()
            return [war_report_from_record(_report_to_record(row)) for row in rows]


def _buildings_record(state: dm.KingdomState) -> dict[str, dict[str, int]]:
    return {
        str(kind): {"level": building.level, **building.effects}
        for kind, building in state.buildings.items()
    }


def _copy_state(row: KingdomRow, state: dm.KingdomState) -> None:
    row.kingdom_name = state.kingdom_name
    row.resources = state.resources.as_dict()
    row.buildings = _buildings_record(state)
    row.army = army_to_record(state.army)
    row.last_resource_collection = as_utc(state.last_resource_collection)


def _row_to_record(row: KingdomRow) -> dict[str, object]:
    return {
        "id": row.id,
        "kingdom_name": row.kingdom_name,
        "resources": row.resources,
        "buildings": row.buildings,
        "army": row.army,
        "last_resource_collection": row.last_resource_collection,
        "revision": row.revision,
    }


def _report_to_record(row: WarReportRow) -> dict[str, object]:
    return {
        column.key: getattr(row, column.key) for column in WarReportRow.__table__.columns
    }
