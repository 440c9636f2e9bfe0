"""State Store Protocol Interface.

This module defines the contract the orchestration layer expects from the
backing store of kingdoms and war reports.
"""

from typing import Protocol

from kingdom.domain.models import KingdomID, KingdomState, WarReport


class IKingdomStore(Protocol):
    """Protocol for reading and writing kingdom state.

    Adapters raise the typed errors from :mod:`kingdom.errors`:
    ``KingdomNotFound`` for unknown ids, ``StoreUnavailable`` or
    ``StoreTimeout`` for collaborator failures and ``RevisionConflict``
    when a conditional write loses against a concurrent update.
    """

    def get_kingdom_state(self, kingdom_id: KingdomID) -> KingdomState:
        """Load a normalized kingdom.

        Raises:
            KingdomNotFound: if no kingdom has this id
        """
        ...

    def put_kingdom_state(
        self, state: KingdomState, *, expected_revision: int | None = None
    ) -> KingdomState:
        """Persist ``state`` and return it with its new revision.

        Args:
            state: Kingdom to store
            expected_revision: When given, the write only succeeds if the stored
                revision still equals this value

        Raises:
            RevisionConflict: if ``expected_revision`` no longer matches
        """
        ...

    def insert_war_report(self, report: WarReport) -> WarReport:
        """Append a war report.

        Raises:
            ReportPersistenceFailure: if the report could not be stored
        """
        ...

    def list_war_reports(self, kingdom_id: KingdomID, *, limit: int = 10) -> list[WarReport]:
        """Reports where the kingdom attacked or defended, newest first."""
        ...
