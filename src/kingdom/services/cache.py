"""Last known good kingdom states."""

from __future__ import annotations

import threading

from kingdom.domain.models import KingdomID, KingdomState


class KingdomStateCache:
    """Thread-safe map of the most recently read or written state per kingdom.

    Served in place of a defender whose read fails transiently, so it only
    ever holds states that came out of the store.
    """

    def __init__(self) -> None:
        self._states: dict[KingdomID, KingdomState] = {}
        self._lock = threading.Lock()

    def remember(self, state: KingdomState) -> None:
        with self._lock:
            current = self._states.get(state.id)
            if current is None or current.revision <= state.revision:
                self._states[state.id] = state

    def get(self, kingdom_id: KingdomID) -> KingdomState | None:
        with self._lock:
            return self._states.get(kingdom_id)
