"""Typed failures raised by the kingdom engine and its collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kingdom.domain.models import Resources


class KingdomError(Exception):
    """Base class for every error raised by this package."""


class InsufficientResources(KingdomError):
    """A spend was rejected because the stockpile does not cover it.

    The kingdom state is left untouched; nothing is partially debited.
    """

    def __init__(self, required: Resources, available: Resources) -> None:
        self.required = required
        self.available = available
        missing = {
            name: need - available.as_dict()[name]
            for name, need in required.as_dict().items()
            if need > available.as_dict()[name]
        }
        super().__init__(f"insufficient resources, missing {missing}")


class MalformedKingdomState(KingdomError, ValueError):
    """Stored kingdom data cannot be repaired by normalization."""


class StoreError(KingdomError):
    """Failure reported by a State Store adapter."""


class KingdomNotFound(StoreError):
    """No kingdom exists for the requested id."""

    def __init__(self, kingdom_id: str) -> None:
        self.kingdom_id = kingdom_id
        super().__init__(f"kingdom {kingdom_id} not found")


class StoreUnavailable(StoreError):
    """The store could not be reached or rejected the call."""


class StoreTimeout(StoreError):
    """The store did not answer in time; the outcome of the call is unknown."""


class RevisionConflict(StoreError):
    """A conditional write lost against a concurrent update."""

    def __init__(self, kingdom_id: str, expected: int, actual: int | None) -> None:
        self.kingdom_id = kingdom_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"kingdom {kingdom_id} changed concurrently (expected revision {expected}, "
            f"found {actual})"
        )


class ReportPersistenceFailure(StoreError):
    """A war report could not be appended."""


TRANSIENT_STORE_ERRORS: tuple[type[StoreError], ...] = (StoreUnavailable, StoreTimeout)

# Failures after which a conditional write is retried.
RETRYABLE_WRITE_ERRORS: tuple[type[StoreError], ...] = (StoreUnavailable,)
