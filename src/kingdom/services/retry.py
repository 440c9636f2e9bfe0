"""Retry policy for State Store calls."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from kingdom.errors import (
    RETRYABLE_WRITE_ERRORS,
    TRANSIENT_STORE_ERRORS,
    RevisionConflict,
    StoreError,
    StoreTimeout,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class StorePolicy:
    """How often and how patiently a store call is retried.

    Only transient failures (``StoreUnavailable``, ``StoreTimeout``) are
    retried; not-found, conflicts and report failures surface immediately.
    Conditional kingdom writes go through :meth:`conditional_write`, which
    never retries a timeout because the first attempt may have committed.
    """

    attempts: int = 3
    backoff_seconds: float = 0.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def call(
        self,
        description: str,
        operation: Callable[[], T],
        *,
        retry_on: tuple[type[StoreError], ...] = TRANSIENT_STORE_ERRORS,
    ) -> T:
        """Run ``operation``, retrying ``retry_on`` errors with linear backoff."""

        attempts = max(1, self.attempts)
        attempt = 1
        while True:
            try:
                return operation()
            except retry_on as exc:
                if attempt == attempts:
                    logger.error("%s failed after %d attempts: %s", description, attempts, exc)
                    raise
                logger.warning(
                    "%s failed (attempt %d/%d): %s", description, attempt, attempts, exc
                )
                if self.backoff_seconds:
                    self.sleep(self.backoff_seconds * attempt)
                attempt += 1

    def conditional_write(self, description: str, operation: Callable[[], T]) -> T:
        """Run a compare-and-swap write.

        ``StoreTimeout`` is raised as is: the write may or may not have
        landed.  A ``RevisionConflict`` on a retried attempt is reported the
        same way, since the earlier attempt may be the update it collided with.
        """

        tries = 0

        def attempt() -> T:
            nonlocal tries
            tries += 1
            return operation()

        try:
            return self.call(description, attempt, retry_on=RETRYABLE_WRITE_ERRORS)
        except StoreTimeout as exc:
            logger.error("%s timed out, outcome unknown: %s", description, exc)
            raise
        except RevisionConflict as exc:
            if tries == 1:
                raise
            logger.error("%s conflicted after a retry, outcome unknown: %s", description, exc)
            raise StoreTimeout(f"{description}: outcome unknown after retry ({exc})") from exc
