"""Protocols for the non-deterministic inputs of the engine."""

from collections.abc import Callable
from datetime import datetime
from typing import Protocol


class RandomSource(Protocol):
    """Single uniform draw; :class:`random.Random` satisfies this protocol."""

    def uniform(self, low: float, high: float) -> float: ...


Clock = Callable[[], datetime]
