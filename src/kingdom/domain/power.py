"""Army power calculations.

Both functions are used for the pre-attack preview and for authoritative
resolution, so they must stay pure and deterministic.
"""

from __future__ import annotations

from collections.abc import Mapping

from .catalog import TROOP_SPECS
from .models import Building


def army_power(army: Mapping[str, int | None] | None) -> float:
    """Sum of ``count * power_per_unit`` over all known troop kinds.

    Missing, ``None`` and negative counts contribute nothing, and a ``None``
    or empty army has zero power.
    """

    if not army:
        return 0.0
    total = 0.0
    for kind, spec in TROOP_SPECS.items():
        count = army.get(kind) or 0
        if count > 0:
            total += count * spec.power_per_unit
    return total


def defense_bonus(castle: Building | None) -> int:
    """Castle defense bonus in percent; an absent castle grants nothing."""

    if castle is None:
        return 0
    return max(0, castle.effect("defense_bonus"))


def defense_power(army: Mapping[str, int | None] | None, castle: Building | None) -> float:
    """Army power boosted by the castle defense bonus."""

    return army_power(army) * (1 + defense_bonus(castle) / 100)
