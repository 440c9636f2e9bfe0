"""Pure rules layer of the kingdom engine.

This package holds everything that decides outcomes without touching
storage:

* Immutable dataclasses describing kingdoms and war reports (see :mod:`models`).
* Static troop and building tables (:mod:`catalog`).
* Power, economy and battle rules operating purely in-memory.

Persistence and retries live in :mod:`kingdom.services` and
:mod:`kingdom.repository`.
"""

from . import (
    battle,
    catalog,
    economy,
    enums,
    models,
    normalize,
    power,
    rules_config,
)

__all__ = [
    "battle",
    "catalog",
    "economy",
    "enums",
    "models",
    "normalize",
    "power",
    "rules_config",
]
