"""Dataclasses describing every kingdom entity.

The rules layer only ever sees these immutable values.  Persistence adapters
translate between them and their storage (JSON documents, SQL rows) through
:mod:`kingdom.domain.normalize`, and every mutation produces a new value via
:func:`dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import NewType

from .enums import BuildingKind, ResourceKind, TroopKind

# --- Strongly typed identifiers -------------------------------------------------

KingdomID = NewType("KingdomID", str)
WarReportID = NewType("WarReportID", str)

Army = dict[TroopKind, int]


# --- Core dataclasses -----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Resources:
    """Stockpile of the four resource kinds."""

    gold: int = 0
    food: int = 0
    wood: int = 0
    stone: int = 0

    def get(self, kind: ResourceKind) -> int:
        return getattr(self, kind.value)

    def as_dict(self) -> dict[str, int]:
        return {kind.value: self.get(kind) for kind in ResourceKind}

    @classmethod
    def from_amounts(cls, amounts: dict[ResourceKind, int]) -> Resources:
        return cls(**{kind.value: int(amounts.get(kind, 0)) for kind in ResourceKind})


@dataclass(frozen=True, slots=True)
class Building:
    """A building at a given level with its derived effect fields."""

    kind: BuildingKind
    level: int = 1
    effects: dict[str, int] = field(default_factory=dict)

    def effect(self, name: str, default: int = 0) -> int:
        return self.effects.get(name, default)


@dataclass(frozen=True, slots=True)
class KingdomState:
    """Persistent economic and military state of one player.

    ``revision`` is the compare-and-swap token used by the State Store; it
    is bumped by the store on every successful write.
    """

    id: KingdomID
    kingdom_name: str
    resources: Resources
    buildings: dict[BuildingKind, Building]
    army: Army
    last_resource_collection: datetime
    revision: int = 0

    def building(self, kind: BuildingKind) -> Building:
        return self.buildings[kind]

    def troops(self, kind: TroopKind) -> int:
        return self.army.get(kind, 0)


@dataclass(frozen=True, slots=True)
class WarReport:
    """Immutable record of one resolved attack."""

    id: WarReportID
    attacker_id: KingdomID
    defender_id: KingdomID
    attacker_name: str
    defender_name: str
    victory: bool
    attack_power: float
    defense_power: float
    ratio: float
    random_factor: float
    adjusted_ratio: float
    attacker_army: Army
    defender_army: Army
    attacker_losses: Army
    defender_losses: Army
    resources_stolen: Resources
    created_at: datetime
    used_fallback_opponent: bool = False
