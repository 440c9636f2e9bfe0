"""Enumerations used across the kingdom domain."""

from __future__ import annotations

from enum import StrEnum


class ResourceKind(StrEnum):
    """The four stockpiled resources of a kingdom."""

    GOLD = "gold"
    FOOD = "food"
    WOOD = "wood"
    STONE = "stone"


class TroopKind(StrEnum):
    """Trainable troop types."""

    SWORDSMEN = "swordsmen"
    ARCHERS = "archers"
    CAVALRY = "cavalry"
    CATAPULTS = "catapults"


class BuildingKind(StrEnum):
    """Upgradeable buildings every kingdom owns."""

    CASTLE = "castle"
    BARRACKS = "barracks"
    FARM = "farm"
    MINE = "mine"


class SuccessChance(StrEnum):
    """Coarse label shown before an attack is confirmed."""

    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class AttackStatus(StrEnum):
    """Terminal status of an orchestrated attack that did not raise."""

    SUCCEEDED = "succeeded"
    SUCCEEDED_DEGRADED = "succeeded_degraded"


class OpponentSource(StrEnum):
    """Where the defender snapshot used for resolution came from."""

    STORE = "store"
    CACHE = "cache"
    FALLBACK = "fallback"
