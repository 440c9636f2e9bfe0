"""Normalization of partially formed kingdom data.

Stored kingdoms may be missing buildings, troop kinds or effect fields (older
rows, hand-edited documents, opponents created by other clients).  Instead of
null-checks scattered through the rules, everything passes once through the
functions below and the rules layer can rely on a complete
:class:`~kingdom.domain.models.KingdomState`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from kingdom.errors import MalformedKingdomState

from .catalog import building_for_level, upgrade_rule
from .enums import BuildingKind, ResourceKind, TroopKind
from .models import (
    Army,
    Building,
    KingdomID,
    KingdomState,
    Resources,
    WarReport,
    WarReportID,
)


def normalize_kingdom(state: KingdomState) -> KingdomState:
    """Return ``state`` with every building and troop kind present.

    Missing buildings become level-1 stand-ins, missing effect fields are
    derived from the building level, and negative quantities are clamped
    to zero.
    """

    buildings = {kind: _normalize_building(kind, state.buildings.get(kind)) for kind in BuildingKind}
    return replace(
        state,
        resources=_clamp_resources(state.resources),
        buildings=buildings,
        army=normalize_army(state.army),
        last_resource_collection=as_utc(state.last_resource_collection),
    )


def normalize_army(army: Mapping[str, Any] | None) -> Army:
    """Full army mapping with non-negative integer counts."""

    if army is None:
        army = {}
    elif not isinstance(army, Mapping):
        raise MalformedKingdomState(f"army must be a mapping, got {type(army).__name__}")
    return {kind: max(0, int(army.get(kind) or 0)) for kind in TroopKind}


def as_utc(moment: datetime) -> datetime:
    """Treat naive timestamps as UTC."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def _normalize_building(kind: BuildingKind, building: Building | None) -> Building:
    if building is None or building.level < 1:
        return building_for_level(kind, 1)
    rule = upgrade_rule(kind)
    if rule.effect_field in building.effects:
        return building
    effects = {**building.effects, **rule.effect_at(building.level)}
    return replace(building, effects=effects)


def _clamp_resources(resources: Resources) -> Resources:
    return Resources.from_amounts({kind: max(0, resources.get(kind)) for kind in ResourceKind})


# --- Record conversion ----------------------------------------------------------


def kingdom_from_record(
    record: Mapping[str, Any], *, fallback_time: datetime | None = None
) -> KingdomState:
    """Decode a stored document into a normalized :class:`KingdomState`.

    Raises:
        MalformedKingdomState: if the id is missing or a section has the
            wrong shape (e.g. ``army`` is a list).
    """

    raw_id = record.get("id")
    if not raw_id:
        raise MalformedKingdomState("kingdom record has no id")

    resources_raw = _mapping_section(record, "resources")
    buildings_raw = _mapping_section(record, "buildings")

    buildings: dict[BuildingKind, Building] = {}
    for key, value in buildings_raw.items():
        try:
            kind = BuildingKind(key)
        except ValueError:
            continue
        if not isinstance(value, Mapping):
            continue
        level = int(value.get("level") or 1)
        effects = {
            name: int(amount)
            for name, amount in value.items()
            if name != "level" and isinstance(amount, int | float)
        }
        buildings[kind] = Building(kind=kind, level=level, effects=effects)

    collected_at = record.get("last_resource_collection")
    if isinstance(collected_at, str):
        collected_at = datetime.fromisoformat(collected_at)
    if not isinstance(collected_at, datetime):
        collected_at = fallback_time or datetime.now(UTC)

    state = KingdomState(
        id=KingdomID(str(raw_id)),
        kingdom_name=str(record.get("kingdom_name") or ""),
        resources=Resources.from_amounts(
            {kind: int(resources_raw.get(kind) or 0) for kind in ResourceKind}
        ),
        buildings=buildings,
        army=normalize_army(record.get("army")),
        last_resource_collection=collected_at,
        revision=int(record.get("revision") or 0),
    )
    return normalize_kingdom(state)


def kingdom_to_record(state: KingdomState) -> dict[str, Any]:
    """JSON-compatible document for a kingdom."""

    return {
        "id": str(state.id),
        "kingdom_name": state.kingdom_name,
        "resources": state.resources.as_dict(),
        "buildings": {
            str(kind): {"level": building.level, **building.effects}
            for kind, building in state.buildings.items()
        },
        "army": army_to_record(state.army),
        "last_resource_collection": as_utc(state.last_resource_collection).isoformat(),
        "revision": state.revision,
    }


def army_to_record(army: Army) -> dict[str, int]:
    return {str(kind): int(count) for kind, count in army.items()}


def war_report_to_record(report: WarReport) -> dict[str, Any]:
    """JSON-compatible document for a war report."""

    return {
        "id": str(report.id),
        "attacker_id": str(report.attacker_id),
        "defender_id": str(report.defender_id),
        "attacker_name": report.attacker_name,
        "defender_name": report.defender_name,
        "victory": report.victory,
        "attack_power": report.attack_power,
        "defense_power": report.defense_power,
        "ratio": report.ratio,
        "random_factor": report.random_factor,
        "adjusted_ratio": report.adjusted_ratio,
        "attacker_army": army_to_record(report.attacker_army),
        "defender_army": army_to_record(report.defender_army),
        "attacker_losses": army_to_record(report.attacker_losses),
        "defender_losses": army_to_record(report.defender_losses),
        "resources_stolen": report.resources_stolen.as_dict(),
        "created_at": as_utc(report.created_at).isoformat(),
        "used_fallback_opponent": report.used_fallback_opponent,
    }


def war_report_from_record(record: Mapping[str, Any]) -> WarReport:
    """Decode a stored war report document."""

    created_at = record["created_at"]
    if isinstance(created_at, str):
        created_at = datetime.fromisoformat(created_at)
    stolen = _mapping_section(record, "resources_stolen")
    return WarReport(
        id=WarReportID(str(record["id"])),
        attacker_id=KingdomID(str(record["attacker_id"])),
        defender_id=KingdomID(str(record["defender_id"])),
        attacker_name=str(record.get("attacker_name") or ""),
        defender_name=str(record.get("defender_name") or ""),
        victory=bool(record["victory"]),
        attack_power=float(record["attack_power"]),
        defense_power=float(record["defense_power"]),
        ratio=float(record.get("ratio") or 0.0),
        random_factor=float(record.get("random_factor") or 1.0),
        adjusted_ratio=float(record.get("adjusted_ratio") or 0.0),
        attacker_army=normalize_army(record.get("attacker_army")),
        defender_army=normalize_army(record.get("defender_army")),
        attacker_losses=normalize_army(record.get("attacker_losses")),
        defender_losses=normalize_army(record.get("defender_losses")),
        resources_stolen=Resources.from_amounts(
            {kind: int(stolen.get(kind) or 0) for kind in ResourceKind}
        ),
        created_at=as_utc(created_at),
        used_fallback_opponent=bool(record.get("used_fallback_opponent", False)),
    )


def _mapping_section(record: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = record.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise MalformedKingdomState(f"{key} must be a mapping, got {type(value).__name__}")
    return value
