"""HTTP routes for the kingdom API."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from kingdom.api.runtime import ApiState
from kingdom.domain import catalog
from kingdom.domain.battle import AttackPreview
from kingdom.domain.enums import BuildingKind, TroopKind
from kingdom.domain.models import KingdomID, KingdomState, WarReport
from kingdom.domain.normalize import kingdom_to_record, war_report_to_record
from kingdom.domain.power import army_power, defense_power
from kingdom.errors import (
    InsufficientResources,
    KingdomNotFound,
    MalformedKingdomState,
    RevisionConflict,
    StoreTimeout,
    StoreUnavailable,
)
from kingdom.services import AttackOutcome

# Handlers that touch the store are plain ``def``; FastAPI runs them in its threadpool.
router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> KingdomID:
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="missing X-User-Id header"
        )
    return KingdomID(x_user_id)


ApiStateDep = Annotated[ApiState, Depends(get_state)]
UserDep = Annotated[KingdomID, Depends(get_user_id)]


class BuildingView(BaseModel):
    level: int
    effects: dict[str, int]
    upgrade_cost: int


class KingdomView(BaseModel):
    id: str
    kingdom_name: str
    resources: dict[str, int]
    buildings: dict[str, BuildingView]
    army: dict[str, int]
    attack_power: float
    defense_power: float
    last_resource_collection: datetime
    seconds_until_collection: float
    revision: int


class CreateKingdomRequest(BaseModel):
    kingdom_name: str | None = Field(default=None, min_length=1, max_length=100)
    username: str | None = Field(default=None, min_length=1, max_length=100)


class CollectResponse(BaseModel):
    gold_gained: int
    food_gained: int
    kingdom: KingdomView


class TrainRequest(BaseModel):
    troop_type: TroopKind
    count: int = Field(ge=1)


class UpgradeRequest(BaseModel):
    building_type: BuildingKind


class WarReportView(BaseModel):
    id: str
    attacker_id: str
    defender_id: str
    attacker_name: str
    defender_name: str
    victory: bool
    attack_power: float
    defense_power: float
    ratio: float
    random_factor: float
    adjusted_ratio: float
    attacker_army: dict[str, int]
    defender_army: dict[str, int]
    attacker_losses: dict[str, int]
    defender_losses: dict[str, int]
    resources_stolen: dict[str, int]
    created_at: datetime
    used_fallback_opponent: bool


class AttackPreviewView(BaseModel):
    attack_power: float
    defense_power: float
    ratio: float
    success_chance: str
    victory_possible: bool
    victory_guaranteed: bool
    steal_percent_min: float
    steal_percent_max: float


class AttackResponse(BaseModel):
    status: str
    victory: bool
    used_fallback_opponent: bool
    opponent_source: str
    defender_persisted: bool
    report_persisted: bool
    report: WarReportView
    kingdom: KingdomView


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, KingdomNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, RevisionConflict):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, InsufficientResources):
        return HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(exc))
    if isinstance(exc, (StoreUnavailable, StoreTimeout)):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="kingdom store unavailable"
        )
    if isinstance(exc, MalformedKingdomState):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="stored kingdom is corrupt"
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


_HANDLED_ERRORS = (
    KingdomNotFound,
    RevisionConflict,
    InsufficientResources,
    StoreUnavailable,
    StoreTimeout,
    ValueError,
)


def _kingdom_view(state: ApiState, kingdom: KingdomState) -> KingdomView:
    record = kingdom_to_record(kingdom)
    return KingdomView(
        id=record["id"],
        kingdom_name=kingdom.kingdom_name,
        resources=record["resources"],
        buildings={
            str(kind): BuildingView(
                level=building.level,
                effects=dict(building.effects),
                upgrade_cost=catalog.upgrade_cost(kind, building.level),
            )
            for kind, building in kingdom.buildings.items()
        },
        army=record["army"],
        attack_power=army_power(kingdom.army),
        defense_power=defense_power(kingdom.army, kingdom.building(BuildingKind.CASTLE)),
        last_resource_collection=kingdom.last_resource_collection,
        seconds_until_collection=state.kingdoms.seconds_until_collection(kingdom),
        revision=kingdom.revision,
    )


def _report_view(report: WarReport) -> WarReportView:
    return WarReportView.model_validate(war_report_to_record(report))


def _preview_view(preview: AttackPreview) -> AttackPreviewView:
    return AttackPreviewView(
        attack_power=preview.attack_power,
        defense_power=preview.defense_power,
        ratio=preview.ratio,
        success_chance=str(preview.success_chance),
        victory_possible=preview.victory_possible,
        victory_guaranteed=preview.victory_guaranteed,
        steal_percent_min=preview.steal_percent_min,
        steal_percent_max=preview.steal_percent_max,
    )


def _attack_view(state: ApiState, outcome: AttackOutcome) -> AttackResponse:
    return AttackResponse(
        status=str(outcome.status),
        victory=outcome.battle.victory,
        used_fallback_opponent=outcome.used_fallback_opponent,
        opponent_source=str(outcome.opponent_source),
        defender_persisted=outcome.defender_persisted,
        report_persisted=outcome.report_persisted,
        report=_report_view(outcome.report),
        kingdom=_kingdom_view(state, outcome.attacker),
    )


@router.get("/health")
def health(state: ApiStateDep) -> dict[str, object]:
    healthy = state.store_healthy()
    return {
        "status": "ok" if healthy else "degraded",
        "store_backend": state.settings.store_backend,
        "store_healthy": healthy,
    }


@router.get("/rules")
async def get_rules() -> dict[str, object]:
    return {
        "troops": {
            str(spec.kind): {
                "power": spec.power_per_unit,
                "gold": spec.gold_cost,
                "food": spec.food_cost,
            }
            for spec in catalog.TROOP_SPECS.values()
        },
        "buildings": {
            str(rule.kind): {
                "base_cost": rule.base_cost,
                "cost_growth_factor": rule.cost_growth_factor,
                "effect": rule.effect_field,
                "effect_per_level": rule.effect_per_level,
            }
            for rule in catalog.BUILDING_RULES.values()
        },
    }


@router.post("/kingdom", response_model=KingdomView, status_code=status.HTTP_201_CREATED)
def create_kingdom(
    request: CreateKingdomRequest, user_id: UserDep, state: ApiStateDep
) -> KingdomView:
    try:
        kingdom = state.kingdoms.create_kingdom(
            user_id, kingdom_name=request.kingdom_name, username=request.username
        )
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return _kingdom_view(state, kingdom)


@router.get("/kingdom", response_model=KingdomView)
def get_kingdom(user_id: UserDep, state: ApiStateDep) -> KingdomView:
    try:
        kingdom = state.kingdoms.get_kingdom(user_id)
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return _kingdom_view(state, kingdom)


@router.post("/kingdom/collect", response_model=CollectResponse)
def collect_resources(user_id: UserDep, state: ApiStateDep) -> CollectResponse:
    try:
        result = state.kingdoms.collect_resources(user_id)
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return CollectResponse(
        gold_gained=result.gold_gained,
        food_gained=result.food_gained,
        kingdom=_kingdom_view(state, result.kingdom),
    )


@router.post("/kingdom/train", response_model=KingdomView)
def train_troops(request: TrainRequest, user_id: UserDep, state: ApiStateDep) -> KingdomView:
    try:
        kingdom = state.kingdoms.train_troops(user_id, request.troop_type, request.count)
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return _kingdom_view(state, kingdom)


@router.post("/kingdom/upgrade", response_model=KingdomView)
def upgrade_building(
    request: UpgradeRequest, user_id: UserDep, state: ApiStateDep
) -> KingdomView:
    try:
        kingdom = state.kingdoms.upgrade_building(user_id, request.building_type)
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return _kingdom_view(state, kingdom)


@router.get("/kingdom/war-reports", response_model=list[WarReportView])
def list_war_reports(
    user_id: UserDep,
    state: ApiStateDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[WarReportView]:
    try:
        reports = state.kingdoms.list_war_reports(user_id, limit=limit)
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return [_report_view(report) for report in reports]


@router.get("/attacks/{defender_id}/preview", response_model=AttackPreviewView)
def preview_attack(defender_id: str, user_id: UserDep, state: ApiStateDep) -> AttackPreviewView:
    try:
        preview = state.attacks.preview(user_id, KingdomID(defender_id))
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return _preview_view(preview)


@router.post("/attacks/{defender_id}", response_model=AttackResponse)
def attack(defender_id: str, user_id: UserDep, state: ApiStateDep) -> AttackResponse:
    try:
        outcome = state.attacks.attack(user_id, KingdomID(defender_id))
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return _attack_view(state, outcome)
