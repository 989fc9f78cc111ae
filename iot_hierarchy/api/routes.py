from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..domain.hierarchy import level
from ..domain.models import Entity, Kind
from ..services.store import HierarchyStore, StoreOutcome
from ..storage.document import encode_entity, encode_many
from .schemas import (
    BoardCreate,
    BoardUpdate,
    MeasuringPointCreate,
    MeasuringPointUpdate,
    OrganizationCreate,
    OrganizationUpdate,
    ReadingUpdateRequest,
    SensorCreate,
    SensorUpdate,
    SiteCreate,
    SiteUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()
organizations = APIRouter(prefix="/organizations", tags=["organizations"])
sites = APIRouter(prefix="/sites", tags=["sites"])
measuring_points = APIRouter(prefix="/measuring-points", tags=["measuring-points"])
boards = APIRouter(prefix="/boards", tags=["boards"])
sensors = APIRouter(prefix="/sensors", tags=["sensors"])


# --- Dependency getter, overridden in main via app.dependency_overrides ---
def get_store() -> HierarchyStore:
    raise RuntimeError("Store dependency not configured")


_STATUS = {
    "not_found": 404,
    "parent_missing": 400,
    "invalid": 400,
    "persist_failed": 500,
}


def _unwrap(outcome: StoreOutcome) -> Entity:
    if outcome.ok:
        return outcome.entity
    if outcome.status == "persist_failed":
        detail = "Change could not be saved"
    else:
        detail = outcome.reason
    raise HTTPException(status_code=_STATUS[outcome.status], detail=detail)


def _found(kind: Kind, entity: Entity | None, entity_id: str) -> dict:
    if entity is None:
        raise HTTPException(status_code=404, detail=f"{level(kind).label} with ID {entity_id} not found")
    return encode_entity(entity)


def _tree(store: HierarchyStore, kind: Kind, entity_id: str) -> dict:
    node = store.subtree(kind, entity_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"{level(kind).label} with ID {entity_id} not found")
    return node


def _deleted(kind: Kind, outcome: StoreOutcome, entity_id: str) -> dict:
    _unwrap(outcome)
    return {
        "message": f"{level(kind).label} with ID {entity_id} successfully deleted",
        "removed": {k.value: n for k, n in outcome.removed.items()},
    }


@router.get("/stats")
async def stats(store: HierarchyStore = Depends(get_store)):
    return {"counts": store.counts()}


# --- Organizations ---
@organizations.get("")
async def list_organizations(store: HierarchyStore = Depends(get_store)):
    return encode_many(store.list_all(Kind.ORGANIZATION))


@organizations.get("/{entity_id}")
async def get_organization(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _found(Kind.ORGANIZATION, store.get(Kind.ORGANIZATION, entity_id), entity_id)


@organizations.get("/{entity_id}/tree")
async def organization_tree(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _tree(store, Kind.ORGANIZATION, entity_id)


@organizations.post("", status_code=201)
async def create_organization(req: OrganizationCreate, store: HierarchyStore = Depends(get_store)):
    return encode_entity(_unwrap(await store.create(Kind.ORGANIZATION, req.changes())))


@organizations.put("/{entity_id}")
async def update_organization(
    entity_id: str, req: OrganizationUpdate, store: HierarchyStore = Depends(get_store)
):
    return encode_entity(_unwrap(await store.update(Kind.ORGANIZATION, entity_id, req.changes())))


@organizations.delete("/{entity_id}")
async def delete_organization(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _deleted(Kind.ORGANIZATION, await store.delete(Kind.ORGANIZATION, entity_id), entity_id)


# --- Sites ---
@sites.get("")
async def list_sites(store: HierarchyStore = Depends(get_store)):
    return encode_many(store.list_all(Kind.SITE))


@sites.get("/organization/{organization_id}")
async def list_sites_by_organization(organization_id: str, store: HierarchyStore = Depends(get_store)):
    return encode_many(store.list_by_parent(Kind.SITE, organization_id))


@sites.get("/{entity_id}")
async def get_site(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _found(Kind.SITE, store.get(Kind.SITE, entity_id), entity_id)


@sites.get("/{entity_id}/tree")
async def site_tree(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _tree(store, Kind.SITE, entity_id)


@sites.post("", status_code=201)
async def create_site(req: SiteCreate, store: HierarchyStore = Depends(get_store)):
    return encode_entity(_unwrap(await store.create(Kind.SITE, req.changes())))


@sites.put("/{entity_id}")
async def update_site(entity_id: str, req: SiteUpdate, store: HierarchyStore = Depends(get_store)):
    return encode_entity(_unwrap(await store.update(Kind.SITE, entity_id, req.changes())))


@sites.delete("/{entity_id}")
async def delete_site(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _deleted(Kind.SITE, await store.delete(Kind.SITE, entity_id), entity_id)


# --- Measuring points ---
@measuring_points.get("")
async def list_measuring_points(store: HierarchyStore = Depends(get_store)):
    return encode_many(store.list_all(Kind.MEASURING_POINT))


@measuring_points.get("/site/{site_id}")
async def list_measuring_points_by_site(site_id: str, store: HierarchyStore = Depends(get_store)):
    return encode_many(store.list_by_parent(Kind.MEASURING_POINT, site_id))


@measuring_points.get("/{entity_id}")
async def get_measuring_point(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _found(Kind.MEASURING_POINT, store.get(Kind.MEASURING_POINT, entity_id), entity_id)


@measuring_points.get("/{entity_id}/tree")
async def measuring_point_tree(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _tree(store, Kind.MEASURING_POINT, entity_id)


@measuring_points.post("", status_code=201)
async def create_measuring_point(req: MeasuringPointCreate, store: HierarchyStore = Depends(get_store)):
    return encode_entity(_unwrap(await store.create(Kind.MEASURING_POINT, req.changes())))


@measuring_points.put("/{entity_id}")
async def update_measuring_point(
    entity_id: str, req: MeasuringPointUpdate, store: HierarchyStore = Depends(get_store)
):
    return encode_entity(_unwrap(await store.update(Kind.MEASURING_POINT, entity_id, req.changes())))


@measuring_points.delete("/{entity_id}")
async def delete_measuring_point(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _deleted(Kind.MEASURING_POINT, await store.delete(Kind.MEASURING_POINT, entity_id), entity_id)


# --- Boards ---
@boards.get("")
async def list_boards(store: HierarchyStore = Depends(get_store)):
    return encode_many(store.list_all(Kind.BOARD))


@boards.get("/measuring-point/{measuring_point_id}")
async def list_boards_by_measuring_point(measuring_point_id: str, store: HierarchyStore = Depends(get_store)):
    return encode_many(store.list_by_parent(Kind.BOARD, measuring_point_id))


@boards.get("/{entity_id}")
async def get_board(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _found(Kind.BOARD, store.get(Kind.BOARD, entity_id), entity_id)


@boards.get("/{entity_id}/tree")
async def board_tree(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _tree(store, Kind.BOARD, entity_id)


@boards.post("", status_code=201)
async def create_board(req: BoardCreate, store: HierarchyStore = Depends(get_store)):
    return encode_entity(_unwrap(await store.create(Kind.BOARD, req.changes())))


@boards.put("/{entity_id}")
async def update_board(entity_id: str, req: BoardUpdate, store: HierarchyStore = Depends(get_store)):
    return encode_entity(_unwrap(await store.update(Kind.BOARD, entity_id, req.changes())))


@boards.delete("/{entity_id}")
async def delete_board(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _deleted(Kind.BOARD, await store.delete(Kind.BOARD, entity_id), entity_id)


# --- Sensors ---
@sensors.get("")
async def list_sensors(store: HierarchyStore = Depends(get_store)):
    return encode_many(store.list_all(Kind.SENSOR))


@sensors.get("/board/{board_id}")
async def list_sensors_by_board(board_id: str, store: HierarchyStore = Depends(get_store)):
    return encode_many(store.list_by_parent(Kind.SENSOR, board_id))


@sensors.get("/{entity_id}")
async def get_sensor(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _found(Kind.SENSOR, store.get(Kind.SENSOR, entity_id), entity_id)


@sensors.get("/{entity_id}/tree")
async def sensor_tree(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _tree(store, Kind.SENSOR, entity_id)


@sensors.post("", status_code=201)
async def create_sensor(req: SensorCreate, store: HierarchyStore = Depends(get_store)):
    return encode_entity(_unwrap(await store.create(Kind.SENSOR, req.changes())))


@sensors.put("/{entity_id}")
async def update_sensor(entity_id: str, req: SensorUpdate, store: HierarchyStore = Depends(get_store)):
    return encode_entity(_unwrap(await store.update(Kind.SENSOR, entity_id, req.changes())))


@sensors.put("/{entity_id}/reading")
async def update_sensor_reading(
    entity_id: str, req: ReadingUpdateRequest, store: HierarchyStore = Depends(get_store)
):
    return encode_entity(_unwrap(await store.update_reading(entity_id, req.current_value)))


@sensors.delete("/{entity_id}")
async def delete_sensor(entity_id: str, store: HierarchyStore = Depends(get_store)):
    return _deleted(Kind.SENSOR, await store.delete(Kind.SENSOR, entity_id), entity_id)


for _sub in (organizations, sites, measuring_points, boards, sensors):
    router.include_router(_sub)
