from __future__ import annotations
import asyncio
import dataclasses
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..core.timeutil import advance, now_utc
from ..domain.hierarchy import Level, descendants_of, level
from ..domain.interfaces import Repository, StorageError
from ..domain.models import Entity, Kind, SensorType
from ..domain.rules import check_bounds, check_coordinates, check_reading
from ..storage.document import (
    Snapshot,
    check_entity,
    decode_document,
    empty_snapshot,
    encode_document,
    encode_entity,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreOutcome:
    status: str  # "ok" | "not_found" | "parent_missing" | "invalid" | "persist_failed"
    reason: str = ""
    entity: Optional[Entity] = None
    removed: dict[Kind, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"


_NUMERIC = frozenset({"latitude", "longitude", "min_value", "max_value", "current_value"})


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _writable(lvl: Level, fields: Mapping[str, Any]) -> dict[str, Any]:
    # id / timestamps and unknown keys are dropped silently
    allowed = lvl.writable_fields
    return {k: v for k, v in fields.items() if k in allowed}


def _normalize(kind: Kind, values: dict[str, Any]) -> Optional[str]:
    if kind is Kind.SENSOR and values.get("type") is not None:
        try:
            values["type"] = SensorType(values["type"])
        except ValueError:
            allowed = ", ".join(t.value for t in SensorType)
            return f"Invalid sensor type. Must be one of: {allowed}"
    if "is_active" in values and not isinstance(values["is_active"], bool):
        return "isActive must be a boolean"
    for name in values.keys() & _NUMERIC:
        value = values[name]
        if isinstance(value, int) and not isinstance(value, bool):
            values[name] = float(value)
    return None


def _validate(kind: Kind, entity: Entity, touched: set[str]) -> Optional[str]:
    """Range checks for the fields a write actually sets."""
    if kind is Kind.MEASURING_POINT and touched & {"latitude", "longitude"}:
        return check_coordinates(entity.latitude, entity.longitude)
    if kind is Kind.SENSOR:
        if touched & {"min_value", "max_value"}:
            reason = check_bounds(entity.min_value, entity.max_value)
            if reason:
                return reason
        if "current_value" in touched:
            return check_reading(entity.current_value, entity.min_value, entity.max_value)
    return None


class HierarchyStore:
    """
    Organization -> Site -> MeasuringPoint -> Board -> Sensor, write-through.

    Reads are served from the last committed snapshot. Every mutation runs
    under one lock, builds a new snapshot, persists it through the
    repository and only then publishes it, so a failed write leaves memory
    and disk as they were.
    """

    def __init__(self, repo: Repository) -> None:
        self._repo = repo
        self._state: Snapshot = empty_snapshot()
        self._lock = asyncio.Lock()

    async def open(self) -> None:
        await self._repo.init()
        await self.reload()

    async def reload(self) -> None:
        async with self._lock:
            raw = await self._repo.load()
            state = decode_document(raw) if raw is not None else empty_snapshot()
            self._warn_orphans(state)
            self._state = state
        logger.info("Hierarchy loaded: %s", self.counts())

    # --- reads ---

    def list_all(self, kind: Kind) -> list[Entity]:
        return list(self._state[kind].values())

    def list_by_parent(self, kind: Kind, parent_id: str) -> list[Entity]:
        lvl = level(kind)
        if lvl.parent_field is None:
            raise ValueError(f"{lvl.label} has no parent collection")
        return [
            e for e in self._state[kind].values()
            if getattr(e, lvl.parent_field) == parent_id
        ]

    def get(self, kind: Kind, entity_id: str) -> Optional[Entity]:
        return self._state[kind].get(entity_id)

    def counts(self) -> dict[str, int]:
        state = self._state
        return {kind.value: len(state[kind]) for kind in Kind}

    def subtree(self, kind: Kind, entity_id: str) -> Optional[dict[str, Any]]:
        """Entity plus nested child lists, computed from the flat collections."""
        state = self._state
        entity = state[kind].get(entity_id)
        if entity is None:
            return None
        return self._node(state, kind, entity)

    def _node(self, state: Snapshot, kind: Kind, entity: Entity) -> dict[str, Any]:
        node = encode_entity(entity)
        child = level(kind).child
        if child is not None:
            pf = level(child).parent_field
            node[child.value] = [
                self._node(state, child, c)
                for c in state[child].values()
                if getattr(c, pf) == entity.id
            ]
        return node

    # --- writes ---

    async def create(self, kind: Kind, fields: Mapping[str, Any]) -> StoreOutcome:
        lvl = level(kind)
        values = _writable(lvl, fields)
        missing = [name for name in lvl.required if _blank(values.get(name))]
        if missing:
            return self._reject(lvl, "invalid", f"{lvl.label} requires: {', '.join(missing)}")
        reason = _normalize(kind, values)
        if reason:
            return self._reject(lvl, "invalid", reason)

        now = now_utc()
        entity = lvl.entity(id=str(uuid.uuid4()), created_at=now, updated_at=now, **values)
        reason = check_entity(entity) or _validate(kind, entity, set(values))
        if reason:
            return self._reject(lvl, "invalid", reason)

        async with self._lock:
            state = self._state
            if lvl.parent is not None:
                parent_id = values[lvl.parent_field]
                if parent_id not in state[lvl.parent]:
                    return self._parent_missing(lvl, parent_id)

            new_state = dict(state)
            new_state[kind] = {**state[kind], entity.id: entity}
            failure = await self._persist(new_state)
            if failure:
                return StoreOutcome("persist_failed", failure)

        logger.info("Created %s %s", lvl.label.lower(), entity.id)
        return StoreOutcome("ok", entity=entity)

    async def update(self, kind: Kind, entity_id: str, changes: Mapping[str, Any]) -> StoreOutcome:
        async with self._lock:
            return await self._update_locked(kind, entity_id, changes)

    async def update_reading(self, sensor_id: str, value: float) -> StoreOutcome:
        """Set a sensor's current value, refusing values outside its min/max."""
        lvl = level(Kind.SENSOR)
        if value is None:
            return self._reject(lvl, "invalid", "Current value is required")
        async with self._lock:
            sensor = self._state[Kind.SENSOR].get(sensor_id)
            if sensor is None:
                return StoreOutcome("not_found", f"Sensor with ID {sensor_id} not found")
            reason = check_reading(value, sensor.min_value, sensor.max_value)
            if reason:
                return self._reject(lvl, "invalid", reason)
            return await self._update_locked(Kind.SENSOR, sensor_id, {"current_value": value})

    async def _update_locked(
        self, kind: Kind, entity_id: str, changes: Mapping[str, Any]
    ) -> StoreOutcome:
        lvl = level(kind)
        state = self._state
        current = state[kind].get(entity_id)
        if current is None:
            return StoreOutcome("not_found", f"{lvl.label} with ID {entity_id} not found")

        values = _writable(lvl, changes)
        cleared = [name for name in lvl.required if name in values and _blank(values[name])]
        if cleared:
            return self._reject(lvl, "invalid", f"{lvl.label} cannot clear: {', '.join(cleared)}")
        reason = _normalize(kind, values)
        if reason:
            return self._reject(lvl, "invalid", reason)

        updated = dataclasses.replace(current, updated_at=advance(current.updated_at), **values)
        reason = check_entity(updated) or _validate(kind, updated, set(values))
        if reason:
            return self._reject(lvl, "invalid", reason)

        if lvl.parent_field in values:
            parent_id = values[lvl.parent_field]
            if parent_id not in state[lvl.parent]:
                return self._parent_missing(lvl, parent_id)

        new_state = dict(state)
        new_state[kind] = {**state[kind], entity_id: updated}
        failure = await self._persist(new_state)
        if failure:
            return StoreOutcome("persist_failed", failure)

        logger.info("Updated %s %s (%s)", lvl.label.lower(), entity_id, ", ".join(sorted(values)) or "touch")
        return StoreOutcome("ok", entity=updated)

    async def delete(self, kind: Kind, entity_id: str) -> StoreOutcome:
        """Remove an entity and everything below it in one persisted batch."""
        lvl = level(kind)
        async with self._lock:
            state = self._state
            entity = state[kind].get(entity_id)
            if entity is None:
                return StoreOutcome("not_found", f"{lvl.label} with ID {entity_id} not found")

            doomed = self._collect(state, kind, entity_id)
            new_state = dict(state)
            for k, ids in doomed.items():
                if ids:
                    new_state[k] = {i: e for i, e in state[k].items() if i not in ids}
            failure = await self._persist(new_state)
            if failure:
                return StoreOutcome("persist_failed", failure)

        removed = {k: len(ids) for k, ids in doomed.items()}
        logger.info(
            "Deleted %s %s (cascade: %s)",
            lvl.label.lower(),
            entity_id,
            ", ".join(f"{k.value}={n}" for k, n in removed.items()),
        )
        return StoreOutcome("ok", entity=entity, removed=removed)

    # --- internals ---

    def _collect(self, state: Snapshot, kind: Kind, entity_id: str) -> dict[Kind, set[str]]:
        doomed: dict[Kind, set[str]] = {kind: {entity_id}}
        parents = {entity_id}
        for child in descendants_of(kind):
            pf = level(child).parent_field
            parents = {i for i, e in state[child].items() if getattr(e, pf) in parents}
            doomed[child] = parents
        return doomed

    async def _persist(self, new_state: Snapshot) -> Optional[str]:
        try:
            await self._repo.save(encode_document(new_state))
        except StorageError as e:
            logger.exception("Persisting hierarchy failed, change discarded")
            return str(e)
        self._state = new_state
        return None

    def _reject(self, lvl: Level, status: str, reason: str) -> StoreOutcome:
        logger.info("Rejected %s write: %s", lvl.label.lower(), reason)
        return StoreOutcome(status, reason)

    def _parent_missing(self, lvl: Level, parent_id: Any) -> StoreOutcome:
        parent = level(lvl.parent)
        return self._reject(lvl, "parent_missing", f"{parent.label} with ID {parent_id} not found")

    def _warn_orphans(self, state: Snapshot) -> None:
        for kind in Kind:
            lvl = level(kind)
            if lvl.parent is None:
                continue
            orphans = [
                e.id for e in state[kind].values()
                if getattr(e, lvl.parent_field) not in state[lvl.parent]
            ]
            if orphans:
                logger.warning("%d %s record(s) reference a missing parent", len(orphans), kind.value)
