"""
Conversion between in-memory entities and the persisted document.

The document is a single JSON object holding one ordered list per
collection::

    {"organizations": [...], "sites": [...], "measuringPoints": [...],
     "boards": [...], "sensors": [...]}

Entities are written with camelCase keys and ISO-8601 timestamps, which is
also the wire format of the HTTP API. Parent/child links are the
``...Id`` string references only; child arrays are never written, and any
found in an older file are dropped on load.
"""
from __future__ import annotations
import dataclasses
from functools import lru_cache
from typing import Any, Iterable, Mapping, Optional

from pydantic import TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel, to_snake

from ..domain.hierarchy import LEVELS
from ..domain.interfaces import StorageError
from ..domain.models import Entity, Kind

Snapshot = dict[Kind, dict[str, Entity]]


def empty_snapshot() -> Snapshot:
    return {kind: {} for kind in Kind}


@lru_cache(maxsize=None)
def _adapter(kind: Kind) -> TypeAdapter:
    return TypeAdapter(LEVELS[kind].entity)


def encode_entity(entity: Entity) -> dict[str, Any]:
    kind = kind_of(entity)
    raw = _adapter(kind).dump_python(entity, mode="json")
    return {to_camel(key): value for key, value in raw.items()}


def decode_entity(kind: Kind, raw: Mapping[str, Any]) -> Entity:
    known = LEVELS[kind].field_names
    values = {}
    for key, value in raw.items():
        name = to_snake(key)
        if name in known:
            values[name] = value
    try:
        return _adapter(kind).validate_python(values)
    except ValidationError as e:
        raise StorageError(
            f"Invalid {LEVELS[kind].label.lower()} record {raw.get('id')!r}: {e}"
        ) from e


def check_entity(entity: Entity) -> Optional[str]:
    """Reason the loader would refuse this entity, or None if it would read it back."""
    try:
        _adapter(kind_of(entity)).validate_python(dataclasses.asdict(entity))
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(to_camel(str(part)) for part in err["loc"])
        return f"{field}: {err['msg']}" if field else err["msg"]
    return None


def encode_document(snapshot: Snapshot) -> dict[str, list[dict[str, Any]]]:
    return {
        kind.value: [encode_entity(e) for e in snapshot[kind].values()]
        for kind in Kind
    }


def decode_document(document: Mapping[str, Any]) -> Snapshot:
    if not isinstance(document, Mapping):
        raise StorageError("Database document must be a JSON object")
    snapshot = empty_snapshot()
    for kind in Kind:
        records = document.get(kind.value) or []
        if not isinstance(records, list):
            raise StorageError(f"Collection {kind.value!r} must be a list")
        for raw in records:
            if not isinstance(raw, Mapping):
                raise StorageError(f"Collection {kind.value!r} holds a non-object record")
            entity = decode_entity(kind, raw)
            snapshot[kind][entity.id] = entity
    return snapshot


def kind_of(entity: Entity) -> Kind:
    for kind, lvl in LEVELS.items():
        if type(entity) is lvl.entity:
            return kind
    raise TypeError(f"Not a hierarchy entity: {type(entity).__name__}")


def encode_many(entities: Iterable[Entity]) -> list[dict[str, Any]]:
    return [encode_entity(e) for e in entities]
