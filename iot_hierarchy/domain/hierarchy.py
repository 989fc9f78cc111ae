"""
Shape of the asset tree.

Organization -> Site -> MeasuringPoint -> Board -> Sensor. Every store
operation that needs to know "who is my parent" or "who are my children"
reads it from ``LEVELS`` instead of hard-coding it per entity.
"""
from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Optional

from .models import Board, Kind, MeasuringPoint, Organization, Sensor, Site

# assigned by the store, never taken from callers
MANAGED_FIELDS = frozenset({"id", "created_at", "updated_at"})


@dataclass(frozen=True)
class Level:
    entity: type
    label: str
    parent: Optional[Kind] = None
    parent_field: Optional[str] = None
    child: Optional[Kind] = None
    required: tuple[str, ...] = ("name",)

    @property
    def field_names(self) -> frozenset[str]:
        return frozenset(f.name for f in fields(self.entity))

    @property
    def writable_fields(self) -> frozenset[str]:
        return self.field_names - MANAGED_FIELDS


LEVELS: dict[Kind, Level] = {
    Kind.ORGANIZATION: Level(
        entity=Organization,
        label="Organization",
        child=Kind.SITE,
    ),
    Kind.SITE: Level(
        entity=Site,
        label="Site",
        parent=Kind.ORGANIZATION,
        parent_field="organization_id",
        child=Kind.MEASURING_POINT,
        required=("name", "organization_id", "location"),
    ),
    Kind.MEASURING_POINT: Level(
        entity=MeasuringPoint,
        label="Measuring point",
        parent=Kind.SITE,
        parent_field="site_id",
        child=Kind.BOARD,
        required=("name", "site_id"),
    ),
    Kind.BOARD: Level(
        entity=Board,
        label="Board",
        parent=Kind.MEASURING_POINT,
        parent_field="measuring_point_id",
        child=Kind.SENSOR,
        required=("name", "measuring_point_id", "serial_number", "firmware_version"),
    ),
    Kind.SENSOR: Level(
        entity=Sensor,
        label="Sensor",
        parent=Kind.BOARD,
        parent_field="board_id",
        required=("name", "board_id", "type", "unit"),
    ),
}


def level(kind: Kind) -> Level:
    return LEVELS[kind]


def descendants_of(kind: Kind) -> list[Kind]:
    """Kinds strictly below ``kind``, top-down."""
    out: list[Kind] = []
    child = LEVELS[kind].child
    while child is not None:
        out.append(child)
        child = LEVELS[child].child
    return out
