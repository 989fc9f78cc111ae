from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class Kind(str, Enum):
    # values double as the collection keys of the persisted document
    ORGANIZATION = "organizations"
    SITE = "sites"
    MEASURING_POINT = "measuringPoints"
    BOARD = "boards"
    SENSOR = "sensors"


class SensorType(str, Enum):
    TEMPERATURE = "TEMPERATURE"
    HUMIDITY = "HUMIDITY"
    DISSOLVED_OXYGEN = "DISSOLVED_OXYGEN"
    ORP = "ORP"


@dataclass(frozen=True)
class Organization:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None


@dataclass(frozen=True)
class Site:
    id: str
    name: str
    organization_id: str
    location: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class MeasuringPoint:
    id: str
    name: str
    site_id: str
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class Board:
    id: str
    name: str
    measuring_point_id: str
    serial_number: str
    firmware_version: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Sensor:
    id: str
    name: str
    board_id: str
    type: SensorType
    unit: str
    created_at: datetime
    updated_at: datetime
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    current_value: Optional[float] = None
    is_active: bool = True


Entity = Union[Organization, Site, MeasuringPoint, Board, Sensor]
