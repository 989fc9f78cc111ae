from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional

from ..domain.models import SensorType


class WireModel(BaseModel):
    # camelCase on the wire, snake_case inside; unknown keys (id, createdAt, ...) are ignored
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def changes(self) -> dict:
        """Only the fields the client actually sent, by attribute name."""
        return self.model_dump(exclude_unset=True)


# --- create ---

class OrganizationCreate(WireModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class SiteCreate(WireModel):
    name: str = Field(min_length=1)
    organization_id: str = Field(min_length=1)
    location: str = Field(min_length=1)


class MeasuringPointCreate(WireModel):
    name: str = Field(min_length=1)
    site_id: str = Field(min_length=1)
    description: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class BoardCreate(WireModel):
    name: str = Field(min_length=1)
    measuring_point_id: str = Field(min_length=1)
    serial_number: str = Field(min_length=1)
    firmware_version: str = Field(min_length=1)


class SensorCreate(WireModel):
    name: str = Field(min_length=1)
    board_id: str = Field(min_length=1)
    type: SensorType
    unit: str = Field(min_length=1)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    current_value: Optional[float] = None
    is_active: bool = True


# --- update (partial, merge) ---

class OrganizationUpdate(WireModel):
    name: Optional[str] = None
    description: Optional[str] = None


class SiteUpdate(WireModel):
    name: Optional[str] = None
    organization_id: Optional[str] = None
    location: Optional[str] = None


class MeasuringPointUpdate(WireModel):
    name: Optional[str] = None
    site_id: Optional[str] = None
    description: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class BoardUpdate(WireModel):
    name: Optional[str] = None
    measuring_point_id: Optional[str] = None
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None


class SensorUpdate(WireModel):
    name: Optional[str] = None
    board_id: Optional[str] = None
    type: Optional[SensorType] = None
    unit: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    current_value: Optional[float] = None
    is_active: Optional[bool] = None


class ReadingUpdateRequest(WireModel):
    current_value: float
