"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import SensorType


class SensorStatus(str, Enum):
    """Operational states a sensor can report."""

    active = "active"
    inactive = "inactive"
    maintenance = "maintenance"


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SensorCreate(_ApiModel):
    """Payload for registering a new sensor."""

    name: str = Field(..., min_length=1)
    type: SensorType
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    description: Optional[str] = None
    status: SensorStatus = SensorStatus.active


class SensorRecord(SensorCreate):
    """Stored sensor including its generated identifier."""

    id: str
    created_at: datetime = Field(alias="createdAt")


class ReadingCreate(_ApiModel):
    """Payload for recording one sensor observation."""

    sensor_id: str = Field(..., alias="sensorId", min_length=1)
    value: float = Field(..., allow_inf_nan=False)
    timestamp: datetime
    unit: str = "unit"


class ReadingRecord(ReadingCreate):
    """Stored reading including its generated identifier."""

    id: str


class SensorWithLatestReading(SensorRecord):
    latest_reading: Optional[ReadingRecord] = Field(default=None, alias="latestReading")


class ReadingWithSensor(ReadingRecord):
    """Reading returned together with the sensor that produced it."""

    sensor: Optional[SensorRecord] = None
