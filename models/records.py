"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SensorType(str, Enum):
    """Categories of city sensors; values double as output field names."""

    STREETLIGHT = "STREETLIGHT"
    PEDESTRIAN = "PEDESTRIAN"
    TRAFFIC = "TRAFFIC"
    ENVIRONMENTAL = "ENVIRONMENTAL"


@dataclass(frozen=True, slots=True)
class Reading:
    """A single observation annotated with the type of the sensor that produced it."""

    sensor_id: str
    sensor_type: SensorType
    value: float
    timestamp: datetime
