from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Collection, Dict, List, Optional, Type
from uuid import uuid4

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.schemas import (
    ReadingCreate,
    ReadingRecord,
    SensorCreate,
    SensorRecord,
    SensorWithLatestReading,
)
from models.records import Reading, SensorType
from settings import get_settings

logger = logging.getLogger(__name__)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class SensorStore:
    """Thread-safe sensor and reading store, optionally mirrored to a JSON file."""

    def __init__(
        self,
        name: str,
        persistence_path: Optional[Path] = None,
        max_limit: int = 500,
    ) -> None:
        self.name = name
        self.persistence_path = persistence_path
        self.max_limit = max_limit
        self._sensors: Dict[str, SensorRecord] = {}
        self._readings: Dict[str, ReadingRecord] = {}
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def add_sensor(self, payload: SensorCreate) -> SensorRecord:
        record = SensorRecord(
            **payload.model_dump(),
            id=str(uuid4()),
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._sensors[record.id] = record
            self._persist()
        logger.info(
            "Registered sensor",
            extra={"sensor_id": record.id, "sensor_type": record.type.value},
        )
        return record.model_copy(deep=True)

    def get_sensor(self, sensor_id: str) -> Optional[SensorRecord]:
        with self._lock:
            sensor = self._sensors.get(sensor_id)
            return sensor.model_copy(deep=True) if sensor is not None else None

    def list_sensors(
        self, types: Optional[Collection[SensorType]] = None
    ) -> List[SensorWithLatestReading]:
        """Return sensors ordered by name, each with its most recent reading."""

        with self._lock:
            latest: Dict[str, ReadingRecord] = {}
            for reading in self._readings.values():
                current = latest.get(reading.sensor_id)
                if current is None or reading.timestamp > current.timestamp:
                    latest[reading.sensor_id] = reading

            sensors = [
                SensorWithLatestReading(
                    **sensor.model_dump(),
                    latest_reading=(
                        latest[sensor.id].model_copy(deep=True) if sensor.id in latest else None
                    ),
                )
                for sensor in self._sensors.values()
                if not types or sensor.type in types
            ]
        return sorted(sensors, key=lambda sensor: sensor.name)

    def add_reading(self, payload: ReadingCreate) -> ReadingRecord:
        with self._lock:
            if payload.sensor_id not in self._sensors:
                raise KeyError(f"Sensor {payload.sensor_id!r} not found.")
            record = ReadingRecord(
                **payload.model_dump(exclude={"timestamp"}),
                timestamp=_as_utc(payload.timestamp),
                id=str(uuid4()),
            )
            self._readings[record.id] = record
            self._persist()
        return record.model_copy(deep=True)

    def list_readings(
        self,
        sensor_ids: Optional[Collection[str]] = None,
        limit: int = 100,
    ) -> List[ReadingRecord]:
        """Return the newest readings first, capped at ``max_limit`` entries."""

        take = max(0, min(limit, self.max_limit))
        with self._lock:
            matching = [
                reading
                for reading in self._readings.values()
                if not sensor_ids or reading.sensor_id in sensor_ids
            ]
        matching.sort(key=lambda reading: reading.timestamp, reverse=True)
        return [reading.model_copy(deep=True) for reading in matching[:take]]

    def fetch_readings(
        self,
        start: datetime,
        types: Optional[Collection[SensorType]] = None,
    ) -> List[Reading]:
        """Readings at or after ``start`` annotated with sensor type, oldest first."""

        start = _as_utc(start)
        with self._lock:
            sensor_types = {sensor_id: sensor.type for sensor_id, sensor in self._sensors.items()}
            readings = [
                Reading(
                    sensor_id=record.sensor_id,
                    sensor_type=sensor_types[record.sensor_id],
                    value=record.value,
                    timestamp=record.timestamp,
                )
                for record in self._readings.values()
                if record.timestamp >= start
                and record.sensor_id in sensor_types
                and (not types or sensor_types[record.sensor_id] in types)
            ]
        readings.sort(key=lambda reading: reading.timestamp)
        return readings

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            "sensors": {
                sensor_id: sensor.model_dump(mode="json", by_alias=True)
                for sensor_id, sensor in self._sensors.items()
            },
            "readings": {
                reading_id: reading.model_dump(mode="json", by_alias=True)
                for reading_id, reading in self._readings.items()
            },
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = None

        if not isinstance(data, dict):
            logger.warning(
                "Ignoring unreadable store file %s",
                self.persistence_path,
                extra={"reason": "corrupt persistence file"},
            )
            return

        self._load_section(data.get("sensors"), SensorRecord, self._sensors)
        self._load_section(data.get("readings"), ReadingRecord, self._readings)

    def _load_section(
        self,
        section: object,
        model: Type[BaseModel],
        target: Dict[str, Any],
    ) -> None:
        if section is None:
            return
        if not isinstance(section, dict):
            logger.warning(
                "Ignoring malformed %s section in %s",
                model.__name__,
                self.persistence_path,
                extra={"reason": "section is not an object"},
            )
            return
        for key, payload in section.items():
            try:
                target[key] = model.model_validate(payload)
            except PydanticValidationError as exc:
                logger.warning(
                    "Skipping invalid %s %s",
                    model.__name__,
                    key,
                    extra={"reason": f"{exc.error_count()} validation error(s)"},
                )


@lru_cache
def build_default_store(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> SensorStore:
    settings = get_settings()
    store_name = settings.store_name if name is None else name
    store_path = settings.store_persistence_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return SensorStore(
        name=store_name,
        persistence_path=persistence,
        max_limit=settings.readings_max_limit,
    )
