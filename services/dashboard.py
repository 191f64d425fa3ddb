"""Orchestration between the sensor store and the time series aggregator."""

from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from app.schemas import (
    ReadingCreate,
    ReadingRecord,
    ReadingWithSensor,
    SensorCreate,
    SensorRecord,
    SensorWithLatestReading,
)
from datastore.sensor_store import SensorStore, build_default_store
from models.records import SensorType
from services.aggregator import TimeSeriesAggregator, TimeSeriesRow, ValidationError
from services.time_range import parse_time_range, resolve_start
from settings import get_settings

logger = logging.getLogger(__name__)


def split_csv_param(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_sensor_types(raw: Optional[str]) -> List[SensorType]:
    """Parse a comma separated ``types`` query value into sensor types."""
    types: List[SensorType] = []
    for index, name in enumerate(split_csv_param(raw)):
        try:
            types.append(SensorType(name.upper()))
        except ValueError as exc:
            raise ValidationError(index, f"unrecognized sensor type {name!r}") from exc
    return types


class DashboardService:
    """Coordinates reading retrieval, aggregation and sensor bookkeeping."""

    def __init__(
        self,
        store: SensorStore,
        aggregator: TimeSeriesAggregator,
        default_limit: int = 100,
    ) -> None:
        self.store = store
        self.aggregator = aggregator
        self.default_limit = default_limit

    def timeseries(
        self,
        types: Sequence[SensorType] = (),
        time_range: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[TimeSeriesRow]:
        window = parse_time_range(time_range)
        start = resolve_start(window, now=now)
        readings = self.store.fetch_readings(start, types=types or None)
        rows = self.aggregator.aggregate(readings)
        logger.info(
            "Built time series",
            extra={
                "time_range": window.value,
                "sensor_type": ",".join(t.value for t in types) or None,
                "reading_count": len(readings),
                "bucket_count": len(rows),
            },
        )
        return rows

    def sensors(self, types: Sequence[SensorType] = ()) -> List[SensorWithLatestReading]:
        return self.store.list_sensors(types or None)

    def readings(
        self,
        sensor_ids: Sequence[str] = (),
        limit: Optional[int] = None,
    ) -> List[ReadingWithSensor]:
        """Newest readings first, each with its sensor record embedded."""
        take = self.default_limit if limit is None else limit
        records = self.store.list_readings(sensor_ids or None, limit=take)
        sensors: Dict[str, Optional[SensorRecord]] = {}
        for record in records:
            if record.sensor_id not in sensors:
                sensors[record.sensor_id] = self.store.get_sensor(record.sensor_id)
        return [
            ReadingWithSensor(**record.model_dump(), sensor=sensors[record.sensor_id])
            for record in records
        ]

    def create_sensor(self, payload: SensorCreate) -> SensorRecord:
        return self.store.add_sensor(payload)

    def create_reading(self, payload: ReadingCreate) -> ReadingRecord:
        return self.store.add_reading(payload)


@lru_cache
def build_default_service() -> DashboardService:
    """Factory that wires the service with the configured store."""
    settings = get_settings()
    return DashboardService(
        store=build_default_store(),
        aggregator=TimeSeriesAggregator(),
        default_limit=settings.readings_default_limit,
    )
