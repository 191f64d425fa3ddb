"""Bucketing of sensor readings into 15 minute averaged time series rows."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from numbers import Real
from typing import Any, Dict, Iterable, List, Union

from models.records import Reading, SensorType

logger = logging.getLogger(__name__)

BUCKET_MINUTES = 15

TimeSeriesRow = Dict[str, Union[str, float]]


class ValidationError(ValueError):
    """Raised when a reading cannot be aggregated.

    ``record_index`` is the position of the offending reading in the input.
    """

    def __init__(self, record_index: int, reason: str, sensor_id: str | None = None) -> None:
        self.record_index = record_index
        self.reason = reason
        self.sensor_id = sensor_id
        location = f"reading #{record_index}"
        if sensor_id:
            location += f" (sensor {sensor_id!r})"
        super().__init__(f"Invalid {location}: {reason}")


def parse_timestamp(value: Any) -> datetime:
    """Normalize a datetime or ISO-8601 string to an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            raise ValueError("Timestamp is empty.")
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise ValueError("Invalid timestamp format") from exc
    else:
        raise ValueError("Timestamp is missing.")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def truncate_to_bucket(timestamp: datetime) -> datetime:
    """Floor ``timestamp`` to its 15 minute bucket start in UTC."""
    moment = parse_timestamp(timestamp)
    return moment.replace(
        minute=(moment.minute // BUCKET_MINUTES) * BUCKET_MINUTES,
        second=0,
        microsecond=0,
    )


def format_bucket(bucket_time: datetime) -> str:
    # 2024-01-01T10:15:00.000Z
    return bucket_time.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class BucketAccumulator:
    """Running per sensor type sums and counts for one bucket."""

    bucket_time: datetime
    sums: Dict[SensorType, float] = field(default_factory=dict)
    counts: Dict[SensorType, int] = field(default_factory=dict)

    def add(self, sensor_type: SensorType, value: float) -> None:
        self.sums[sensor_type] = self.sums.get(sensor_type, 0.0) + value
        self.counts[sensor_type] = self.counts.get(sensor_type, 0) + 1

    def finalize(self) -> TimeSeriesRow:
        row: TimeSeriesRow = {"timestamp": format_bucket(self.bucket_time)}
        for sensor_type, total in self.sums.items():
            count = self.counts[sensor_type]
            if count > 0:
                row[sensor_type.value] = total / count
        return row


class TimeSeriesAggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, readings: Iterable[Reading]) -> List[TimeSeriesRow]:
        buckets: Dict[datetime, BucketAccumulator] = {}
        reading_count = 0

        for index, reading in enumerate(readings):
            sensor_type, value, timestamp = self._validate(index, reading)
            bucket_time = truncate_to_bucket(timestamp)
            accumulator = buckets.get(bucket_time)
            if accumulator is None:
                accumulator = buckets[bucket_time] = BucketAccumulator(bucket_time)
            accumulator.add(sensor_type, value)
            reading_count += 1

        rows = [buckets[bucket_time].finalize() for bucket_time in sorted(buckets)]
        logger.debug(
            "Aggregated readings into time buckets",
            extra={"reading_count": reading_count, "bucket_count": len(rows)},
        )
        return rows

    @staticmethod
    def _validate(index: int, reading: Reading) -> tuple[SensorType, float, datetime]:
        sensor_id = getattr(reading, "sensor_id", None)

        raw_type = getattr(reading, "sensor_type", None)
        try:
            sensor_type = SensorType(raw_type)
        except ValueError as exc:
            raise ValidationError(
                index, f"unrecognized sensor type {raw_type!r}", sensor_id
            ) from exc

        value = getattr(reading, "value", None)
        if isinstance(value, bool) or not isinstance(value, Real):
            raise ValidationError(index, f"non-numeric value {value!r}", sensor_id)
        try:
            number = float(value)
        except OverflowError as exc:
            raise ValidationError(
                index, f"value {value!r} out of float range", sensor_id
            ) from exc
        if not math.isfinite(number):
            raise ValidationError(index, f"non-finite value {value!r}", sensor_id)

        try:
            timestamp = parse_timestamp(getattr(reading, "timestamp", None))
        except ValueError as exc:
            raise ValidationError(index, f"unparseable timestamp ({exc})", sensor_id) from exc

        return sensor_type, number, timestamp
