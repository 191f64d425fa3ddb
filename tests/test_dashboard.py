from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.schemas import ReadingCreate, SensorCreate
from datastore.sensor_store import SensorStore
from models.records import SensorType
from services.aggregator import TimeSeriesAggregator, ValidationError
from services.dashboard import DashboardService, parse_sensor_types

NOW = datetime(2024, 5, 10, 18, 0, tzinfo=timezone.utc)


@pytest.fixture()
def service() -> DashboardService:
    store = SensorStore(name="test")
    return DashboardService(store=store, aggregator=TimeSeriesAggregator(), default_limit=2)


def _seed(service: DashboardService, sensor_type: SensorType, readings: list[tuple[timedelta, float]]) -> str:
    sensor = service.create_sensor(
        SensorCreate(name=f"{sensor_type.value} 1", type=sensor_type, latitude=0, longitude=0)
    )
    for offset, value in readings:
        service.create_reading(
            ReadingCreate(sensor_id=sensor.id, value=value, timestamp=NOW - offset)
        )
    return sensor.id


def test_timeseries_limits_to_time_range(service: DashboardService) -> None:
    _seed(
        service,
        SensorType.TRAFFIC,
        [
            (timedelta(minutes=10), 10.0),
            (timedelta(minutes=5), 20.0),
            (timedelta(days=3), 500.0),
        ],
    )

    day = service.timeseries(time_range="24h", now=NOW)
    week = service.timeseries(time_range="7d", now=NOW)

    assert day == [{"timestamp": "2024-05-10T17:45:00.000Z", "TRAFFIC": 15.0}]
    assert len(week) == 2
    assert week[0]["TRAFFIC"] == 500.0


def test_timeseries_unknown_range_behaves_like_24h(service: DashboardService) -> None:
    _seed(service, SensorType.PEDESTRIAN, [(timedelta(hours=2), 8.0), (timedelta(days=2), 1.0)])

    assert service.timeseries(time_range="bogus", now=NOW) == service.timeseries(
        time_range="24h", now=NOW
    )


def test_timeseries_restricts_to_requested_types(service: DashboardService) -> None:
    _seed(service, SensorType.TRAFFIC, [(timedelta(minutes=1), 40.0)])
    _seed(service, SensorType.ENVIRONMENTAL, [(timedelta(minutes=1), 21.5)])

    everything = service.timeseries(now=NOW)
    only_air = service.timeseries([SensorType.ENVIRONMENTAL], now=NOW)

    assert everything == [
        {"timestamp": "2024-05-10T17:45:00.000Z", "TRAFFIC": 40.0, "ENVIRONMENTAL": 21.5}
    ]
    assert only_air == [{"timestamp": "2024-05-10T17:45:00.000Z", "ENVIRONMENTAL": 21.5}]


def test_timeseries_without_data_is_empty(service: DashboardService) -> None:
    assert service.timeseries(now=NOW) == []


def test_readings_uses_default_limit(service: DashboardService) -> None:
    _seed(service, SensorType.TRAFFIC, [(timedelta(minutes=m), float(m)) for m in range(4)])

    assert [reading.value for reading in service.readings()] == [0.0, 1.0]
    assert len(service.readings(limit=4)) == 4


def test_parse_sensor_types() -> None:
    assert parse_sensor_types(None) == []
    assert parse_sensor_types("traffic, PEDESTRIAN,,") == [
        SensorType.TRAFFIC,
        SensorType.PEDESTRIAN,
    ]


def test_parse_sensor_types_rejects_unknown_names() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_sensor_types("TRAFFIC,NOISE")

    assert excinfo.value.record_index == 1
    assert "NOISE" in excinfo.value.reason


def test_readings_embed_their_sensor(service: DashboardService) -> None:
    sensor_id = _seed(service, SensorType.STREETLIGHT, [(timedelta(minutes=1), 30000.0)])

    (reading,) = service.readings()

    assert reading.sensor is not None
    assert reading.sensor.id == sensor_id
    assert reading.sensor.type is SensorType.STREETLIGHT
