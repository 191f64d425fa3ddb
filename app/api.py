"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    ReadingCreate,
    ReadingRecord,
    ReadingWithSensor,
    SensorCreate,
    SensorRecord,
    SensorWithLatestReading,
)
from services.aggregator import ValidationError
from services.dashboard import (
    DashboardService,
    build_default_service,
    parse_sensor_types,
    split_csv_param,
)

router = APIRouter()


def get_service() -> DashboardService:
    return build_default_service()


@router.get(
    "/sensors",
    response_model=List[SensorWithLatestReading],
    summary="List sensors with their latest reading.",
)
async def list_sensors(
    types: Optional[str] = Query(None, description="Comma separated sensor types."),
    service: DashboardService = Depends(get_service),
) -> List[SensorWithLatestReading]:
    try:
        sensor_types = parse_sensor_types(types)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.reason,
        ) from exc
    return service.sensors(sensor_types)


@router.post(
    "/sensors",
    status_code=status.HTTP_201_CREATED,
    response_model=SensorRecord,
    summary="Register a new sensor.",
)
async def create_sensor(
    payload: SensorCreate,
    service: DashboardService = Depends(get_service),
) -> SensorRecord:
    return service.create_sensor(payload)


@router.get(
    "/readings",
    response_model=List[ReadingWithSensor],
    summary="List the most recent readings, optionally for specific sensors.",
)
async def list_readings(
    sensor_ids: Optional[str] = Query(None, alias="sensorIds"),
    limit: Optional[int] = Query(None, ge=0),
    service: DashboardService = Depends(get_service),
) -> List[ReadingWithSensor]:
    return service.readings(split_csv_param(sensor_ids), limit=limit)


@router.post(
    "/readings",
    status_code=status.HTTP_201_CREATED,
    response_model=ReadingRecord,
    summary="Record a reading for an existing sensor.",
)
async def create_reading(
    payload: ReadingCreate,
    service: DashboardService = Depends(get_service),
) -> ReadingRecord:
    try:
        return service.create_reading(payload)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sensor not found",
        ) from exc


@router.get(
    "/readings/timeseries",
    response_model=List[dict[str, Union[str, float]]],
    summary="Average readings per sensor type in 15 minute buckets.",
)
async def get_timeseries(
    types: Optional[str] = Query(None, description="Comma separated sensor types."),
    time_range: Optional[str] = Query("24h", alias="timeRange"),
    service: DashboardService = Depends(get_service),
) -> List[dict[str, Union[str, float]]]:
    try:
        sensor_types = parse_sensor_types(types)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.reason,
        ) from exc
    try:
        return service.timeseries(sensor_types, time_range)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
