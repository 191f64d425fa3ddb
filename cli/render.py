from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

from models.records import SensorType


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def render_timeseries(rows: List[Dict[str, Any]]) -> None:
    echo_heading("Time Series (15 minute buckets)")
    if not rows:
        typer.echo("No data available for the selected range.")
        return
    for row in rows:
        values = [
            f"{sensor_type.value}={row[sensor_type.value]:.2f}"
            for sensor_type in SensorType
            if sensor_type.value in row
        ]
        typer.echo(f"{row.get('timestamp')}  {' '.join(values)}")


def render_sensors(sensors: Iterable[Dict[str, Any]]) -> None:
    echo_heading("Sensors")
    empty = True
    for sensor in sensors:
        empty = False
        latest = sensor.get("latestReading") or {}
        reading = (
            f"{latest.get('value')} {latest.get('unit')} at {latest.get('timestamp')}"
            if latest
            else "no readings"
        )
        typer.echo(
            f"  - {sensor.get('name')} [{sensor.get('type')}, {sensor.get('status')}]: {reading}"
        )
    if empty:
        typer.echo("No sensors registered.")


def render_readings(readings: Iterable[Dict[str, Any]]) -> None:
    echo_heading("Readings")
    empty = True
    for reading in readings:
        empty = False
        typer.echo(
            f"  - {reading.get('timestamp')} {reading.get('sensorId')}: "
            f"{reading.get('value')} {reading.get('unit')}"
        )
    if empty:
        typer.echo("No readings recorded.")
