from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_readings, render_sensors, render_timeseries


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for querying the smart city sensor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _split(values: Optional[List[str]]) -> List[str]:
    parts: List[str] = []
    for value in values or []:
        parts.extend(part.strip() for part in value.split(",") if part.strip())
    return parts


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("timeseries")
def timeseries_command(
    ctx: typer.Context,
    types: Optional[List[str]] = typer.Option(
        None,
        "--type",
        "-t",
        help="Sensor type to include; repeat or comma separate for several.",
    ),
    time_range: str = typer.Option(
        "24h",
        "--range",
        "-r",
        help="Lookback window: 24h, 7d, 30d or 1y.",
    ),
) -> None:
    """Show averaged readings per 15 minute bucket."""
    state = _get_state(ctx)
    rows = state.client.get_timeseries(types=_split(types), time_range=time_range)
    render_timeseries(rows)


@app.command("sensors")
def sensors_command(
    ctx: typer.Context,
    types: Optional[List[str]] = typer.Option(None, "--type", "-t", help="Filter by sensor type."),
) -> None:
    """List sensors with their latest reading."""
    state = _get_state(ctx)
    render_sensors(state.client.list_sensors(types=_split(types)))


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    sensor_ids: Optional[List[str]] = typer.Option(
        None, "--sensor-id", "-s", help="Restrict to these sensor ids."
    ),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=0, help="Maximum readings."),
) -> None:
    """List the most recent readings."""
    state = _get_state(ctx)
    render_readings(state.client.list_readings(sensor_ids=_split(sensor_ids), limit=limit))
