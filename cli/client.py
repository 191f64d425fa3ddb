from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the sensor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_timeseries(
        self, types: Sequence[str] = (), time_range: str = "24h"
    ) -> List[Dict[str, Any]]:
        params: Dict[str, str] = {"timeRange": time_range}
        if types:
            params["types"] = ",".join(types)
        return self._get_json("/readings/timeseries", params)

    def list_sensors(self, types: Sequence[str] = ()) -> List[Dict[str, Any]]:
        params = {"types": ",".join(types)} if types else {}
        return self._get_json("/sensors", params)

    def list_readings(
        self, sensor_ids: Sequence[str] = (), limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if sensor_ids:
            params["sensorIds"] = ",".join(sensor_ids)
        if limit is not None:
            params["limit"] = limit
        return self._get_json("/readings", params)

    def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except (ValueError, AttributeError):
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
