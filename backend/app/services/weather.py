"""
Open-Meteo weather lookups: current conditions (forecast API) and conditions at a
past timestamp (archive API). No API key. Best-effort: every failure returns None.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from app.config import settings
from app.schemas.readiness import WeatherSnapshot
from app.services.http_client import get_http_client

logger = logging.getLogger(__name__)


class WeatherProvider(Protocol):
    async def current_conditions(self, lat: float, lon: float) -> WeatherSnapshot | None: ...

    async def historical_conditions(self, lat: float, lon: float, timestamp: datetime) -> WeatherSnapshot | None: ...


def describe_weather_code(code: int | None) -> str:
    """WMO weather interpretation code to a short description."""
    if code is None:
        return "Unknown"
    if code == 0:
        return "Clear sky"
    if code == 1:
        return "Mainly clear"
    if code == 2:
        return "Partly cloudy"
    if code == 3:
        return "Overcast"
    if code in (45, 48):
        return "Foggy"
    if 51 <= code <= 55:
        return "Drizzle"
    if 56 <= code <= 57:
        return "Freezing drizzle"
    if 61 <= code <= 65:
        return "Rain"
    if 66 <= code <= 67:
        return "Freezing rain"
    if 71 <= code <= 77:
        return "Snow"
    if 80 <= code <= 82:
        return "Rain showers"
    if 85 <= code <= 86:
        return "Snow showers"
    if code == 95:
        return "Thunderstorm"
    if 96 <= code <= 99:
        return "Thunderstorm with hail"
    return "Unknown"


def _as_float(v: Any) -> float | None:
    try:
        return float(v) if v is not None else None
    except (TypeError, ValueError):
        return None


def _as_int(v: Any) -> int | None:
    f = _as_float(v)
    return int(f) if f is not None else None


def _parse_current(data: dict) -> WeatherSnapshot | None:
    current = data.get("current")
    if not isinstance(current, dict):
        return None
    return WeatherSnapshot(
        condition=describe_weather_code(_as_int(current.get("weather_code"))),
        temperature_c=_as_float(current.get("temperature_2m")),
        wind_speed_kmh=_as_float(current.get("wind_speed_10m")),
    )


def _parse_hourly(data: dict, timestamp: datetime) -> WeatherSnapshot | None:
    hourly = data.get("hourly")
    if not isinstance(hourly, dict):
        return None
    times = hourly.get("time")
    if not isinstance(times, list) or not times:
        return None
    ts_utc = timestamp.astimezone(timezone.utc) if timestamp.tzinfo else timestamp.replace(tzinfo=timezone.utc)
    idx = min(ts_utc.hour, len(times) - 1)

    def _at(name: str) -> Any:
        arr = hourly.get(name)
        if not isinstance(arr, list) or idx >= len(arr):
            return None
        return arr[idx]

    temp = _as_float(_at("temperature_2m"))
    code = _as_int(_at("weather_code"))
    if temp is None and code is None:
        # Archive lags a few days; recent hours come back as nulls
        return None
    return WeatherSnapshot(
        condition=describe_weather_code(code),
        temperature_c=temp,
        wind_speed_kmh=_as_float(_at("wind_speed_10m")),
    )


class OpenMeteoWeatherProvider:
    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        forecast_url: str | None = None,
        archive_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self.forecast_url = forecast_url or settings.weather_forecast_url
        self.archive_url = archive_url or settings.weather_archive_url
        self.timeout = float(timeout or settings.weather_timeout_seconds)

    def _http(self) -> httpx.AsyncClient:
        return self._client if self._client is not None else get_http_client()

    async def _get_json(self, url: str, params: dict) -> dict | None:
        try:
            r = await self._http().get(url, params=params, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Weather request %s failed: %s", url, e)
            return None
        return data if isinstance(data, dict) else None

    async def current_conditions(self, lat: float, lon: float) -> WeatherSnapshot | None:
        data = await self._get_json(
            self.forecast_url,
            {
                "latitude": lat,
                "longitude": lon,
                "current": "temperature_2m,weather_code,wind_speed_10m",
                "wind_speed_unit": "kmh",
            },
        )
        return _parse_current(data) if data else None

    async def historical_conditions(self, lat: float, lon: float, timestamp: datetime) -> WeatherSnapshot | None:
        day = timestamp.astimezone(timezone.utc).date() if timestamp.tzinfo else timestamp.date()
        data = await self._get_json(
            self.archive_url,
            {
                "latitude": lat,
                "longitude": lon,
                "start_date": day.isoformat(),
                "end_date": day.isoformat(),
                "hourly": "temperature_2m,weather_code,wind_speed_10m",
                "wind_speed_unit": "kmh",
                "timezone": "UTC",
            },
        )
        return _parse_hourly(data, timestamp) if data else None
