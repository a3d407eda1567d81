"""Open-Meteo API client for Catch Forecast.

Provides:
- OpenMeteoClient: async fetch of weather, marine data and geocoding results
  with retry and exponential backoff on network errors and 5xx responses.
- build_weather_snapshot: converts a raw forecast response into the
  WeatherSnapshot consumed by the scorer (current conditions, 3 hour pressure
  trend, hourly window and daily list).
- build_location_name: readable "Name, Region, Country" for geocoding hits.

All requests ask for timezone=UTC so every timestamp in the responses is on
the UTC clock.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import aiohttp

from .const import (
    GEOCODING_LANGUAGE,
    GEOCODING_RESULT_COUNT,
    HOURLY_WINDOW,
    MARINE_DAILY_VARS,
    MARINE_HOURLY_VARS,
    MARINE_MAX_RETRIES,
    OPEN_METEO_GEOCODING_URL,
    OPEN_METEO_MARINE_URL,
    OPEN_METEO_URL,
    REQUEST_TIMEOUT,
    RETRY_DELAYS,
    WEATHER_CURRENT_VARS,
    WEATHER_DAILY_VARS,
    WEATHER_HOURLY_VARS,
    WEATHER_MAX_RETRIES,
)
from .data_formatter import coerce_utc, round_half_up, safe_float
from .data_schema import MarineContext, WeatherSnapshot
from .marine_data import build_marine_context

_LOGGER = logging.getLogger(__name__)


class OpenMeteoError(RuntimeError):
    """Raised for non-2xx responses, malformed payloads and exhausted retries."""


class _RetryableError(Exception):
    """Transient failure worth another attempt."""


class OpenMeteoClient:
    """Async client for the Open-Meteo forecast, marine and geocoding APIs."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        retry_delays: Sequence[float] = RETRY_DELAYS,
    ) -> None:
        # If a session is supplied, we won't close it.
        self._session = session
        self._retry_delays = tuple(retry_delays)

    async def fetch_weather(
        self, latitude: float, longitude: float, now: datetime, forecast_days: int = 7
    ) -> WeatherSnapshot:
        """Fetch current conditions plus hourly/daily forecast for a location."""
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": ",".join(WEATHER_CURRENT_VARS),
            "hourly": ",".join(WEATHER_HOURLY_VARS),
            "daily": ",".join(WEATHER_DAILY_VARS),
            "timezone": "UTC",
            "forecast_days": forecast_days,
        }
        _LOGGER.debug("Fetching Open-Meteo weather: lat=%s lon=%s days=%s", latitude, longitude, forecast_days)
        raw = await self._get_json(OPEN_METEO_URL, params, WEATHER_MAX_RETRIES)
        return build_weather_snapshot(raw, now)

    async def fetch_marine(self, latitude: float, longitude: float, forecast_days: int = 7) -> MarineContext:
        """Fetch marine data; any failure downgrades the location to inland."""
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "hourly": ",".join(MARINE_HOURLY_VARS),
            "daily": ",".join(MARINE_DAILY_VARS),
            "timezone": "UTC",
            "forecast_days": forecast_days,
        }
        try:
            raw = await self._get_json(OPEN_METEO_MARINE_URL, params, MARINE_MAX_RETRIES)
        except OpenMeteoError as exc:
            _LOGGER.warning("Marine data unavailable, treating location as inland: %s", exc)
            return {"is_coastal": False}
        return build_marine_context(raw)

    async def search_location(self, query: str) -> List[Dict[str, Any]]:
        """Search places by name; queries shorter than two characters return nothing."""
        query = (query or "").strip()
        if len(query) < 2:
            return []

        params = {
            "name": query,
            "language": GEOCODING_LANGUAGE,
            "count": GEOCODING_RESULT_COUNT,
        }
        data = await self._get_json(OPEN_METEO_GEOCODING_URL, params, WEATHER_MAX_RETRIES)
        results = data.get("results") or []
        return [
            {
                "latitude": r.get("latitude"),
                "longitude": r.get("longitude"),
                "name": build_location_name(r),
                "timezone": r.get("timezone") or "UTC",
            }
            for r in results
            if isinstance(r, Mapping)
        ]

    async def fetch_conditions(
        self,
        latitude: float,
        longitude: float,
        now: datetime,
        include_marine: bool = True,
        forecast_days: int = 7,
    ) -> Tuple[WeatherSnapshot, MarineContext]:
        """Fetch weather and (optionally) marine data concurrently."""
        if not include_marine:
            weather = await self.fetch_weather(latitude, longitude, now, forecast_days)
            return weather, {"is_coastal": False}

        weather, marine = await asyncio.gather(
            self.fetch_weather(latitude, longitude, now, forecast_days),
            self.fetch_marine(latitude, longitude, forecast_days),
        )
        return weather, marine

    async def _get_json(self, url: str, params: Dict[str, Any], max_retries: int) -> Dict[str, Any]:
        """GET url and return the JSON body, retrying network errors and 5xx responses."""
        session = self._session or aiohttp.ClientSession()
        close_session = self._session is None

        _LOGGER.debug("Open-Meteo request to %s params=%s", url, params)
        try:
            attempt = 0
            while True:
                try:
                    return await self._request(session, url, params)
                except _RetryableError as exc:
                    if attempt >= max_retries:
                        raise OpenMeteoError(
                            f"Open-Meteo request to {url} failed after {attempt + 1} attempts: {exc}"
                        ) from exc
                    delay = self._retry_delays[min(attempt, len(self._retry_delays) - 1)]
                    _LOGGER.debug("Open-Meteo attempt %d failed (%s); retrying in %ss", attempt + 1, exc, delay)
                    attempt += 1
                    await asyncio.sleep(delay)
        finally:
            if close_session:
                await session.close()

    async def _request(self, session: aiohttp.ClientSession, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)
        try:
            async with session.get(url, params=params, timeout=timeout) as resp:
                if resp.status >= 500:
                    raise _RetryableError(f"server error {resp.status}")
                if resp.status != 200:
                    text = await resp.text()
                    _LOGGER.debug("Open-Meteo non-200 response: status=%s body=%s", resp.status, text[:1000])
                    raise OpenMeteoError(f"Open-Meteo returned status {resp.status}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise _RetryableError(repr(exc)) from exc

        if not isinstance(data, dict):
            raise OpenMeteoError(f"Open-Meteo returned non-object JSON: {type(data).__name__}")
        return data


# -----------------------------
# Normalization helpers
# -----------------------------


def build_location_name(result: Mapping[str, Any]) -> str:
    """Build "Name, Region, Country", skipping a region equal to the name."""
    name = result.get("name") or ""
    parts = [name]
    admin1 = result.get("admin1")
    if admin1 and admin1 != name:
        parts.append(admin1)
    country = result.get("country")
    if country:
        parts.append(country)
    return ", ".join(parts)


def _value_at(hourly: Mapping[str, Any], key: str, idx: int) -> Any:
    values = hourly.get(key)
    if not isinstance(values, list) or idx < 0 or idx >= len(values):
        return None
    return values[idx]


def find_current_index(times: Sequence[str], now: datetime, utc_offset_seconds: int = 0) -> int:
    """Index of the hourly slot containing now, else the nearest slot.

    Open-Meteo reports local wall-clock times shifted by utc_offset_seconds,
    so now is shifted the same way before comparing.
    """
    moment = coerce_utc(now)
    if moment is None:
        raise TypeError(f"now must be a datetime, got {type(now).__name__}")
    offset = timedelta(seconds=utc_offset_seconds or 0)
    hour_prefix = (moment + offset).strftime("%Y-%m-%dT%H")

    for idx, stamp in enumerate(times):
        if str(stamp).startswith(hour_prefix):
            return idx

    best_idx = 0
    best_diff: Optional[float] = None
    for idx, stamp in enumerate(times):
        parsed = coerce_utc(stamp)
        if parsed is None:
            continue
        diff = abs(((parsed - offset) - moment).total_seconds())
        if best_diff is None or diff < best_diff:
            best_diff = diff
            best_idx = idx
    return best_idx


def build_weather_snapshot(raw: Mapping[str, Any], now: datetime) -> WeatherSnapshot:
    """Convert a raw Open-Meteo forecast response into a WeatherSnapshot."""
    if not isinstance(raw, Mapping):
        raise OpenMeteoError("Empty or invalid response from weather API")
    hourly = raw.get("hourly")
    if not isinstance(hourly, Mapping) or not isinstance(hourly.get("time"), list) or not hourly["time"]:
        raise OpenMeteoError("Weather response has no hourly time series")
    current = raw.get("current") if isinstance(raw.get("current"), Mapping) else {}
    daily_raw = raw.get("daily") if isinstance(raw.get("daily"), Mapping) else {}

    times: List[str] = hourly["time"]
    idx = find_current_index(times, now, int(safe_float(raw.get("utc_offset_seconds"), 0)))

    pressure_now = safe_float(_value_at(hourly, "pressure_msl", idx))
    if pressure_now is None:
        pressure_now = safe_float(current.get("pressure_msl"))
    pressure_3h_ago = safe_float(_value_at(hourly, "pressure_msl", max(0, idx - 3)))
    if pressure_3h_ago is None:
        pressure_3h_ago = pressure_now
    pressure_trend = None
    if pressure_now is not None and pressure_3h_ago is not None:
        pressure_trend = round_half_up(pressure_now - pressure_3h_ago, 1)

    pressure_history = [
        {"time": t, "value": safe_float(_value_at(hourly, "pressure_msl", i))} for i, t in enumerate(times)
    ]

    hourly_list = [
        {
            "time": times[i],
            "temperature": safe_float(_value_at(hourly, "temperature_2m", i)),
            "precipitation": safe_float(_value_at(hourly, "precipitation", i)),
            "precipitation_probability": safe_float(_value_at(hourly, "precipitation_probability", i)),
            "cloud_cover": safe_float(_value_at(hourly, "cloud_cover", i)),
            "wind_speed": safe_float(_value_at(hourly, "wind_speed_10m", i)),
            "wind_direction": safe_float(_value_at(hourly, "wind_direction_10m", i)),
            "wind_gusts": safe_float(_value_at(hourly, "wind_gusts_10m", i)),
            "pressure": safe_float(_value_at(hourly, "pressure_msl", i)),
            "uv_index": safe_float(_value_at(hourly, "uv_index", i)),
            "visibility": safe_float(_value_at(hourly, "visibility", i)),
            "weather_code": _value_at(hourly, "weather_code", i),
        }
        for i in range(idx, min(idx + HOURLY_WINDOW, len(times)))
    ]

    daily_list = [
        {
            "date": date_str,
            "temperature_max": safe_float(_value_at(daily_raw, "temperature_2m_max", i)),
            "temperature_min": safe_float(_value_at(daily_raw, "temperature_2m_min", i)),
            "precipitation_sum": safe_float(_value_at(daily_raw, "precipitation_sum", i)),
            "wind_speed_max": safe_float(_value_at(daily_raw, "wind_speed_10m_max", i)),
            "wind_gusts_max": safe_float(_value_at(daily_raw, "wind_gusts_10m_max", i)),
            "uv_index_max": safe_float(_value_at(daily_raw, "uv_index_max", i)),
            "sunrise": _value_at(daily_raw, "sunrise", i),
            "sunset": _value_at(daily_raw, "sunset", i),
            "weather_code": _value_at(daily_raw, "weather_code", i),
        }
        for i, date_str in enumerate(daily_raw.get("time") or [])
    ]

    wind_gusts = safe_float(current.get("wind_gusts_10m"))
    if wind_gusts is None:
        wind_gusts = safe_float(_value_at(hourly, "wind_gusts_10m", idx))
    weather_code = safe_float(current.get("weather_code"))

    snapshot: WeatherSnapshot = {
        "temperature": safe_float(current.get("temperature_2m")),
        "humidity": safe_float(current.get("relative_humidity_2m")),
        "wind_speed": safe_float(current.get("wind_speed_10m")),
        "wind_direction": safe_float(current.get("wind_direction_10m")),
        "wind_gusts": wind_gusts,
        "pressure": safe_float(current.get("pressure_msl")),
        "pressure_trend": pressure_trend,
        "cloud_cover": safe_float(current.get("cloud_cover")),
        "precipitation": safe_float(current.get("precipitation")),
        "weather_code": int(weather_code) if weather_code is not None else None,
        "uv_index": safe_float(_value_at(hourly, "uv_index", idx)),
        "visibility": safe_float(_value_at(hourly, "visibility", idx)),
        "sunrise": daily_list[0]["sunrise"] if daily_list else None,
        "sunset": daily_list[0]["sunset"] if daily_list else None,
        "pressure_history": pressure_history,
        "hourly": hourly_list,
        "daily": daily_list,
    }
    _LOGGER.debug(
        "Weather snapshot at index %d (%s): pressure trend %s hPa", idx, times[idx], pressure_trend
    )
    return snapshot
