"""Data formatting layer for Catch Forecast.

Provides the numeric and timestamp guards the prediction engine relies on, and
DataFormatter which converts between provider payloads and the integration's
canonical shapes:

- Inbound: weather snapshots with camelCase or snake_case keys are normalized
  into a WeatherSnapshot dict.
- Outbound: immutable prediction records are flattened into JSON-friendly
  dicts suitable for sensor attributes.

Unknown values (None, empty strings, "nan", NaN, infinities) always come back
as None rather than zero so callers can fall back to neutral defaults.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from homeassistant.util import dt as dt_util

from .data_schema import (
    BestTimeWindow,
    CatchAssessment,
    DailyOutlook,
    MarineDailySummary,
    MoonState,
    SolunarAssessment,
    TideDay,
    WeatherSnapshot,
)

_LOGGER = logging.getLogger(__name__)


def safe_float(val: Any, default: Optional[float] = None) -> Optional[float]:
    """Convert val to a finite float; return default when it is unknown."""
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, (int, float)):
        f = float(val)
    else:
        s = str(val).strip()
        if s == "" or s.lower() == "nan":
            return default
        try:
            f = float(s)
        except ValueError:
            return default
    if math.isnan(f) or math.isinf(f):
        return default
    return f


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with halves going up, as opposed to Python's banker's rounding."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def coerce_utc(value: Any) -> Optional[datetime]:
    """Coerce datetimes, dates, ISO strings and epochs into an aware UTC datetime.

    Naive values are taken as UTC. Returns None when the value can't be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return dt_util.as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        epoch = float(value)
        # ms vs s heuristic
        if epoch > 1e12:
            epoch = epoch / 1000.0
        return datetime.fromtimestamp(epoch, tz=timezone.utc)

    text = str(value).strip()
    if not text:
        return None
    parsed = dt_util.parse_datetime(text)
    if parsed is None:
        parsed_date = dt_util.parse_date(text)
        if parsed_date is None:
            _LOGGER.debug("Unparseable timestamp: %r", value)
            return None
        return datetime(parsed_date.year, parsed_date.month, parsed_date.day, tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return dt_util.as_utc(parsed)


def _iso_z(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class DataFormatter:
    """Formatter utilities producing canonical dict shapes used across the integration."""

    # -----------------
    # Weather
    # -----------------
    @staticmethod
    def format_weather_snapshot(raw_weather: Optional[Mapping[str, Any]]) -> WeatherSnapshot:
        """Convert a raw weather mapping into the canonical WeatherSnapshot shape.

        Tolerant to keys:
          temperature, temperature_2m
          humidity, relative_humidity_2m
          wind_speed, windSpeed, wind_speed_10m
          wind_direction, windDirection
          wind_gusts, windGusts
          pressure, pressure_msl
          pressure_trend, pressureTrend
          cloud_cover, cloudCover, cloudcover
          precipitation
          weather_code, weatherCode
          uv_index, uvIndex
          visibility
          sunrise, sunset
        """
        if not raw_weather or not isinstance(raw_weather, Mapping):
            return {}

        def pick(*keys: str) -> Any:
            for k in keys:
                if raw_weather.get(k) is not None:
                    return raw_weather.get(k)
            return None

        code = safe_float(pick("weather_code", "weatherCode"))
        snapshot: WeatherSnapshot = {
            "temperature": safe_float(pick("temperature", "temperature_2m")),
            "humidity": safe_float(pick("humidity", "relative_humidity_2m")),
            "wind_speed": safe_float(pick("wind_speed", "windSpeed", "wind_speed_10m")),
            "wind_direction": safe_float(pick("wind_direction", "windDirection", "wind_direction_10m")),
            "wind_gusts": safe_float(pick("wind_gusts", "windGusts", "wind_gusts_10m")),
            "pressure": safe_float(pick("pressure", "pressure_msl")),
            "pressure_trend": safe_float(pick("pressure_trend", "pressureTrend")),
            "cloud_cover": safe_float(pick("cloud_cover", "cloudCover", "cloudcover")),
            "precipitation": safe_float(pick("precipitation")),
            "weather_code": int(code) if code is not None else None,
            "uv_index": safe_float(pick("uv_index", "uvIndex")),
            "visibility": safe_float(pick("visibility")),
            "sunrise": pick("sunrise"),
            "sunset": pick("sunset"),
        }
        for key in ("pressure_history", "hourly", "daily"):
            value = raw_weather.get(key)
            if isinstance(value, list):
                snapshot[key] = value
        return snapshot

    # -----------------
    # Prediction records
    # -----------------
    @staticmethod
    def format_moon(moon: MoonState) -> Dict[str, Any]:
        return {
            "phase_index": moon.phase_index,
            "phase": moon.name,
            "illumination": moon.illumination,
            "age_days": moon.age_days,
            "score": moon.score,
        }

    @staticmethod
    def format_solunar(solunar: SolunarAssessment) -> Dict[str, Any]:
        return {
            "periods": [
                {"start": p.start, "end": p.end, "type": p.kind.value} for p in solunar.periods
            ],
            "is_in_major": solunar.is_in_major,
            "is_in_minor": solunar.is_in_minor,
            "is_near_upcoming": solunar.is_near_upcoming,
            "score": solunar.score,
        }

    @staticmethod
    def format_assessment(assessment: CatchAssessment) -> Dict[str, Any]:
        return {
            "score": assessment.overall_score,
            "rating": assessment.rating,
            "color": assessment.color,
            "color_class": assessment.color_class,
            "breakdown": dict(assessment.breakdown),
            "is_coastal": assessment.is_coastal,
            "tip": assessment.tip,
        }

    @staticmethod
    def format_best_window(window: BestTimeWindow) -> Dict[str, str]:
        return {"start": window.start, "end": window.end}

    @staticmethod
    def format_tides(tide_days: Sequence[TideDay]) -> List[Dict[str, Any]]:
        return [
            {
                "date": day.date,
                "tides": [
                    {"time": _iso_z(t.time), "height": t.height_m, "type": t.kind.value}
                    for t in day.tides
                ],
            }
            for day in tide_days
        ]

    @staticmethod
    def format_marine_summary(summary: Optional[MarineDailySummary]) -> Optional[Dict[str, Any]]:
        if summary is None:
            return None
        return {
            "date": summary.date,
            "wave_height_max": summary.wave_height_max_m,
            "wave_period_avg": summary.wave_period_avg_s,
            "wave_direction_dominant": summary.wave_direction_dominant_deg,
        }

    @staticmethod
    def format_outlook(outlook: Sequence[DailyOutlook]) -> List[Dict[str, Any]]:
        """Flatten the daily outlook for sensor attributes."""
        return [
            {
                "date": day.date,
                "score": day.assessment.overall_score,
                "rating": day.assessment.rating,
                "breakdown": dict(day.assessment.breakdown),
                "moon_phase": day.moon.name,
                "solunar_periods": DataFormatter.format_solunar(day.solunar)["periods"],
                "best_window": DataFormatter.format_best_window(day.best_window),
                "marine": DataFormatter.format_marine_summary(day.marine),
            }
            for day in outlook
        ]
