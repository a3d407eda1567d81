"""Multi-day catch outlook built from the daily weather forecast."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional

from .best_time import calculate_best_fishing_time
from .const import OUTLOOK_CLOUD_COVER, OUTLOOK_WIND_FACTOR
from .data_formatter import coerce_utc, safe_float
from .data_schema import DailyOutlook, MarineContext, SpeciesProfile, WeatherSnapshot
from .helpers.astro import get_moon_data
from .marine_data import summary_for_date, tides_for_date
from .score import calculate_catch_probability
from .solunar import get_solunar_periods

_LOGGER = logging.getLogger(__name__)


def approximate_day_weather(day: Mapping[str, Any], pressure_trend: Optional[float]) -> WeatherSnapshot:
    """Collapse a daily forecast entry into a single representative snapshot.

    Daily data has no hourly detail, so the temperature is the mean of the
    extremes, the wind a fraction of the daily maximum and cloud cover a
    neutral constant. The current pressure trend is carried over.
    """
    temp_max = safe_float(day.get("temperature_max"))
    temp_min = safe_float(day.get("temperature_min"))
    temperature = None
    if temp_max is not None and temp_min is not None:
        temperature = (temp_max + temp_min) / 2

    wind_max = safe_float(day.get("wind_speed_max"))
    return {
        "temperature": temperature,
        "pressure_trend": pressure_trend,
        "cloud_cover": OUTLOOK_CLOUD_COVER,
        "wind_speed": wind_max * OUTLOOK_WIND_FACTOR if wind_max is not None else None,
        "precipitation": safe_float(day.get("precipitation_sum")),
        "uv_index": safe_float(day.get("uv_index_max")),
        "sunrise": day.get("sunrise"),
        "sunset": day.get("sunset"),
    }


def build_daily_outlook(
    weather: WeatherSnapshot,
    latitude: float,
    longitude: float,
    marine_context: Optional[MarineContext] = None,
    species_profile: Optional[SpeciesProfile] = None,
    *,
    now: datetime,
    days: int = 7,
) -> List[DailyOutlook]:
    """Score each day of the daily forecast, up to days entries.

    Each day is assessed at now's clock time on that date, against the
    day's own solunar periods, tides and marine summary.
    """
    moment = coerce_utc(now)
    if moment is None:
        raise TypeError(f"now must be a datetime, got {type(now).__name__}")

    marine = marine_context or {"is_coastal": False}
    is_coastal = bool(marine.get("is_coastal"))
    pressure_trend = safe_float((weather or {}).get("pressure_trend"))

    outlook: List[DailyOutlook] = []
    for day in ((weather or {}).get("daily") or [])[:days]:
        day_start = coerce_utc(day.get("date"))
        if day_start is None:
            _LOGGER.debug("Skipping daily entry without a parseable date: %s", day)
            continue
        date_key = day_start.strftime("%Y-%m-%d")
        reference = day_start.replace(hour=moment.hour, minute=moment.minute)

        moon = get_moon_data(day_start)
        solunar = get_solunar_periods(day_start, latitude, longitude, reference_now=reference)

        day_tides = tides_for_date(marine.get("tides"), date_key) if is_coastal else ()
        summary = summary_for_date(marine.get("daily_summary"), date_key) if is_coastal else None

        day_marine: Optional[MarineContext] = None
        if is_coastal:
            day_marine = {
                "is_coastal": True,
                "tides": list(marine.get("tides") or []),
                "wave_height": summary.wave_height_max_m if summary else None,
            }

        assessment = calculate_catch_probability(
            approximate_day_weather(day, pressure_trend),
            moon,
            solunar,
            species_profile,
            day_marine,
            now=reference,
        )
        best_window = calculate_best_fishing_time(solunar, day.get("sunrise"), day.get("sunset"), day_tides)

        outlook.append(
            DailyOutlook(
                date=date_key,
                moon=moon,
                solunar=solunar,
                assessment=assessment,
                best_window=best_window,
                marine=summary,
            )
        )

    _LOGGER.debug("Built %d-day outlook for lat=%.4f lon=%.4f", len(outlook), latitude, longitude)
    return outlook
