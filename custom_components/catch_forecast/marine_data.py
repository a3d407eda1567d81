"""Marine data parsing for Open-Meteo Marine responses.

Open-Meteo does not publish sea level for most coasts, so the hourly
wave_height series stands in as the tidal signal: its local extrema are
reported as high and low "tides". Timestamps are expected on the UTC clock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .data_formatter import coerce_utc, round_half_up, safe_float
from .data_schema import MarineContext, MarineDailySummary, TideDay, TideEvent, TideKind

_LOGGER = logging.getLogger(__name__)


def _safe_get_list_value(lst: Any, idx: int) -> Any:
    if not isinstance(lst, (list, tuple)):
        return None
    if idx < 0 or idx >= len(lst):
        return None
    return lst[idx]


def _hourly_arrays(hourly: Optional[Mapping[str, Any]], key: str) -> Tuple[List[Any], List[Any]]:
    if not isinstance(hourly, Mapping):
        return [], []
    times = hourly.get("time")
    values = hourly.get(key)
    if not isinstance(times, (list, tuple)) or not isinstance(values, (list, tuple)):
        return [], []
    return list(times), list(values)


def extract_tide_times(hourly: Optional[Mapping[str, Any]]) -> List[TideDay]:
    """Detect per-day local extrema of the hourly wave height series.

    Samples are grouped by the date prefix of their timestamp and each
    interior sample of a day is compared with its two neighbours of the same
    day. A triple containing an unknown value is skipped. Days without any
    extremum are left out.
    """
    times, heights = _hourly_arrays(hourly, "wave_height")
    if not times or not heights:
        return []

    day_groups: Dict[str, List[Tuple[str, Optional[float]]]] = {}
    for idx, stamp in enumerate(times):
        stamp = str(stamp)
        day_groups.setdefault(stamp[:10], []).append(
            (stamp, safe_float(_safe_get_list_value(heights, idx)))
        )

    tide_days: List[TideDay] = []
    for day, samples in day_groups.items():
        events: List[TideEvent] = []
        for i in range(1, len(samples) - 1):
            prev = samples[i - 1][1]
            curr = samples[i][1]
            nxt = samples[i + 1][1]
            if prev is None or curr is None or nxt is None:
                continue

            if curr > prev and curr > nxt:
                kind = TideKind.HIGH
            elif curr < prev and curr < nxt:
                kind = TideKind.LOW
            else:
                continue

            moment = coerce_utc(samples[i][0])
            if moment is None:
                _LOGGER.debug("Skipping tide candidate with unparseable time %r", samples[i][0])
                continue
            events.append(TideEvent(time=moment, height_m=round_half_up(curr, 2), kind=kind))

        if events:
            tide_days.append(TideDay(date=day, tides=tuple(events)))

    return tide_days


def parse_marine_daily(response: Optional[Mapping[str, Any]]) -> List[MarineDailySummary]:
    """Summarize a marine response per forecast day.

    Daily max height and dominant direction come straight from the daily
    arrays; the wave period is averaged over the hourly samples of that date.
    """
    if not isinstance(response, Mapping):
        return []
    daily = response.get("daily")
    if not isinstance(daily, Mapping):
        return []
    dates = daily.get("time")
    if not isinstance(dates, (list, tuple)):
        return []

    period_times, periods = _hourly_arrays(response.get("hourly"), "wave_period")
    period_buckets: Dict[str, List[float]] = {}
    for idx, stamp in enumerate(period_times):
        value = safe_float(_safe_get_list_value(periods, idx))
        if value is None:
            continue
        period_buckets.setdefault(str(stamp)[:10], []).append(value)

    summaries: List[MarineDailySummary] = []
    for idx, day in enumerate(dates):
        day = str(day)
        samples = period_buckets.get(day) or []
        avg_period = round_half_up(sum(samples) / len(samples), 1) if samples else None
        summaries.append(
            MarineDailySummary(
                date=day,
                wave_height_max_m=safe_float(_safe_get_list_value(daily.get("wave_height_max"), idx)),
                wave_period_avg_s=avg_period,
                wave_direction_dominant_deg=safe_float(
                    _safe_get_list_value(daily.get("wave_direction_dominant"), idx)
                ),
            )
        )
    return summaries


def has_wave_data(response: Optional[Mapping[str, Any]]) -> bool:
    """True when the hourly wave_height array holds at least one real value."""
    if not isinstance(response, Mapping):
        return False
    _, heights = _hourly_arrays(response.get("hourly"), "wave_height")
    return any(safe_float(h) is not None for h in heights)


def build_marine_context(response: Optional[Mapping[str, Any]]) -> MarineContext:
    """Turn a raw marine response into the context consumed by the scorer."""
    if not has_wave_data(response):
        _LOGGER.debug("No wave data in marine response; treating location as inland")
        return {"is_coastal": False}

    hourly = response["hourly"]
    return {
        "is_coastal": True,
        "hourly": hourly,
        "tides": extract_tide_times(hourly),
        "daily_summary": parse_marine_daily(response),
    }


def tides_for_date(tide_days: Optional[Sequence[TideDay]], day: str) -> Tuple[TideEvent, ...]:
    """Return the tide events of the YYYY-MM-DD day, or an empty tuple."""
    for tide_day in tide_days or ():
        if tide_day.date == day:
            return tide_day.tides
    return ()


def summary_for_date(
    summaries: Optional[Sequence[MarineDailySummary]], day: str
) -> Optional[MarineDailySummary]:
    for summary in summaries or ():
        if summary.date == day:
            return summary
    return None


def current_wave_height(hourly: Optional[Mapping[str, Any]], now: datetime) -> Optional[float]:
    """Return the hourly wave height sample of now's UTC hour, if any."""
    times, heights = _hourly_arrays(hourly, "wave_height")
    moment = coerce_utc(now)
    if moment is None:
        return None
    hour_prefix = moment.strftime("%Y-%m-%dT%H")
    for idx, stamp in enumerate(times):
        if str(stamp).startswith(hour_prefix):
            return safe_float(_safe_get_list_value(heights, idx))
    return None
