"""Solunar period calculator.

Four windows of presumed peak fish activity are placed around the estimated
lunar transit of a day:

- two major periods (two hours wide) at moonrise and moonset,
- two minor periods (one hour wide) at the upper and lower transit.

Moonrise and moonset are approximated as transit -/+ 6 hours, which keeps the
windows at least 4.5 hours apart so a reference time can never sit in a major
and a minor period at once. Period clock times are on the UTC clock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple

from .const import (
    MAJOR_HALF_WIDTH_HOURS,
    MINOR_HALF_WIDTH_HOURS,
    MINUTES_PER_DAY,
    MOON_RISE_SET_OFFSET_HOURS,
    SOLUNAR_SCORE_IDLE,
    SOLUNAR_SCORE_MAJOR,
    SOLUNAR_SCORE_MINOR,
    SOLUNAR_SCORE_UPCOMING,
    UPCOMING_WINDOW_MINUTES,
)
from .data_formatter import coerce_utc, round_half_up
from .data_schema import SolunarAssessment, SolunarKind, SolunarPeriod
from .helpers.astro import Moment, estimate_moon_transit

_LOGGER = logging.getLogger(__name__)


def format_decimal_hour(decimal_hour: float) -> str:
    """Format a decimal hour as "HH:MM", wrapping into 0-24 (14.5 -> "14:30")."""
    total_minutes = round_half_up((decimal_hour % 24) * 60) % MINUTES_PER_DAY
    hours, minutes = divmod(int(total_minutes), 60)
    return f"{hours:02d}:{minutes:02d}"


def clock_to_minutes(clock: str) -> int:
    """Parse "HH:MM" into minutes since midnight."""
    hours, minutes = clock.split(":")
    return int(hours) * 60 + int(minutes)


def minute_of_day(moment: Moment) -> int:
    value = coerce_utc(moment)
    if value is None:
        raise TypeError(f"Expected a datetime, got {type(moment).__name__}")
    return value.hour * 60 + value.minute


def is_in_time_range(start: str, end: str, now_minutes: int) -> bool:
    """Return True if now_minutes falls inside [start, end], handling midnight wrap."""
    start_min = clock_to_minutes(start)
    end_min = clock_to_minutes(end)

    # An end of 00:00 after a later start means end of day
    if end_min == 0 and start_min > 0:
        end_min = MINUTES_PER_DAY

    if end_min >= start_min:
        return start_min <= now_minutes <= end_min
    return now_minutes >= start_min or now_minutes <= end_min


def is_near_period(periods: Iterable[SolunarPeriod], now_minutes: int, minutes_before: int) -> bool:
    """Return True if any period starts within minutes_before after now."""
    for period in periods:
        diff = (clock_to_minutes(period.start) - now_minutes) % MINUTES_PER_DAY
        if 0 < diff <= minutes_before:
            return True
    return False


def _create_period(center_hour: float, half_duration: float, kind: SolunarKind) -> SolunarPeriod:
    return SolunarPeriod(
        start=format_decimal_hour(center_hour - half_duration),
        end=format_decimal_hour(center_hour + half_duration),
        kind=kind,
    )


def get_moon_rise_set(moment: Moment, latitude: float, longitude: float) -> Dict[str, str]:
    """Approximate moonrise, moonset and transit as "HH:MM" clock times.

    latitude is accepted for interface symmetry but does not affect the result.
    """
    transit = estimate_moon_transit(moment, longitude)
    return {
        "rise": format_decimal_hour(transit - MOON_RISE_SET_OFFSET_HOURS),
        "set": format_decimal_hour(transit + MOON_RISE_SET_OFFSET_HOURS),
        "transit": format_decimal_hour(transit),
    }


def get_solunar_periods(
    moment: Moment,
    latitude: float,
    longitude: float,
    reference_now: Optional[datetime] = None,
) -> SolunarAssessment:
    """Build the day's solunar periods and classify reference_now against them.

    The periods come from moment's date; reference_now (defaults to moment)
    is only compared on its clock time, which allows assessing the present
    against another day's periods. Only longitude affects the transit
    estimate; latitude is currently ignored.
    """
    now = reference_now if reference_now is not None else moment
    now_minutes = minute_of_day(now)

    transit = estimate_moon_transit(moment, longitude)
    moonrise = transit - MOON_RISE_SET_OFFSET_HOURS
    moonset = transit + MOON_RISE_SET_OFFSET_HOURS
    anti_transit = transit + 12

    periods = [
        _create_period(moonrise, MAJOR_HALF_WIDTH_HOURS, SolunarKind.MAJOR),
        _create_period(moonset, MAJOR_HALF_WIDTH_HOURS, SolunarKind.MAJOR),
        _create_period(transit, MINOR_HALF_WIDTH_HOURS, SolunarKind.MINOR),
        _create_period(anti_transit, MINOR_HALF_WIDTH_HOURS, SolunarKind.MINOR),
    ]
    periods.sort(key=lambda p: clock_to_minutes(p.start))

    is_in_major = any(
        is_in_time_range(p.start, p.end, now_minutes) for p in periods if p.kind is SolunarKind.MAJOR
    )
    is_in_minor = any(
        is_in_time_range(p.start, p.end, now_minutes) for p in periods if p.kind is SolunarKind.MINOR
    )
    is_near = (
        not is_in_major
        and not is_in_minor
        and is_near_period(periods, now_minutes, UPCOMING_WINDOW_MINUTES)
    )

    if is_in_major:
        score = SOLUNAR_SCORE_MAJOR
    elif is_in_minor:
        score = SOLUNAR_SCORE_MINOR
    elif is_near:
        score = SOLUNAR_SCORE_UPCOMING
    else:
        score = SOLUNAR_SCORE_IDLE

    _LOGGER.debug(
        "Solunar periods at lon=%.4f: %s (now=%d min, score=%d)",
        longitude,
        ", ".join(f"{p.kind.value} {p.start}-{p.end}" for p in periods),
        now_minutes,
        score,
    )

    return SolunarAssessment(
        periods=tuple(periods),
        is_in_major=is_in_major,
        is_in_minor=is_in_minor,
        is_near_upcoming=is_near,
        score=score,
    )


def period_hours(period: SolunarPeriod) -> Tuple[float, float]:
    """Return a period's start and end as decimal hours."""
    return clock_to_minutes(period.start) / 60, clock_to_minutes(period.end) / 60

