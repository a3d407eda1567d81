"""Julian day and lunar phase calculations.

This is a deliberately low-fidelity model: the moon's age comes from a fixed
synodic month counted from a single known new moon, with no topocentric
correction and no orbital eccentricity. It is good enough to tell the eight
phases apart and to place the daily solunar windows, nothing more.

All timestamps are read on the UTC clock. Aware datetimes are converted to
UTC, naive datetimes are taken as UTC and plain dates mean midnight UTC.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Union

from ..const import (
    KNOWN_NEW_MOON_JD,
    MOON_DAILY_DELAY_HOURS,
    MOON_PHASES,
    NEW_MOON_TRANSIT_HOUR,
    SYNODIC_MONTH,
)
from ..data_formatter import coerce_utc, round_half_up, safe_float
from ..data_schema import MoonState

_LOGGER = logging.getLogger(__name__)

Moment = Union[datetime, date]


def _as_utc(moment: Moment) -> datetime:
    value = coerce_utc(moment)
    if value is None:
        raise TypeError(f"Expected a datetime or date, got {type(moment).__name__}")
    return value


def to_julian_day(moment: Moment) -> float:
    """Return the Julian Day for a calendar timestamp (minute precision)."""
    value = _as_utc(moment)
    year = value.year
    month = value.month
    day = value.day + (value.hour + value.minute / 60) / 24

    # January and February count as months 13 and 14 of the previous year
    if month <= 2:
        year -= 1
        month += 12

    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)

    return math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1)) + day + b - 1524.5


def moon_age(moment: Moment) -> float:
    """Days since the last new moon, in [0, SYNODIC_MONTH)."""
    days_since_new = to_julian_day(moment) - KNOWN_NEW_MOON_JD
    return days_since_new % SYNODIC_MONTH


def get_moon_data(moment: Moment) -> MoonState:
    """Return the moon phase, illumination and fishing score for a timestamp."""
    age = moon_age(moment)
    phase_index = math.floor(age / SYNODIC_MONTH * 8) % 8
    illumination = int(round_half_up(50 * (1 - math.cos(2 * math.pi * age / SYNODIC_MONTH))))
    phase = MOON_PHASES[phase_index]

    return MoonState(
        phase_index=phase_index,
        name=phase.name,
        illumination=illumination,
        age_days=round_half_up(age, 2),
        score=phase.score,
    )


def estimate_moon_transit(moment: Moment, longitude: float) -> float:
    """Estimate the hour (UTC, 0-24) of the moon's upper culmination.

    At new moon the moon transits with the sun around solar noon, then
    roughly 50 minutes later each day. The longitude term turns local solar
    time into UTC. Declination and observer latitude are ignored.
    """
    lon = safe_float(longitude)
    if lon is None:
        raise ValueError(f"longitude must be a finite number, got {longitude!r}")

    age = moon_age(moment)
    age_offset = age * MOON_DAILY_DELAY_HOURS / SYNODIC_MONTH
    lon_offset = -lon / 15

    transit = (NEW_MOON_TRANSIT_HOUR + age_offset + lon_offset) % 24
    _LOGGER.debug("Moon transit estimate: age=%.2fd lon=%.4f -> %.3fh", age, lon, transit)
    return transit
