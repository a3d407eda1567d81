"""Best fishing time window search over a day of hourly scores."""

from __future__ import annotations

import logging
import math
from typing import Any, List, Optional, Sequence

from .const import (
    BEST_TIME_MAJOR_POINTS,
    BEST_TIME_MAX_HOURS,
    BEST_TIME_MIN_HOURS,
    BEST_TIME_MINOR_POINTS,
    BEST_TIME_TIDE_POINTS,
    BEST_TIME_TWILIGHT_POINTS,
)
from .data_formatter import coerce_utc
from .data_schema import BestTimeWindow, SolunarAssessment, SolunarKind, TideEvent
from .solunar import format_decimal_hour, period_hours

_LOGGER = logging.getLogger(__name__)

HOURS_PER_DAY = 24


def _add_around(hour_scores: List[int], hour: int, points: int) -> None:
    """Add points to hour-1..hour+1, wrapping around midnight."""
    for h in range(hour - 1, hour + 2):
        hour_scores[h % HOURS_PER_DAY] += points


def score_hours(
    solunar: Optional[SolunarAssessment],
    sunrise: Any = None,
    sunset: Any = None,
    tides: Optional[Sequence[TideEvent]] = None,
) -> List[int]:
    """Build the 24-hour score profile used by the window search."""
    hour_scores = [0] * HOURS_PER_DAY

    for period in solunar.periods if solunar else ():
        start_hour, end_hour = period_hours(period)
        points = BEST_TIME_MAJOR_POINTS if period.kind is SolunarKind.MAJOR else BEST_TIME_MINOR_POINTS
        first = math.floor(start_hour)
        last = math.ceil(end_hour)
        wraps = end_hour < start_hour
        for h in range(HOURS_PER_DAY):
            if (first <= h <= last) or (wraps and (h >= first or h <= last)):
                hour_scores[h] += points

    for twilight in (sunrise, sunset):
        moment = coerce_utc(twilight) if twilight else None
        if moment is not None:
            _add_around(hour_scores, moment.hour, BEST_TIME_TWILIGHT_POINTS)

    for tide in tides or ():
        moment = coerce_utc(tide.time)
        if moment is not None:
            _add_around(hour_scores, moment.hour, BEST_TIME_TIDE_POINTS)

    return hour_scores


def find_best_window(hour_scores: Sequence[float]) -> BestTimeWindow:
    """Return the contiguous 2-6 hour block with the highest average score.

    Blocks are visited by ascending start then ascending length and only a
    strictly greater average replaces the current best, so ties keep the
    earliest block. An all-zero profile yields 00:00-02:00.
    """
    best_start = 0
    best_end = 1
    best_avg = 0.0

    for start in range(HOURS_PER_DAY):
        for length in range(BEST_TIME_MIN_HOURS, BEST_TIME_MAX_HOURS + 1):
            if start + length > HOURS_PER_DAY:
                break
            end = start + length - 1
            avg = sum(hour_scores[start:end + 1]) / length
            if avg > best_avg:
                best_avg = avg
                best_start = start
                best_end = end

    return BestTimeWindow(start=format_decimal_hour(best_start), end=format_decimal_hour(best_end + 1))


def calculate_best_fishing_time(
    solunar: Optional[SolunarAssessment],
    sunrise: Any = None,
    sunset: Any = None,
    tides: Optional[Sequence[TideEvent]] = None,
) -> BestTimeWindow:
    """Find the best fishing window of a day from solunar periods, twilight and tides."""
    hour_scores = score_hours(solunar, sunrise, sunset, tides)
    window = find_best_window(hour_scores)
    _LOGGER.debug("Hourly scores %s -> best window %s-%s", hour_scores, window.start, window.end)
    return window
