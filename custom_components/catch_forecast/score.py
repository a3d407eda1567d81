"""Catch probability scoring with strict validation of required inputs.

The scorer combines per-factor sub-scores (0-100) into one weighted score
using the inland or coastal weight profile from const.WEIGHT_PROFILES. An
optional species profile shifts the result by up to +/-15 points, then the
score is rounded, clamped to 0-100 and mapped onto a rating tier.

Required data that is missing raises MissingWeatherDataError; every other
gap degrades to a neutral sub-score so a partial forecast still scores.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .const import (
    CATCH_RATINGS,
    DEFAULT_SUNRISE_HOUR,
    DEFAULT_SUNSET_HOUR,
    FACTOR_CLOUD_COVER,
    FACTOR_MOON_PHASE,
    FACTOR_PRESSURE,
    FACTOR_SOLUNAR,
    FACTOR_TIDES,
    FACTOR_TIME_OF_DAY,
    FACTOR_UV_INDEX,
    FACTOR_VISIBILITY,
    FACTOR_WAVE_HEIGHT,
    NEUTRAL_SCORE,
    PRESSURE_TREND_ANY,
    PRESSURE_TREND_FALLING,
    PRESSURE_TREND_RISING,
    PRESSURE_TREND_STABLE,
    PROFILE_COASTAL,
    PROFILE_INLAND,
    SPECIES_MODIFIER_SCALE,
    TIDE_BASELINE_SCORE,
    WEIGHT_PROFILES,
)
from .data_formatter import DataFormatter, coerce_utc, round_half_up, safe_float
from .data_schema import (
    CatchAssessment,
    CatchRating,
    MarineContext,
    MoonState,
    SolunarAssessment,
    SpeciesProfile,
    TideEvent,
    TideKind,
    WeatherSnapshot,
)
from .marine_data import current_wave_height, tides_for_date

_LOGGER = logging.getLogger(__name__)


class MissingWeatherDataError(ValueError):
    """Raised when the weather input lacks data the scorer cannot do without."""


# ---------------------------------------------------------------------------
# Factor sub-scores
# ---------------------------------------------------------------------------

def pressure_score(trend: float) -> int:
    """Score the 3-hour pressure trend; falling pressure is best."""
    if trend < -2:
        return 90
    if trend < -0.5:
        return 70
    if trend > 2:
        return 40
    if trend > 0.5:
        return 50
    return 60


def _decimal_hour(moment: datetime) -> float:
    return moment.hour + moment.minute / 60


def _twilight_hour(value: Any, default: float) -> float:
    moment = coerce_utc(value) if value else None
    if moment is None:
        return default
    return _decimal_hour(moment)


def time_of_day_score(now: datetime, sunrise: Any = None, sunset: Any = None) -> int:
    """Favor dawn and dusk, then night, then the middle of the day."""
    current = _decimal_hour(now)
    sunrise_hour = _twilight_hour(sunrise, DEFAULT_SUNRISE_HOUR)
    sunset_hour = _twilight_hour(sunset, DEFAULT_SUNSET_HOUR)

    dawn_diff = abs(current - sunrise_hour)
    if dawn_diff <= 1:
        return 100
    if dawn_diff <= 2:
        return 70

    dusk_diff = abs(current - sunset_hour)
    if dusk_diff <= 1:
        return 100
    if dusk_diff <= 2:
        return 70

    if current < sunrise_hour - 2 or current > sunset_hour + 2:
        return 50
    return 40


def cloud_cover_score(cloud_cover: Optional[float]) -> int:
    """More cloud makes fish less wary: 70 at clear sky up to 100 overcast."""
    if cloud_cover is None:
        return NEUTRAL_SCORE
    return int(round_half_up(70 + cloud_cover * 0.3))


def uv_index_score(uv_index: Optional[float]) -> int:
    if uv_index is None:
        return NEUTRAL_SCORE
    if uv_index <= 2:
        return 100
    if uv_index <= 5:
        return 80
    if uv_index <= 7:
        return 60
    return 40


def visibility_score(visibility_m: Optional[float]) -> int:
    if visibility_m is None:
        return NEUTRAL_SCORE
    visibility_km = visibility_m / 1000
    if visibility_km > 10:
        return 60
    if visibility_km >= 5:
        return 80
    return 70


def tide_timing_score(tides: Sequence[TideEvent], now: datetime) -> int:
    """Score proximity to the first tide change within two hours of now."""
    if not tides:
        return TIDE_BASELINE_SCORE

    for tide in tides:
        diff_hours = abs((now - tide.time).total_seconds()) / 3600
        if diff_hours <= 1:
            return 90 if tide.kind is TideKind.HIGH else 85
        if diff_hours <= 2:
            return 70
    return TIDE_BASELINE_SCORE


def wave_height_score(wave_height_m: Optional[float]) -> int:
    if wave_height_m is None:
        return NEUTRAL_SCORE
    if wave_height_m < 0.5:
        return 90
    if wave_height_m <= 1.5:
        return 100
    if wave_height_m <= 3:
        return 70
    return 30


# ---------------------------------------------------------------------------
# Species modifier
# ---------------------------------------------------------------------------

def species_adjustments(weather: WeatherSnapshot, species_profile: Optional[SpeciesProfile]) -> List[int]:
    """Return one adjustment per weather preference the species declares.

    A preference whose weather value is unknown is skipped entirely, as is a
    pressure preference of "any".
    """
    prefs = (species_profile or {}).get("weather_prefs") or {}
    adjustments: List[int] = []

    temp_pref = prefs.get("temperature")
    temperature = weather.get("temperature")
    if temp_pref and temperature is not None:
        low = safe_float(temp_pref.get("min"), -math.inf)
        high = safe_float(temp_pref.get("max"), math.inf)
        ideal = safe_float(temp_pref.get("ideal"))
        if low <= temperature <= high:
            adjustments.append(10 if ideal is not None and abs(temperature - ideal) < 3 else 5)
        else:
            adjustments.append(-15)

    pressure_pref = prefs.get("pressure")
    trend = weather.get("pressure_trend")
    preferred_trend = (pressure_pref or {}).get("trend", PRESSURE_TREND_ANY)
    if pressure_pref and preferred_trend != PRESSURE_TREND_ANY and trend is not None:
        matches = (
            (preferred_trend == PRESSURE_TREND_FALLING and trend < -0.5)
            or (preferred_trend == PRESSURE_TREND_RISING and trend > 0.5)
            or (preferred_trend == PRESSURE_TREND_STABLE and abs(trend) <= 0.5)
        )
        adjustments.append(10 if matches else -5)

    wind_pref = prefs.get("wind")
    wind_speed = weather.get("wind_speed")
    if wind_pref and wind_speed is not None:
        max_wind = safe_float(wind_pref.get("max"), math.inf)
        adjustments.append(5 if wind_speed <= max_wind else -10)

    cloud_pref = prefs.get("cloud_cover")
    cloud_cover = weather.get("cloud_cover")
    if cloud_pref and cloud_cover is not None:
        low = safe_float(cloud_pref.get("min"), -math.inf)
        high = safe_float(cloud_pref.get("max"), math.inf)
        adjustments.append(5 if low <= cloud_cover <= high else 0)

    return adjustments


def species_modifier(weather: WeatherSnapshot, species_profile: Optional[SpeciesProfile]) -> float:
    """Mean species adjustment scaled to score points (0 without preferences)."""
    adjustments = species_adjustments(weather, species_profile)
    if not adjustments:
        return 0.0
    return sum(adjustments) / len(adjustments) * SPECIES_MODIFIER_SCALE * 100


# ---------------------------------------------------------------------------
# Rating and tip
# ---------------------------------------------------------------------------

def get_rating(score: float) -> CatchRating:
    """Return the first rating tier whose threshold the score meets."""
    for rating in CATCH_RATINGS:
        if score >= rating.min_score:
            return rating
    return CATCH_RATINGS[-1]


def generate_tip(
    weather: WeatherSnapshot, moon: MoonState, solunar: SolunarAssessment, overall_score: int
) -> str:
    """Pick the most relevant fishing tip for the conditions."""
    trend = weather.get("pressure_trend")
    if trend is not None:
        if trend < -2:
            return "Sharply falling pressure: fish are especially active right now!"
        if trend < -0.5:
            return "Falling pressure tends to trigger feeding."
        if trend > 2:
            return "Sharply rising pressure makes fish sluggish. Try deeper spots."

    if moon.phase_index in (0, 4):
        return f"{moon.name} is traditionally one of the best phases for fishing."

    if solunar.is_in_major:
        return "You are in a major solunar period: this is the best time!"
    if solunar.is_in_minor:
        return "Minor solunar period in progress: good chance of a bite."
    if solunar.is_near_upcoming:
        return "A solunar period starts soon, get ready!"

    wind_speed = weather.get("wind_speed")
    if wind_speed is not None:
        if wind_speed > 30:
            return "Strong wind: look for sheltered banks."
        if wind_speed > 15:
            return "A light to moderate breeze stirs up the water, good for predators."

    cloud_cover = weather.get("cloud_cover")
    if cloud_cover is not None and cloud_cover > 70:
        return "Overcast sky: fish are less wary and bite better."

    precipitation = weather.get("precipitation")
    if precipitation is not None:
        if 0 < precipitation < 5:
            return "Light rain can boost feeding activity."
        if precipitation >= 5:
            return "Heavy rain pushes fish into deeper water."

    temperature = weather.get("temperature")
    if temperature is not None and temperature < 5:
        return "Cold water: use small baits and fish slowly."

    if overall_score >= 75:
        return "Excellent conditions, make the most of them!"
    if overall_score >= 55:
        return "Good conditions. Try a few different baits."
    if overall_score >= 35:
        return "Moderate conditions. Patience is key today."
    return "Tough conditions, but you can get lucky on days like these too."


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _validate_weather(weather: Any) -> WeatherSnapshot:
    if not isinstance(weather, Mapping):
        raise MissingWeatherDataError(
            f"weather must be a mapping, got {type(weather).__name__}"
        )
    snapshot = DataFormatter.format_weather_snapshot(weather)
    if snapshot.get("pressure_trend") is None:
        raise MissingWeatherDataError("weather is missing a finite pressure_trend")
    if not snapshot.get("sunrise") and not snapshot.get("sunset"):
        raise MissingWeatherDataError("weather is missing both sunrise and sunset")
    return snapshot


def _coastal_scores(marine_context: MarineContext, now: datetime) -> Dict[str, int]:
    wave_height = safe_float(marine_context.get("wave_height"))
    if wave_height is None:
        wave_height = current_wave_height(marine_context.get("hourly"), now)
    todays_tides = tides_for_date(marine_context.get("tides"), now.strftime("%Y-%m-%d"))
    return {
        FACTOR_TIDES: tide_timing_score(todays_tides, now),
        FACTOR_WAVE_HEIGHT: wave_height_score(wave_height),
    }


def calculate_catch_probability(
    weather: WeatherSnapshot,
    moon: MoonState,
    solunar: SolunarAssessment,
    species_profile: Optional[SpeciesProfile] = None,
    marine_context: Optional[MarineContext] = None,
    *,
    now: datetime,
) -> CatchAssessment:
    """Score the catch probability at now.

    Args:
        weather: Weather snapshot; pressure_trend and at least one of
            sunrise/sunset are required.
        moon: Moon state of the day.
        solunar: Solunar assessment of the reference time.
        species_profile: Optional species whose weather preferences shift the score.
        marine_context: Optional marine context; selects the coastal profile
            when its is_coastal flag is set.
        now: Reference time, read on the UTC clock.

    Raises:
        MissingWeatherDataError: when required weather data is missing.
    """
    snapshot = _validate_weather(weather)
    moment = coerce_utc(now)
    if moment is None:
        raise TypeError(f"now must be a datetime, got {type(now).__name__}")

    is_coastal = bool(marine_context and marine_context.get("is_coastal"))

    scores: Dict[str, int] = {
        FACTOR_MOON_PHASE: moon.score,
        FACTOR_SOLUNAR: solunar.score,
        FACTOR_PRESSURE: pressure_score(snapshot["pressure_trend"]),
        FACTOR_TIME_OF_DAY: time_of_day_score(moment, snapshot.get("sunrise"), snapshot.get("sunset")),
        FACTOR_CLOUD_COVER: cloud_cover_score(snapshot.get("cloud_cover")),
        FACTOR_UV_INDEX: uv_index_score(snapshot.get("uv_index")),
        FACTOR_VISIBILITY: visibility_score(snapshot.get("visibility")),
    }
    if is_coastal:
        scores.update(_coastal_scores(marine_context, moment))

    weights = WEIGHT_PROFILES[PROFILE_COASTAL if is_coastal else PROFILE_INLAND]
    overall = sum(scores[factor] * weight for factor, weight in weights.items())
    overall += species_modifier(snapshot, species_profile)

    overall_score = int(max(0, min(100, round_half_up(overall))))
    rating = get_rating(overall_score)

    _LOGGER.debug(
        "Catch probability %d (%s, %s profile): %s",
        overall_score,
        rating.label,
        PROFILE_COASTAL if is_coastal else PROFILE_INLAND,
        scores,
    )

    return CatchAssessment(
        overall_score=overall_score,
        rating=rating.label,
        color=rating.color,
        color_class=rating.color_class,
        breakdown=MappingProxyType(scores),
        is_coastal=is_coastal,
        tip=generate_tip(snapshot, moon, solunar, overall_score),
    )
