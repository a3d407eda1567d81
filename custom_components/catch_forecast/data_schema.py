"""Data structure definitions for the Catch Forecast integration.

Provider inputs (weather snapshots, species profiles, marine context) are
loosely shaped TypedDicts since they come straight from JSON. Everything the
prediction engine produces is an immutable dataclass, built fresh on every
call and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, TypedDict


# ============================================================================
# PROVIDER INPUTS
# ============================================================================

class WeatherSnapshot(TypedDict, total=False):
    """Current weather plus hourly/daily forecast for one location."""
    temperature: Optional[float]  # Celsius
    humidity: Optional[float]  # percentage (0-100)
    wind_speed: Optional[float]  # km/h
    wind_direction: Optional[float]  # degrees
    wind_gusts: Optional[float]  # km/h
    pressure: Optional[float]  # hPa
    pressure_trend: Optional[float]  # hPa change over the trailing 3 hours
    cloud_cover: Optional[float]  # percentage (0-100)
    precipitation: Optional[float]  # mm
    weather_code: Optional[int]  # WMO code
    sunrise: Optional[str]  # ISO datetime string (UTC)
    sunset: Optional[str]  # ISO datetime string (UTC)
    uv_index: Optional[float]
    visibility: Optional[float]  # meters
    pressure_history: List[Dict[str, Any]]
    hourly: List[Dict[str, Any]]
    daily: List[Dict[str, Any]]


class TemperaturePreference(TypedDict, total=False):
    min: float
    max: float
    ideal: float


class PressurePreference(TypedDict, total=False):
    trend: str  # falling, stable, rising, any


class WindPreference(TypedDict, total=False):
    max: float  # km/h


class CloudCoverPreference(TypedDict, total=False):
    min: float
    max: float


class WeatherPreferences(TypedDict, total=False):
    temperature: TemperaturePreference
    pressure: PressurePreference
    wind: WindPreference
    cloud_cover: CloudCoverPreference


class SpeciesProfile(TypedDict, total=False):
    """Species catalog entry; only weather_prefs affects scoring."""
    id: str
    name: str
    scientific_name: str
    category: str
    water_types: List[str]
    best_months: List[int]
    weather_prefs: WeatherPreferences


class MarineContext(TypedDict, total=False):
    """Marine data attached to a location by the provider client."""
    is_coastal: bool
    hourly: Dict[str, List[Any]]
    tides: List["TideDay"]
    daily_summary: List["MarineDailySummary"]
    wave_height: Optional[float]  # meters, overrides the hourly lookup


# ============================================================================
# ASTRONOMY
# ============================================================================

@dataclass(frozen=True)
class MoonPhase:
    """One of the eight named moon phases and its fishing favorability."""
    name: str
    score: int


@dataclass(frozen=True)
class MoonState:
    """Moon state derived from a timestamp.

    Attributes:
        phase_index: Index 0-7 into the moon phase table
        name: Phase name
        illumination: Illuminated fraction in percent (0-100)
        age_days: Days since the last new moon (0-29.53)
        score: Fishing favorability of the phase (0-100)
    """
    phase_index: int
    name: str
    illumination: int
    age_days: float
    score: int


class SolunarKind(Enum):
    """Solunar period types."""

    MAJOR = "major"
    MINOR = "minor"


@dataclass(frozen=True)
class SolunarPeriod:
    """A window of presumed peak activity, as "HH:MM" wall-clock times."""
    start: str
    end: str
    kind: SolunarKind


@dataclass(frozen=True)
class SolunarAssessment:
    """Solunar periods for a day and the position of a reference time."""
    periods: Tuple[SolunarPeriod, ...]
    is_in_major: bool
    is_in_minor: bool
    is_near_upcoming: bool
    score: int


# ============================================================================
# MARINE
# ============================================================================

class TideKind(Enum):
    """Tide extremum types."""

    HIGH = "high"
    LOW = "low"


@dataclass(frozen=True)
class TideEvent:
    """A detected local extremum of the hourly height series."""
    time: datetime  # UTC
    height_m: float
    kind: TideKind


@dataclass(frozen=True)
class TideDay:
    """Tide events of one calendar day."""
    date: str  # YYYY-MM-DD
    tides: Tuple[TideEvent, ...]


@dataclass(frozen=True)
class MarineDailySummary:
    """Daily wave conditions."""
    date: str  # YYYY-MM-DD
    wave_height_max_m: Optional[float]
    wave_period_avg_s: Optional[float]
    wave_direction_dominant_deg: Optional[float]


# ============================================================================
# SCORING
# ============================================================================

@dataclass(frozen=True)
class CatchRating:
    """A row of the rating table."""
    min_score: int
    label: str
    color: str
    color_class: str


@dataclass(frozen=True)
class CatchAssessment:
    """Catch probability for one moment.

    Attributes:
        overall_score: Weighted score clamped to 0-100
        rating: Rating label ("Excellent", "Good", "Moderate", "Poor")
        color: Hex color of the rating
        color_class: CSS-style class name of the rating
        breakdown: Read-only mapping of factor name to 0-100 sub-score
        is_coastal: Whether the coastal weight profile was used
        tip: The most relevant fishing tip for the conditions
    """
    overall_score: int
    rating: str
    color: str
    color_class: str
    breakdown: Mapping[str, int]
    is_coastal: bool
    tip: str


@dataclass(frozen=True)
class BestTimeWindow:
    """Highest-scoring contiguous block of hours, end exclusive."""
    start: str
    end: str


@dataclass(frozen=True)
class DailyOutlook:
    """Prediction for one forecast day."""
    date: str  # YYYY-MM-DD
    moon: MoonState
    solunar: SolunarAssessment
    assessment: CatchAssessment
    best_window: BestTimeWindow
    marine: Optional[MarineDailySummary] = None
