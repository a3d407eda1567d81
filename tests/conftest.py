from datetime import datetime, timezone

import pytest

from custom_components.catch_forecast.data_schema import MoonState, SolunarAssessment


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def new_moon():
    return MoonState(phase_index=0, name="New Moon", illumination=0, age_days=0.5, score=100)


@pytest.fixture
def quarter_moon():
    return MoonState(phase_index=2, name="First Quarter", illumination=50, age_days=7.4, score=40)


@pytest.fixture
def major_solunar():
    return SolunarAssessment(periods=(), is_in_major=True, is_in_minor=False, is_near_upcoming=False, score=100)


@pytest.fixture
def idle_solunar():
    return SolunarAssessment(periods=(), is_in_major=False, is_in_minor=False, is_near_upcoming=False, score=10)


@pytest.fixture
def base_weather():
    return {
        "temperature": 14.0,
        "wind_speed": 8.0,
        "pressure_trend": 0.0,
        "cloud_cover": None,
        "precipitation": 0.0,
        "uv_index": None,
        "visibility": None,
        "sunrise": "2024-06-01T05:00",
        "sunset": "2024-06-01T21:00",
    }
