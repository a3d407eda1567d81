from datetime import date, datetime

import pytest

from conftest import utc
from custom_components.catch_forecast.data_formatter import (
    DataFormatter,
    coerce_utc,
    round_half_up,
    safe_float,
)
from custom_components.catch_forecast.data_schema import BestTimeWindow, TideDay, TideEvent, TideKind
from custom_components.catch_forecast.solunar import get_solunar_periods


@pytest.mark.parametrize(
    "value,expected",
    [(1, 1.0), ("2.5", 2.5), (" 3 ", 3.0), (None, None), ("", None), ("nan", None),
     (float("nan"), None), (float("inf"), None), ("abc", None), (True, None)],
)
def test_safe_float(value, expected):
    assert safe_float(value) == expected


def test_safe_float_default():
    assert safe_float(None, 0.0) == 0.0


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(-2.5) == -2
    assert round_half_up(0.125, 2) == 0.13


def test_coerce_utc():
    assert coerce_utc(datetime(2024, 6, 1, 5)) == utc(2024, 6, 1, 5)
    assert coerce_utc(date(2024, 6, 1)) == utc(2024, 6, 1)
    assert coerce_utc("2024-06-01T05:00") == utc(2024, 6, 1, 5)
    assert coerce_utc("2024-06-01T07:00:00+02:00") == utc(2024, 6, 1, 5)
    assert coerce_utc("2024-06-01") == utc(2024, 6, 1)
    assert coerce_utc(1717218000000) == utc(2024, 6, 1, 5)
    assert coerce_utc("not a date") is None
    assert coerce_utc(None) is None


def test_weather_snapshot_accepts_camel_case():
    snapshot = DataFormatter.format_weather_snapshot(
        {"windSpeed": "12", "pressureTrend": -1.2, "cloudCover": 80, "uvIndex": None, "weatherCode": 3.0}
    )
    assert snapshot["wind_speed"] == 12.0
    assert snapshot["pressure_trend"] == -1.2
    assert snapshot["cloud_cover"] == 80.0
    assert snapshot["uv_index"] is None
    assert snapshot["weather_code"] == 3


def test_weather_snapshot_of_nothing():
    assert DataFormatter.format_weather_snapshot(None) == {}


def test_format_solunar():
    formatted = DataFormatter.format_solunar(get_solunar_periods(utc(2024, 6, 1), 0, 0))
    assert len(formatted["periods"]) == 4
    assert {p["type"] for p in formatted["periods"]} == {"major", "minor"}
    assert formatted["score"] in (100, 70, 30, 10)


def test_format_tides_and_window():
    days = [TideDay("2024-06-01", (TideEvent(utc(2024, 6, 1, 4), 1.25, TideKind.LOW),))]
    assert DataFormatter.format_tides(days) == [
        {"date": "2024-06-01", "tides": [{"time": "2024-06-01T04:00:00Z", "height": 1.25, "type": "low"}]}
    ]
    assert DataFormatter.format_best_window(BestTimeWindow("05:00", "08:00")) == {"start": "05:00", "end": "08:00"}
