import asyncio

import aiohttp
import pytest

from conftest import utc
from custom_components.catch_forecast.api import (
    OpenMeteoClient,
    OpenMeteoError,
    build_location_name,
    build_weather_snapshot,
    find_current_index,
)

TIMES = [f"2024-06-01T{h:02d}:00" for h in range(6)]


def make_raw(pressures=(1010.0, 1011.0, 1012.0, 1013.0, 1014.0, 1013.5)):
    return {
        "utc_offset_seconds": 0,
        "current": {
            "temperature_2m": 15.2,
            "relative_humidity_2m": 70,
            "wind_speed_10m": 12.0,
            "wind_direction_10m": 220,
            "pressure_msl": 1013.4,
            "cloud_cover": 40,
            "precipitation": 0.0,
            "weather_code": 2,
        },
        "hourly": {
            "time": list(TIMES),
            "pressure_msl": list(pressures),
            "uv_index": [0, 0, 0, 0, 1.5, 2.5],
            "visibility": [24000] * 6,
            "wind_gusts_10m": [20.0] * 6,
            "temperature_2m": [12.0] * 6,
        },
        "daily": {
            "time": ["2024-06-01"],
            "temperature_2m_max": [21.0],
            "temperature_2m_min": [11.0],
            "sunrise": ["2024-06-01T03:55"],
            "sunset": ["2024-06-01T19:45"],
            "wind_speed_10m_max": [25.0],
        },
    }


class FakeResponse:
    def __init__(self, status, payload=None):
        self.status = status
        self._payload = payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self, content_type=None):
        return self._payload

    async def text(self):
        return str(self._payload)


class FakeSession:
    """Replays queued responses; an exception instance is raised instead."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(*responses):
    session = FakeSession(*responses)
    return OpenMeteoClient(session=session, retry_delays=(0, 0, 0)), session


def test_build_location_name():
    assert build_location_name({"name": "Salzburg", "admin1": "Salzburg", "country": "Austria"}) == "Salzburg, Austria"
    assert build_location_name({"name": "Hallstatt", "admin1": "Upper Austria", "country": "Austria"}) == (
        "Hallstatt, Upper Austria, Austria"
    )
    assert build_location_name({"name": "Nowhere"}) == "Nowhere"


def test_current_index_by_hour_prefix():
    assert find_current_index(TIMES, utc(2024, 6, 1, 3, 40)) == 3


def test_current_index_falls_back_to_nearest():
    assert find_current_index(TIMES, utc(2024, 6, 1, 9)) == 5


def test_current_index_honours_utc_offset():
    assert find_current_index(TIMES, utc(2024, 6, 1, 1, 10), utc_offset_seconds=7200) == 3


def test_weather_snapshot_pressure_trend():
    snapshot = build_weather_snapshot(make_raw(), utc(2024, 6, 1, 5, 20))
    assert snapshot["pressure_trend"] == 1.5
    assert snapshot["temperature"] == 15.2
    assert snapshot["uv_index"] == 2.5
    assert snapshot["visibility"] == 24000
    assert snapshot["sunrise"] == "2024-06-01T03:55"
    assert snapshot["sunset"] == "2024-06-01T19:45"
    assert len(snapshot["hourly"]) == 1
    assert len(snapshot["pressure_history"]) == 6
    assert snapshot["daily"][0]["wind_speed_max"] == 25.0


def test_weather_snapshot_trend_near_series_start():
    snapshot = build_weather_snapshot(make_raw(), utc(2024, 6, 1, 1))
    assert snapshot["pressure_trend"] == 1.0


def test_weather_snapshot_trend_with_gap():
    raw = make_raw((None, None, None, 1013.0, 1014.0, 1013.5))
    snapshot = build_weather_snapshot(raw, utc(2024, 6, 1, 5))
    assert snapshot["pressure_trend"] == 0.0


def test_weather_snapshot_rejects_malformed_payload():
    with pytest.raises(OpenMeteoError):
        build_weather_snapshot({"hourly": {}}, utc(2024, 6, 1))


def test_fetch_weather_retries_server_errors():
    client, session = make_client(FakeResponse(503), FakeResponse(200, make_raw()))
    snapshot = asyncio.run(client.fetch_weather(47.8, 13.0, utc(2024, 6, 1, 5)))
    assert len(session.calls) == 2
    assert snapshot["pressure_trend"] == 1.5
    assert session.calls[0][1]["timezone"] == "UTC"


def test_fetch_weather_retries_network_errors():
    client, session = make_client(aiohttp.ClientConnectionError("down"), FakeResponse(200, make_raw()))
    asyncio.run(client.fetch_weather(47.8, 13.0, utc(2024, 6, 1, 5)))
    assert len(session.calls) == 2


def test_fetch_weather_gives_up_after_three_retries():
    client, session = make_client(*[FakeResponse(500) for _ in range(4)])
    with pytest.raises(OpenMeteoError):
        asyncio.run(client.fetch_weather(47.8, 13.0, utc(2024, 6, 1, 5)))
    assert len(session.calls) == 4


def test_client_errors_are_not_retried():
    client, session = make_client(FakeResponse(400, {"reason": "bad"}))
    with pytest.raises(OpenMeteoError):
        asyncio.run(client.fetch_weather(47.8, 13.0, utc(2024, 6, 1, 5)))
    assert len(session.calls) == 1


def test_marine_failure_means_inland():
    client, session = make_client(*[FakeResponse(502) for _ in range(3)])
    assert asyncio.run(client.fetch_marine(47.8, 13.0)) == {"is_coastal": False}
    assert len(session.calls) == 3


def test_marine_coastal_response():
    payload = {
        "hourly": {"time": TIMES[:3], "wave_height": [0.5, 0.9, 0.6], "wave_period": [6, 7, 8]},
        "daily": {"time": ["2024-06-01"], "wave_height_max": [0.9], "wave_direction_dominant": [250]},
    }
    client, _ = make_client(FakeResponse(200, payload))
    context = asyncio.run(client.fetch_marine(43.3, -1.9))
    assert context["is_coastal"] is True
    assert context["daily_summary"][0].wave_period_avg_s == 7.0


def test_search_location():
    payload = {"results": [{"name": "Zell am See", "admin1": "Salzburg", "country": "Austria",
                            "latitude": 47.32, "longitude": 12.79, "timezone": "Europe/Vienna"}]}
    client, session = make_client(FakeResponse(200, payload))
    results = asyncio.run(client.search_location("  Zell "))
    assert results == [
        {"latitude": 47.32, "longitude": 12.79, "name": "Zell am See, Salzburg, Austria", "timezone": "Europe/Vienna"}
    ]
    assert session.calls[0][1]["name"] == "Zell"


def test_search_location_ignores_short_queries():
    client, session = make_client()
    assert asyncio.run(client.search_location(" a ")) == []
    assert session.calls == []


def test_fetch_conditions_without_marine():
    client, session = make_client(FakeResponse(200, make_raw()))
    weather, marine = asyncio.run(client.fetch_conditions(47.8, 13.0, utc(2024, 6, 1, 5), include_marine=False))
    assert marine == {"is_coastal": False}
    assert weather["pressure_trend"] == 1.5
    assert len(session.calls) == 1
