import asyncio

from custom_components.catch_forecast.sensor import CatchForecastSensor


def make_weather():
    return {
        "temperature": 16.0,
        "wind_speed": 10.0,
        "pressure_trend": -0.8,
        "cloud_cover": 60.0,
        "sunrise": "2024-06-01T03:55",
        "sunset": "2024-06-01T19:45",
        "daily": [
            {"date": "2024-06-01", "temperature_max": 21.0, "temperature_min": 11.0, "wind_speed_max": 20.0,
             "precipitation_sum": 0.0, "sunrise": "2024-06-01T03:55", "sunset": "2024-06-01T19:45"},
            {"date": "2024-06-02", "temperature_max": 23.0, "temperature_min": 12.0, "wind_speed_max": 15.0,
             "precipitation_sum": 1.2, "sunrise": "2024-06-02T03:54", "sunset": "2024-06-02T19:46"},
        ],
    }


class FakeClient:
    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail

    async def fetch_conditions(self, lat, lon, now, include_marine=True, forecast_days=7):
        self.calls += 1
        if self.fail:
            raise RuntimeError("offline")
        return make_weather(), {"is_coastal": False}


def make_sensor(client):
    return CatchForecastSensor(
        name="Lake Spot",
        lat=47.8,
        lon=13.0,
        client=client,
        species_profile=None,
        marine_enabled=False,
        forecast_days=7,
        config_entry_id="entry",
    )


def test_update_sets_score_and_attributes():
    sensor = make_sensor(FakeClient())
    asyncio.run(sensor.async_update())
    assert 0 <= sensor.native_value <= 100
    assert sensor.native_unit_of_measurement == "%"
    attrs = sensor.extra_state_attributes
    assert attrs["rating"] in ("Excellent", "Good", "Moderate", "Poor")
    assert len(attrs["solunar"]["periods"]) == 4
    assert set(attrs["best_window"]) == {"start", "end"}
    assert [d["date"] for d in attrs["outlook"]] == ["2024-06-01", "2024-06-02"]
    assert sensor.available
    assert sensor.unique_id == "lake_spot_catch_probability"


def test_weather_is_cached_between_updates():
    client = FakeClient()
    sensor = make_sensor(client)
    asyncio.run(sensor.async_update())
    asyncio.run(sensor.async_update())
    assert client.calls == 1


def test_failed_update_marks_unavailable():
    sensor = make_sensor(FakeClient(fail=True))
    asyncio.run(sensor.async_update())
    assert not sensor.available
    assert sensor.native_value is None
