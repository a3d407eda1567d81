import pytest

from conftest import utc
from custom_components.catch_forecast.const import PROFILE_COASTAL, PROFILE_INLAND, WEIGHT_PROFILES
from custom_components.catch_forecast.data_schema import TideDay, TideEvent, TideKind
from custom_components.catch_forecast.score import (
    MissingWeatherDataError,
    calculate_catch_probability,
    cloud_cover_score,
    get_rating,
    pressure_score,
    species_modifier,
    tide_timing_score,
    time_of_day_score,
    uv_index_score,
    visibility_score,
    wave_height_score,
)

SUNRISE = "2024-06-01T05:00"
SUNSET = "2024-06-01T21:00"
DAWN = utc(2024, 6, 1, 5, 30)
MIDDAY = utc(2024, 6, 1, 12)

INLAND_FACTORS = {"moonPhase", "solunar", "pressure", "timeOfDay", "cloudCover", "uvIndex", "visibility"}


def make_species(**prefs):
    return {"id": "test", "name": "Test Fish", "weather_prefs": prefs}


def make_tides(hour, minute=0, kind=TideKind.HIGH, day=1):
    event = TideEvent(time=utc(2024, 6, day, hour, minute), height_m=1.1, kind=kind)
    return [TideDay(date=f"2024-06-{day:02d}", tides=(event,))]


@pytest.mark.parametrize(
    "trend,expected",
    [(-2.5, 90), (-2, 70), (-1, 70), (-0.5, 60), (0, 60), (0.5, 60), (1, 50), (2, 50), (3, 40)],
)
def test_pressure_score(trend, expected):
    assert pressure_score(trend) == expected


@pytest.mark.parametrize(
    "now,expected",
    [
        (utc(2024, 6, 1, 5, 30), 100),
        (utc(2024, 6, 1, 7), 70),
        (utc(2024, 6, 1, 21, 45), 100),
        (utc(2024, 6, 1, 12), 40),
        (utc(2024, 6, 1, 2), 50),
        (utc(2024, 6, 1, 23, 30), 50),
    ],
)
def test_time_of_day_score(now, expected):
    assert time_of_day_score(now, SUNRISE, SUNSET) == expected


def test_time_of_day_defaults_missing_sunrise_to_six():
    assert time_of_day_score(utc(2024, 6, 1, 6, 30), None, SUNSET) == 100


def test_cloud_cover_score():
    assert cloud_cover_score(0) == 70
    assert cloud_cover_score(50) == 85
    assert cloud_cover_score(100) == 100
    assert cloud_cover_score(None) == 70


def test_uv_index_score():
    assert [uv_index_score(v) for v in (0, 2, 5, 7, 8, None)] == [100, 100, 80, 60, 40, 70]


def test_visibility_score():
    assert [visibility_score(v) for v in (20000, 10000, 5000, 4999, None)] == [60, 80, 80, 70, 70]


def test_tide_timing_score():
    now = utc(2024, 6, 1, 12)
    assert tide_timing_score((), now) == 50
    assert tide_timing_score(make_tides(12, 30)[0].tides, now) == 90
    assert tide_timing_score(make_tides(11, 30, TideKind.LOW)[0].tides, now) == 85
    assert tide_timing_score(make_tides(13, 30)[0].tides, now) == 70
    assert tide_timing_score(make_tides(15)[0].tides, now) == 50


def test_wave_height_score():
    assert [wave_height_score(v) for v in (0.3, 0.5, 1.5, 2.0, 3.0, 3.1, None)] == [90, 100, 100, 70, 70, 30, 70]


def test_weight_profiles_sum_to_one():
    for profile in (PROFILE_INLAND, PROFILE_COASTAL):
        assert sum(WEIGHT_PROFILES[profile].values()) == pytest.approx(1.0)


@pytest.mark.parametrize(
    "score,label",
    [(100, "Excellent"), (75, "Excellent"), (74, "Good"), (55, "Good"), (54, "Moderate"), (35, "Moderate"), (34, "Poor"), (0, "Poor")],
)
def test_rating_thresholds(score, label):
    assert get_rating(score).label == label


def test_inland_prediction(base_weather, new_moon, major_solunar):
    weather = dict(base_weather, pressure_trend=-3.0)
    result = calculate_catch_probability(weather, new_moon, major_solunar, now=DAWN)
    # 100*.20 + 100*.25 + 90*.18 + 100*.12 + 70*.10 + 70*.08 + 70*.07
    assert result.overall_score == 91
    assert result.rating == "Excellent"
    assert result.color == "#22c55e"
    assert result.color_class == "rating-excellent"
    assert result.is_coastal is False
    assert set(result.breakdown) == INLAND_FACTORS
    assert result.breakdown["pressure"] == 90


def test_breakdown_is_read_only(base_weather, new_moon, idle_solunar):
    result = calculate_catch_probability(base_weather, new_moon, idle_solunar, now=MIDDAY)
    with pytest.raises(TypeError):
        result.breakdown["pressure"] = 0


def test_coastal_prediction(base_weather, new_moon, major_solunar):
    weather = dict(base_weather, pressure_trend=-3.0)
    marine = {"is_coastal": True, "wave_height": 1.0, "tides": make_tides(5, 15)}
    result = calculate_catch_probability(weather, new_moon, major_solunar, marine_context=marine, now=DAWN)
    assert result.is_coastal is True
    assert set(result.breakdown) == INLAND_FACTORS | {"tides", "waveHeight"}
    assert result.breakdown["tides"] == 90
    assert result.breakdown["waveHeight"] == 100
    assert result.overall_score == 91


def test_coastal_wave_height_from_hourly(base_weather, new_moon, idle_solunar):
    marine = {
        "is_coastal": True,
        "hourly": {"time": ["2024-06-01T11:00", "2024-06-01T12:00"], "wave_height": [0.2, 4.0]},
        "tides": make_tides(12, day=2),
    }
    result = calculate_catch_probability(base_weather, new_moon, idle_solunar, marine_context=marine, now=MIDDAY)
    assert result.breakdown["waveHeight"] == 30
    # tides of another day are ignored
    assert result.breakdown["tides"] == 50


def test_non_coastal_marine_context_uses_inland_profile(base_weather, new_moon, idle_solunar):
    result = calculate_catch_probability(
        base_weather, new_moon, idle_solunar, marine_context={"is_coastal": False}, now=MIDDAY
    )
    assert result.is_coastal is False
    assert set(result.breakdown) == INLAND_FACTORS


def test_score_clamped_to_zero(base_weather, quarter_moon, idle_solunar):
    species = make_species(temperature={"min": 20, "max": 25, "ideal": 22}, wind={"max": 5})
    result = calculate_catch_probability(base_weather, quarter_moon, idle_solunar, species, now=MIDDAY)
    assert result.overall_score == 0
    assert result.rating == "Poor"


def test_score_clamped_to_hundred(base_weather, new_moon, major_solunar):
    weather = dict(base_weather, pressure_trend=-1.0, cloud_cover=60.0)
    species = make_species(
        temperature={"min": 10, "max": 20, "ideal": 14},
        pressure={"trend": "falling"},
        wind={"max": 20},
        cloud_cover={"min": 50, "max": 100},
    )
    result = calculate_catch_probability(weather, new_moon, major_solunar, species, now=DAWN)
    assert result.overall_score == 100


def test_species_modifier_mean_of_adjustments(base_weather):
    # +5 (in range, 4 from ideal) and -5 (stable wanted, falling) -> mean 0
    weather = dict(base_weather, pressure_trend=-1.0)
    species = make_species(temperature={"min": 10, "max": 20, "ideal": 18}, pressure={"trend": "stable"})
    assert species_modifier(weather, species) == 0


def test_species_modifier_skips_unknown_values(base_weather):
    weather = dict(base_weather, temperature=None)
    assert species_modifier(weather, make_species(temperature={"min": 0, "max": 5, "ideal": 2})) == 0


def test_species_modifier_skips_any_pressure(base_weather):
    species = make_species(pressure={"trend": "any"}, wind={"max": 20})
    assert species_modifier(base_weather, species) == pytest.approx(5 * 0.15 * 100)


def test_species_without_preferences_has_no_effect(base_weather, new_moon, idle_solunar):
    plain = calculate_catch_probability(base_weather, new_moon, idle_solunar, now=MIDDAY)
    with_species = calculate_catch_probability(
        base_weather, new_moon, idle_solunar, {"id": "x", "name": "X"}, now=MIDDAY
    )
    assert plain == with_species


def test_tip_prefers_pressure(base_weather, new_moon, major_solunar):
    weather = dict(base_weather, pressure_trend=-3.0)
    result = calculate_catch_probability(weather, new_moon, major_solunar, now=DAWN)
    assert "pressure" in result.tip.lower()


def test_tip_moon_before_solunar(base_weather, new_moon, major_solunar):
    result = calculate_catch_probability(base_weather, new_moon, major_solunar, now=DAWN)
    assert result.tip.startswith("New Moon")


def test_tip_falls_back_to_rating(base_weather, quarter_moon, idle_solunar):
    weather = dict(base_weather, wind_speed=5.0)
    result = calculate_catch_probability(weather, quarter_moon, idle_solunar, now=MIDDAY)
    assert result.rating == "Moderate"
    assert result.tip == "Moderate conditions. Patience is key today."


def test_accepts_camel_case_weather(new_moon, idle_solunar):
    weather = {"pressureTrend": -1.0, "sunrise": SUNRISE, "sunset": SUNSET, "cloudCover": 100}
    result = calculate_catch_probability(weather, new_moon, idle_solunar, now=MIDDAY)
    assert result.breakdown["pressure"] == 70
    assert result.breakdown["cloudCover"] == 100


def test_missing_weather_raises(new_moon, idle_solunar):
    with pytest.raises(MissingWeatherDataError):
        calculate_catch_probability(None, new_moon, idle_solunar, now=MIDDAY)


@pytest.mark.parametrize("trend", [None, float("nan"), float("inf"), "n/a"])
def test_missing_pressure_trend_raises(base_weather, new_moon, idle_solunar, trend):
    weather = dict(base_weather, pressure_trend=trend)
    with pytest.raises(MissingWeatherDataError):
        calculate_catch_probability(weather, new_moon, idle_solunar, now=MIDDAY)


def test_missing_sunrise_and_sunset_raises(base_weather, new_moon, idle_solunar):
    weather = dict(base_weather, sunrise=None, sunset=None)
    with pytest.raises(MissingWeatherDataError):
        calculate_catch_probability(weather, new_moon, idle_solunar, now=MIDDAY)


def test_missing_weather_error_is_value_error():
    assert issubclass(MissingWeatherDataError, ValueError)


def test_single_missing_twilight_is_tolerated(base_weather, new_moon, idle_solunar):
    weather = dict(base_weather, sunset=None)
    result = calculate_catch_probability(weather, new_moon, idle_solunar, now=utc(2024, 6, 1, 20, 30))
    assert result.breakdown["timeOfDay"] == 100
