from types import MappingProxyType

from .data_schema import CatchRating, MoonPhase

DOMAIN = "catch_forecast"
DEFAULT_NAME = "Catch Forecast"

# ============================================================================
# CONFIGURATION KEYS
# ============================================================================

CONF_NAME = "name"
CONF_LATITUDE = "latitude"
CONF_LONGITUDE = "longitude"
CONF_SPECIES_ID = "species_id"
CONF_MARINE_ENABLED = "marine_enabled"
CONF_FORECAST_DAYS = "forecast_days"

# Config flow only, never stored in the entry
CONF_LOCATION_QUERY = "location_query"
CONF_LOCATION = "location"

DEFAULT_FORECAST_DAYS = 7
MAX_FORECAST_DAYS = 7

# No species selected in the config flow
SPECIES_NONE = "none"

# ============================================================================
# OPEN-METEO
# ============================================================================

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_MARINE_URL = "https://marine-api.open-meteo.com/v1/marine"
OPEN_METEO_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"

WEATHER_HOURLY_VARS = (
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation_probability",
    "precipitation",
    "weather_code",
    "cloud_cover",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
    "pressure_msl",
    "visibility",
    "uv_index",
)
WEATHER_DAILY_VARS = (
    "weather_code",
    "temperature_2m_max",
    "temperature_2m_min",
    "sunrise",
    "sunset",
    "precipitation_sum",
    "wind_speed_10m_max",
    "wind_gusts_10m_max",
    "uv_index_max",
)
WEATHER_CURRENT_VARS = (
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation",
    "weather_code",
    "cloud_cover",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
    "pressure_msl",
)
MARINE_HOURLY_VARS = (
    "wave_height",
    "wave_direction",
    "wave_period",
    "swell_wave_height",
    "ocean_current_velocity",
)
MARINE_DAILY_VARS = ("wave_height_max", "wave_direction_dominant")

GEOCODING_LANGUAGE = "en"
GEOCODING_RESULT_COUNT = 8

# Seconds to wait before each retry attempt
RETRY_DELAYS = (1, 2, 4)
WEATHER_MAX_RETRIES = 3
MARINE_MAX_RETRIES = 2
REQUEST_TIMEOUT = 15

# Hours of hourly forecast kept on the weather snapshot
HOURLY_WINDOW = 48

# ============================================================================
# ASTRONOMY
# ============================================================================

SYNODIC_MONTH = 29.53059
# New moon of 2000-01-06 18:14 UTC
KNOWN_NEW_MOON_JD = 2451550.26
# Daily retardation of the moon, 24h50m spread over one synodic month
MOON_DAILY_DELAY_HOURS = 24 + 50 / 60
NEW_MOON_TRANSIT_HOUR = 12.0
MOON_RISE_SET_OFFSET_HOURS = 6.0

MOON_PHASES = (
    MoonPhase("New Moon", 100),
    MoonPhase("Waxing Crescent", 60),
    MoonPhase("First Quarter", 40),
    MoonPhase("Waxing Gibbous", 65),
    MoonPhase("Full Moon", 100),
    MoonPhase("Waning Gibbous", 70),
    MoonPhase("Last Quarter", 40),
    MoonPhase("Waning Crescent", 65),
)

# ============================================================================
# SOLUNAR
# ============================================================================

MAJOR_HALF_WIDTH_HOURS = 1.0
MINOR_HALF_WIDTH_HOURS = 0.5
UPCOMING_WINDOW_MINUTES = 30
MINUTES_PER_DAY = 1440

SOLUNAR_SCORE_MAJOR = 100
SOLUNAR_SCORE_MINOR = 70
SOLUNAR_SCORE_UPCOMING = 30
SOLUNAR_SCORE_IDLE = 10

# ============================================================================
# CATCH SCORING
# ============================================================================

FACTOR_MOON_PHASE = "moonPhase"
FACTOR_SOLUNAR = "solunar"
FACTOR_PRESSURE = "pressure"
FACTOR_TIME_OF_DAY = "timeOfDay"
FACTOR_CLOUD_COVER = "cloudCover"
FACTOR_UV_INDEX = "uvIndex"
FACTOR_VISIBILITY = "visibility"
FACTOR_TIDES = "tides"
FACTOR_WAVE_HEIGHT = "waveHeight"

PROFILE_INLAND = "inland"
PROFILE_COASTAL = "coastal"

WEIGHT_PROFILES = MappingProxyType(
    {
        PROFILE_INLAND: MappingProxyType(
            {
                FACTOR_MOON_PHASE: 0.20,
                FACTOR_SOLUNAR: 0.25,
                FACTOR_PRESSURE: 0.18,
                FACTOR_TIME_OF_DAY: 0.12,
                FACTOR_CLOUD_COVER: 0.10,
                FACTOR_UV_INDEX: 0.08,
                FACTOR_VISIBILITY: 0.07,
            }
        ),
        PROFILE_COASTAL: MappingProxyType(
            {
                FACTOR_MOON_PHASE: 0.18,
                FACTOR_SOLUNAR: 0.22,
                FACTOR_PRESSURE: 0.16,
                FACTOR_TIME_OF_DAY: 0.10,
                FACTOR_CLOUD_COVER: 0.09,
                FACTOR_UV_INDEX: 0.07,
                FACTOR_VISIBILITY: 0.06,
                FACTOR_TIDES: 0.08,
                FACTOR_WAVE_HEIGHT: 0.04,
            }
        ),
    }
)

# Sub-score used when an optional input is unknown
NEUTRAL_SCORE = 70
TIDE_BASELINE_SCORE = 50

DEFAULT_SUNRISE_HOUR = 6.0
DEFAULT_SUNSET_HOUR = 20.0

SPECIES_MODIFIER_SCALE = 0.15

PRESSURE_TREND_FALLING = "falling"
PRESSURE_TREND_RISING = "rising"
PRESSURE_TREND_STABLE = "stable"
PRESSURE_TREND_ANY = "any"

# Highest threshold first; the first row met wins
CATCH_RATINGS = (
    CatchRating(75, "Excellent", "#22c55e", "rating-excellent"),
    CatchRating(55, "Good", "#3b82f6", "rating-good"),
    CatchRating(35, "Moderate", "#f59e0b", "rating-moderate"),
    CatchRating(0, "Poor", "#ef4444", "rating-poor"),
)

# ============================================================================
# BEST TIME WINDOW
# ============================================================================

BEST_TIME_MAJOR_POINTS = 40
BEST_TIME_MINOR_POINTS = 20
BEST_TIME_TWILIGHT_POINTS = 25
BEST_TIME_TIDE_POINTS = 15
BEST_TIME_MIN_HOURS = 2
BEST_TIME_MAX_HOURS = 6

# ============================================================================
# DAILY OUTLOOK
# ============================================================================

# Daily wind maximum scaled to an approximate typical wind for the day
OUTLOOK_WIND_FACTOR = 0.6
OUTLOOK_CLOUD_COVER = 50

# ============================================================================
# SENSOR
# ============================================================================

WEATHER_CACHE_MINUTES = 30
SENSOR_CATCH_SCORE = "catch_probability"
