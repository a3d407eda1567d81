"""Sensor platform for Catch Forecast."""
from homeassistant.core import HomeAssistant
from homeassistant.config_entries import ConfigEntry
from homeassistant.components.sensor import SensorEntity
from homeassistant.util import dt as dt_util
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from datetime import datetime, timedelta
import logging
from typing import Any, Dict, Optional

from .const import (
    DOMAIN,
    CONF_NAME,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_SPECIES_ID,
    CONF_MARINE_ENABLED,
    CONF_FORECAST_DAYS,
    DEFAULT_FORECAST_DAYS,
    SENSOR_CATCH_SCORE,
    SPECIES_NONE,
    WEATHER_CACHE_MINUTES,
)
from .api import OpenMeteoClient
from .best_time import calculate_best_fishing_time
from .data_formatter import DataFormatter
from .data_schema import MarineContext, SpeciesProfile, WeatherSnapshot
from .forecast import build_daily_outlook
from .helpers.astro import get_moon_data
from .marine_data import tides_for_date
from .score import calculate_catch_probability
from .solunar import get_solunar_periods
from .species_loader import SpeciesLoader

_LOGGER = logging.getLogger(__name__)

SCAN_INTERVAL = timedelta(hours=1)


async def async_setup_entry(hass: HomeAssistant, config_entry: ConfigEntry, async_add_entities):
    """Set up the catch forecast sensor from a config entry."""
    data = {**config_entry.data, **config_entry.options}

    # Validate critical config keys early (fail loudly)
    for key in (CONF_NAME, CONF_LATITUDE, CONF_LONGITUDE):
        if key not in data:
            _LOGGER.error("Config entry missing required key: %s", key)
            raise RuntimeError(f"Config entry missing required key: {key}")
    try:
        lat = float(data[CONF_LATITUDE])
        lon = float(data[CONF_LONGITUDE])
    except (TypeError, ValueError):
        _LOGGER.error(
            "Invalid latitude/longitude in config entry: %s / %s", data.get(CONF_LATITUDE), data.get(CONF_LONGITUDE)
        )
        raise RuntimeError("Invalid latitude/longitude in config entry")

    species_profile = None
    species_id = data.get(CONF_SPECIES_ID, SPECIES_NONE)
    if species_id and species_id != SPECIES_NONE:
        species_loader = SpeciesLoader(hass)
        await species_loader.async_load_profiles()
        species_profile = species_loader.get_species(species_id)
        if species_profile is None:
            _LOGGER.warning("Species %s not found in catalog; scoring without species preferences", species_id)

    client = OpenMeteoClient(session=async_get_clientsession(hass))

    async_add_entities(
        [
            CatchForecastSensor(
                name=data[CONF_NAME],
                lat=lat,
                lon=lon,
                client=client,
                species_profile=species_profile,
                marine_enabled=bool(data.get(CONF_MARINE_ENABLED, True)),
                forecast_days=int(data.get(CONF_FORECAST_DAYS, DEFAULT_FORECAST_DAYS)),
                config_entry_id=config_entry.entry_id,
            )
        ],
        True,
    )


class CatchForecastSensor(SensorEntity):
    """Catch probability (0-100 %) for a location, with the daily outlook as attributes."""

    should_poll = True

    def __init__(
        self,
        name: str,
        lat: float,
        lon: float,
        client: OpenMeteoClient,
        species_profile: Optional[SpeciesProfile],
        marine_enabled: bool,
        forecast_days: int,
        config_entry_id: str,
    ):
        self._client = client
        self._lat = lat
        self._lon = lon
        self._species_profile = species_profile
        self._marine_enabled = marine_enabled
        self._forecast_days = forecast_days
        self._config_entry_id = config_entry_id

        self._device_identifier = f"{name}_{lat}_{lon}"
        self._name = f"{name.lower().replace(' ', '_')}_{SENSOR_CATCH_SCORE}"
        self._friendly_name = f"{name} Catch Probability"
        self._state: Optional[int] = None
        self._available = True

        self._cached_conditions: Optional[tuple] = None
        self._cached_at: Optional[datetime] = None

        self._attrs: Dict[str, Any] = {
            "location": name,
            "latitude": lat,
            "longitude": lon,
            "species": species_profile.get("id") if species_profile else None,
        }

    @property
    def name(self):
        return self._friendly_name

    @property
    def unique_id(self):
        return self._name

    @property
    def available(self):
        return self._available

    @property
    def icon(self):
        if self._state is None:
            return "mdi:fish"
        if self._state >= 55:
            return "mdi:fish"
        return "mdi:fish-off"

    @property
    def native_value(self):
        return self._state

    @property
    def extra_state_attributes(self):
        return self._attrs

    @property
    def native_unit_of_measurement(self):
        return "%"

    @property
    def device_info(self):
        return {
            "identifiers": {(DOMAIN, self._device_identifier)},
            "name": self._attrs["location"],
            "manufacturer": "Catch Forecast",
            "model": "Catch Probability Sensor",
            "entry_type": "service",
        }

    async def _get_conditions(self, now: datetime):
        """Return (weather, marine), refetching once the cache is older than 30 minutes."""
        if (
            self._cached_conditions is not None
            and self._cached_at is not None
            and now - self._cached_at < timedelta(minutes=WEATHER_CACHE_MINUTES)
        ):
            return self._cached_conditions

        conditions = await self._client.fetch_conditions(
            self._lat,
            self._lon,
            now,
            include_marine=self._marine_enabled,
            forecast_days=self._forecast_days,
        )
        self._cached_conditions = conditions
        self._cached_at = now
        return conditions

    async def async_update(self):
        """Refresh weather data and recompute the catch probability."""
        now = dt_util.utcnow()
        try:
            weather, marine = await self._get_conditions(now)
            self._apply_prediction(weather, marine, now)
            self._available = True
            _LOGGER.debug("Updated %s: score=%s", self._name, self._state)
        except Exception:
            _LOGGER.exception("Error updating catch forecast sensor %s", self._name)
            self._available = False

    def _apply_prediction(self, weather: WeatherSnapshot, marine: MarineContext, now: datetime) -> None:
        moon = get_moon_data(now)
        solunar = get_solunar_periods(now, self._lat, self._lon)
        assessment = calculate_catch_probability(
            weather, moon, solunar, self._species_profile, marine, now=now
        )
        todays_tides = tides_for_date(marine.get("tides"), now.strftime("%Y-%m-%d"))
        best_window = calculate_best_fishing_time(
            solunar, weather.get("sunrise"), weather.get("sunset"), todays_tides
        )
        outlook = build_daily_outlook(
            weather,
            self._lat,
            self._lon,
            marine,
            self._species_profile,
            now=now,
            days=self._forecast_days,
        )

        self._state = assessment.overall_score
        self._attrs.update(DataFormatter.format_assessment(assessment))
        self._attrs.update(
            {
                "moon": DataFormatter.format_moon(moon),
                "solunar": DataFormatter.format_solunar(solunar),
                "best_window": DataFormatter.format_best_window(best_window),
                "tides": DataFormatter.format_tides(marine.get("tides") or []),
                "outlook": DataFormatter.format_outlook(outlook),
                "last_updated": now.isoformat(),
            }
        )
