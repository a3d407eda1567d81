"""Config flow for Catch Forecast integration."""
from __future__ import annotations
import logging
from typing import Any, Dict, List
import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector
from homeassistant.helpers.aiohttp_client import async_get_clientsession
import homeassistant.helpers.config_validation as cv
from .const import (
    DOMAIN,
    CONF_NAME,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_SPECIES_ID,
    CONF_MARINE_ENABLED,
    CONF_FORECAST_DAYS,
    CONF_LOCATION,
    CONF_LOCATION_QUERY,
    DEFAULT_FORECAST_DAYS,
    DEFAULT_NAME,
    MAX_FORECAST_DAYS,
    SPECIES_NONE,
)
from .api import OpenMeteoClient, OpenMeteoError
from .species_loader import SpeciesLoader

_LOGGER = logging.getLogger(__name__)


def validate_coordinates(user_input: Dict[str, Any]) -> Dict[str, str]:
    """Return form errors for out-of-range or unparseable coordinates."""
    try:
        lat = float(user_input[CONF_LATITUDE])
        lon = float(user_input[CONF_LONGITUDE])
    except (TypeError, ValueError, KeyError):
        return {"base": "invalid_coordinates"}
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return {"base": "invalid_coordinates"}
    return {}


def species_options(species_loader: SpeciesLoader | None) -> List[Dict[str, str]]:
    """Build selector options from the species catalog, "none" first."""
    options = [{"value": SPECIES_NONE, "label": "No specific species"}]
    if species_loader is None:
        return options
    for species in sorted(species_loader.get_all_species(), key=lambda s: s.get("name", s["id"])):
        name = species.get("name", species["id"])
        category = species.get("category")
        label = f"{name} ({category})" if category else name
        options.append({"value": species["id"], "label": label})
    return options


def location_options(results: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Build selector options for geocoding results, keyed by list position."""
    options = []
    for idx, result in enumerate(results):
        try:
            coords = f"{float(result[CONF_LATITUDE]):.4f}, {float(result[CONF_LONGITUDE]):.4f}"
        except (TypeError, ValueError, KeyError):
            continue
        options.append({"value": str(idx), "label": f"{result.get('name') or '?'} ({coords})"})
    return options


def location_defaults(result: Dict[str, Any]) -> Dict[str, Any]:
    """Prefill the location form from a geocoding result."""
    place = (result.get("name") or DEFAULT_NAME).split(",")[0].strip()
    return {
        CONF_NAME: place or DEFAULT_NAME,
        CONF_LATITUDE: float(result[CONF_LATITUDE]),
        CONF_LONGITUDE: float(result[CONF_LONGITUDE]),
    }


def _forecast_days_selector() -> selector.NumberSelector:
    return selector.NumberSelector(
        selector.NumberSelectorConfig(
            min=1,
            max=MAX_FORECAST_DAYS,
            step=1,
            mode=selector.NumberSelectorMode.SLIDER,
        )
    )


class CatchForecastConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Catch Forecast."""

    VERSION = 1

    def __init__(self):
        """Initialize the config flow."""
        self.species_loader = None
        self._search_results: List[Dict[str, Any]] = []
        self._location_defaults: Dict[str, Any] | None = None

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Handle the location and species step.

        A non-empty place name search takes precedence over the coordinates
        and leads to the pick_location step.
        """
        if self.species_loader is None:
            self.species_loader = SpeciesLoader(self.hass)
            await self.species_loader.async_load_profiles()

        errors = {}
        if user_input is not None:
            query = (user_input.pop(CONF_LOCATION_QUERY, None) or "").strip()
            if query:
                errors = await self._search(query)
                if not errors:
                    return await self.async_step_pick_location()
            else:
                errors = validate_coordinates(user_input)
            if not errors and not query:
                user_input[CONF_FORECAST_DAYS] = int(user_input.get(CONF_FORECAST_DAYS, DEFAULT_FORECAST_DAYS))
                await self.async_set_unique_id(
                    f"{float(user_input[CONF_LATITUDE]):.4f}_{float(user_input[CONF_LONGITUDE]):.4f}"
                )
                self._abort_if_unique_id_configured()
                return self.async_create_entry(
                    title=user_input.get(CONF_NAME) or DEFAULT_NAME,
                    data=user_input,
                )

        return self.async_show_form(
            step_id="user",
            data_schema=self._get_user_schema(user_input),
            errors=errors,
        )

    async def async_step_pick_location(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Let the user choose one of the place name search results."""
        if user_input is not None:
            chosen = self._search_results[int(user_input[CONF_LOCATION])]
            self._location_defaults = location_defaults(chosen)
            return await self.async_step_user()

        return self.async_show_form(
            step_id="pick_location",
            data_schema=vol.Schema({
                vol.Required(CONF_LOCATION): selector.SelectSelector(
                    selector.SelectSelectorConfig(
                        options=location_options(self._search_results),
                        mode="list",
                    )
                ),
            }),
        )

    async def _search(self, query: str) -> Dict[str, str]:
        """Run the geocoding search, returning form errors."""
        client = OpenMeteoClient(session=async_get_clientsession(self.hass))
        try:
            results = await client.search_location(query)
        except OpenMeteoError as exc:
            _LOGGER.warning("Location search for %r failed: %s", query, exc)
            return {"base": "search_failed"}

        self._search_results = results
        if not location_options(results):
            return {"base": "no_locations_found"}
        return {}

    def _get_user_schema(self, user_input: dict[str, Any] | None = None):
        """Get the user step schema, prefilled from a previous attempt, a picked place or the HA home location."""
        defaults = user_input or self._location_defaults or {
            CONF_NAME: DEFAULT_NAME,
            CONF_LATITUDE: self.hass.config.latitude,
            CONF_LONGITUDE: self.hass.config.longitude,
        }
        return vol.Schema({
            vol.Optional(CONF_LOCATION_QUERY, default=""): str,
            vol.Required(CONF_NAME, default=defaults.get(CONF_NAME, DEFAULT_NAME)): str,
            vol.Required(CONF_LATITUDE, default=defaults.get(CONF_LATITUDE)): cv.latitude,
            vol.Required(CONF_LONGITUDE, default=defaults.get(CONF_LONGITUDE)): cv.longitude,
            vol.Required(CONF_SPECIES_ID, default=defaults.get(CONF_SPECIES_ID, SPECIES_NONE)): selector.SelectSelector(
                selector.SelectSelectorConfig(
                    options=species_options(self.species_loader),
                    mode="dropdown",
                )
            ),
            vol.Required(CONF_MARINE_ENABLED, default=defaults.get(CONF_MARINE_ENABLED, True)): bool,
            vol.Required(
                CONF_FORECAST_DAYS, default=defaults.get(CONF_FORECAST_DAYS, DEFAULT_FORECAST_DAYS)
            ): _forecast_days_selector(),
        })

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: config_entries.ConfigEntry) -> config_entries.OptionsFlow:
        """Get the options flow for this handler."""
        return OptionsFlowHandler()


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options flow for Catch Forecast."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Manage species, marine and forecast length options."""
        if user_input is not None:
            user_input[CONF_FORECAST_DAYS] = int(user_input.get(CONF_FORECAST_DAYS, DEFAULT_FORECAST_DAYS))
            return self.async_create_entry(title="", data=user_input)

        species_loader = SpeciesLoader(self.hass)
        await species_loader.async_load_profiles()
        current = {**self.config_entry.data, **self.config_entry.options}

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema({
                vol.Required(
                    CONF_SPECIES_ID, default=current.get(CONF_SPECIES_ID, SPECIES_NONE)
                ): selector.SelectSelector(
                    selector.SelectSelectorConfig(
                        options=species_options(species_loader),
                        mode="dropdown",
                    )
                ),
                vol.Required(
                    CONF_MARINE_ENABLED, default=current.get(CONF_MARINE_ENABLED, True)
                ): bool,
                vol.Required(
                    CONF_FORECAST_DAYS, default=current.get(CONF_FORECAST_DAYS, DEFAULT_FORECAST_DAYS)
                ): _forecast_days_selector(),
            }),
        )
