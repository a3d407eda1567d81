"""Species profile loader for Catch Forecast."""
import json
import logging
import os
from typing import Any, Dict, List, Optional

from homeassistant.core import HomeAssistant

from .data_schema import SpeciesProfile

_LOGGER = logging.getLogger(__name__)

PROFILES_FILE = os.path.join(os.path.dirname(__file__), "species_profiles.json")


class SpeciesLoader:
    """Load and look up species profiles from the bundled JSON catalog."""

    def __init__(self, hass: Optional[HomeAssistant] = None, json_path: str = PROFILES_FILE):
        """Initialize the species loader."""
        self.hass = hass
        self._json_path = json_path
        self._profiles: Optional[Dict[str, Any]] = None

    def _read_json(self) -> Dict[str, Any]:
        with open(self._json_path, "r", encoding="utf-8") as f:
            return json.load(f)

    async def async_load_profiles(self) -> None:
        """Load species profiles from JSON in the executor."""
        if self.hass is None:
            self.load_profiles()
            return
        try:
            self._profiles = await self.hass.async_add_executor_job(self._read_json)
            _LOGGER.info("Loaded species profiles version %s", self._profiles.get("version", "unknown"))
        except (OSError, ValueError) as err:
            _LOGGER.error("Failed to load species profiles: %s", err)
            self._profiles = self._get_fallback_profiles()

    def load_profiles(self) -> None:
        """Load species profiles synchronously."""
        try:
            self._profiles = self._read_json()
            _LOGGER.info("Loaded species profiles version %s", self._profiles.get("version", "unknown"))
        except (OSError, ValueError) as err:
            _LOGGER.error("Failed to load species profiles: %s", err)
            self._profiles = self._get_fallback_profiles()

    def _get_fallback_profiles(self) -> Dict[str, Any]:
        """Return minimal fallback profiles if JSON fails to load."""
        return {
            "version": "1.0.0-fallback",
            "species": {
                "general": {
                    "name": "General Species",
                    "scientific_name": "",
                    "category": "coarse",
                    "water_types": ["lake", "river", "sea"],
                    "best_months": list(range(1, 13)),
                    "weather_prefs": {},
                }
            },
        }

    def get_species(self, species_id: str) -> Optional[SpeciesProfile]:
        """Get a specific species profile by ID."""
        if not self._profiles:
            return None

        species_dict = self._profiles.get("species", {})
        if species_id in species_dict:
            profile = dict(species_dict[species_id])
            profile["id"] = species_id
            return profile

        return None

    def get_all_species(self) -> List[SpeciesProfile]:
        """Get all species in catalog order."""
        if not self._profiles:
            return []

        all_species = []
        for species_id, species_data in self._profiles.get("species", {}).items():
            profile = dict(species_data)
            profile["id"] = species_id
            all_species.append(profile)

        return all_species

    def get_species_by_category(self, category: str) -> List[SpeciesProfile]:
        """Get all species of a category (predator, coarse, salmonid, saltwater)."""
        return [s for s in self.get_all_species() if s.get("category") == category]
