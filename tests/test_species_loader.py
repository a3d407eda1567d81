import asyncio

from custom_components.catch_forecast.species_loader import SpeciesLoader


def make_loader(**kwargs):
    loader = SpeciesLoader(**kwargs)
    loader.load_profiles()
    return loader


def test_get_species():
    pike = make_loader().get_species("pike")
    assert pike["id"] == "pike"
    assert pike["name"] == "Northern Pike"
    assert pike["weather_prefs"]["pressure"]["trend"] == "falling"


def test_unknown_species():
    assert make_loader().get_species("kraken") is None


def test_all_species_have_ids_and_preferences():
    species = make_loader().get_all_species()
    assert len(species) >= 8
    for profile in species:
        assert profile["id"]
        assert "weather_prefs" in profile


def test_species_by_category():
    ids = {s["id"] for s in make_loader().get_species_by_category("saltwater")}
    assert {"sea_bass", "cod", "mackerel"} <= ids
    assert "pike" not in ids


def test_lookups_return_copies():
    loader = make_loader()
    loader.get_species("pike")["name"] = "changed"
    assert loader.get_species("pike")["name"] == "Northern Pike"


def test_fallback_when_catalog_missing(tmp_path):
    loader = make_loader(json_path=str(tmp_path / "missing.json"))
    assert [s["id"] for s in loader.get_all_species()] == ["general"]


def test_fallback_when_catalog_invalid(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    loader = make_loader(json_path=str(path))
    assert loader.get_species("general") is not None


def test_nothing_before_loading():
    loader = SpeciesLoader()
    assert loader.get_species("pike") is None
    assert loader.get_all_species() == []


def test_async_load_without_hass():
    loader = SpeciesLoader()
    asyncio.run(loader.async_load_profiles())
    assert loader.get_species("carp") is not None
