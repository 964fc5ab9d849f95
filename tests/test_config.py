import json

import pytest

from jamo import config


@pytest.fixture
def restore_config(monkeypatch):
    for name in (
        "PLACES_PATHS",
        "SERVER_HOST",
        "SERVER_PORT",
        "NOMINATIM_USER_AGENT",
        "NOMINATIM_LANGUAGE",
        "GEOCODE_CACHE_TTL_SECONDS",
        "SCORING_CONFIG",
        "HUB_CONFIG",
    ):
        monkeypatch.setattr(config, name, getattr(config, name))


def test_load_config_missing_file(tmp_path, restore_config):
    assert config.load_config(str(tmp_path / "nope.json")) is False


def test_load_config_updates_globals(tmp_path, restore_config):
    path = tmp_path / "jamo_config.json"
    path.write_text(
        json.dumps(
            {
                "datasets": {"places": "custom/places.json"},
                "server": {"host": "0.0.0.0", "port": 9001},
                "geocode": {"language": "en"},
                "scoring": {"radius_min_count": 4, "radius_multipliers": [1, 2]},
                "hubs": {"distance_preference_weight": 0.5},
            }
        ),
        encoding="utf-8",
    )

    assert config.load_config(str(path)) is True
    assert config.PLACES_PATHS[0] == "custom/places.json"
    assert config.SERVER_HOST == "0.0.0.0"
    assert config.SERVER_PORT == 9001
    assert config.NOMINATIM_LANGUAGE == "en"
    assert config.SCORING_CONFIG.radius_min_count == 4
    assert config.SCORING_CONFIG.radius_multipliers == (1.0, 2.0)
    assert config.SCORING_CONFIG.quality_gate_min == 0.70
    assert config.HUB_CONFIG.distance_preference_weight == 0.5


def test_unknown_scoring_key_is_rejected(tmp_path, restore_config):
    path = tmp_path / "jamo_config.json"
    path.write_text(json.dumps({"scoring": {"not_a_setting": 1}}), encoding="utf-8")
    with pytest.raises(ValueError):
        config.load_config(str(path))


def test_env_overrides(monkeypatch, restore_config):
    monkeypatch.setenv("JAMO_HOST", "0.0.0.0")
    monkeypatch.setenv("JAMO_PORT", "8123")
    monkeypatch.setenv("NOMINATIM_USER_AGENT", "Jamo-test/2.0")
    config.apply_env_overrides()
    assert config.SERVER_HOST == "0.0.0.0"
    assert config.SERVER_PORT == 8123
    assert config.NOMINATIM_USER_AGENT == "Jamo-test/2.0"


def test_hub_profile_lookup():
    assert config.HUB_CONFIG.profile("plane").cruise_kmh == 820.0
    with pytest.raises(ValueError):
        config.HUB_CONFIG.profile("boat")


def test_module_defaults_read_at_call_time(monkeypatch):
    from jamo.scoring import passes_quality_gate
    from jamo.normalize import Style

    monkeypatch.setattr(config, "SCORING_CONFIG", config.ScoringConfig(quality_gate_min=0.9))
    assert not passes_quality_gate(0.8, Style.GEM)
