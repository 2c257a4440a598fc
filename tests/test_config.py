"""
Unit tests for configuration loading and validation.
"""
import json
from dataclasses import replace

from watchsim.config import SimConfig, config_from_dict, load_config
from watchsim.validate import validate_config


def test_launcher_shaped_mapping():
    """
    The {"simulation": {...}} layout with camelCase keys maps onto SimConfig.
    """
    cfg = config_from_dict({
        "simulation": {"startDate": "2024-03-01T06:00:00", "archetype": "shift", "speed": "50", "duration": 3},
        "ui": {"theme": "dark"},
    })
    assert cfg.start_iso == "2024-03-01T06:00:00"
    assert cfg.archetype_id == "shift"
    assert cfg.speed == 50, "Numeric strings are accepted"
    assert cfg.duration_days == 3


def test_flat_mapping_and_unknown_keys():
    cfg = config_from_dict({"archetype_id": "athlete", "seed": 9, "colour": "blue"})
    assert cfg.archetype_id == "athlete"
    assert cfg.seed == 9
    assert cfg.speed == SimConfig().speed


def test_out_of_range_speed_uses_default():
    assert config_from_dict({"speed": 5000}).speed == 1
    assert config_from_dict({"speed": "warp"}).speed == 1
    assert config_from_dict({"speed": 1000}).speed == 1000


def test_load_jsonc_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        "// launcher settings\n"
        "{\n"
        '  "simulation": {\n'
        '    /* start of the run */\n'
        '    "startDate": "2024-01-15T00:00:00",\n'
        '    "speed": 100\n'
        "  }\n"
        "}\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.start_iso == "2024-01-15T00:00:00"
    assert cfg.speed == 100

    plain = tmp_path / "plain.json"
    plain.write_text(json.dumps({"duration": 2}), encoding="utf-8")
    assert load_config(plain).duration_days == 2


def test_validate_config():
    assert validate_config(SimConfig()) == [], "Defaults are valid"

    bad = replace(SimConfig(), speed=0, duration_days=0, archetype_id="astronaut",
                  start_iso="not a date", initial_state="HIBERNATE", history_limit=0)
    issues = validate_config(bad)
    assert len(issues) == 6, f"Every field problem should be reported: {issues}"
    assert any("archetype" in i for i in issues)
