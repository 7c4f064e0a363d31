from pathlib import Path

import pytest
from pydantic import ValidationError

from kalkoto.config import DEFAULT_SETTINGS, SimulationSettings, load_settings

ROOT = Path(__file__).resolve().parents[1]


def test_defaults():
    settings = load_settings()

    assert settings.max_workers is None
    assert settings.on_error == DEFAULT_SETTINGS["on_error"]
    assert settings.csv_delimiter == ";"
    assert settings.policy_dir == Path("policies")


def test_yaml_file_then_overrides():
    settings = load_settings(ROOT / "config" / "settings.yaml", output_prefix="test", max_workers=None)

    assert settings.max_workers == 4
    assert settings.output_prefix == "test"
    assert settings.serialize_rule_calls is True


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        SimulationSettings(on_error="ignore")
    with pytest.raises(ValidationError):
        SimulationSettings(max_workers=0)
    with pytest.raises(ValidationError):
        SimulationSettings(csv_delimiter=";;")
    with pytest.raises(ValidationError):
        load_settings(workers=2)


def test_settings_file_must_be_a_mapping(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- max_workers\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(path)
