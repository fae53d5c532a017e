"""Tests for auto-load settings resolution."""

import json

import pytest

from restload.errors import ConfigError
from restload.settings import AutoLoadSettings, load_settings, validate_settings


def test_defaults_without_file():
    settings = load_settings(use_env=False)
    assert settings == AutoLoadSettings()
    assert settings.enabled is True
    assert settings.skip_on_existing_data is True
    assert settings.merge_environments is True
    assert settings.default_import_type == "native"


def test_settings_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"merge_environments": False, "default_import_type": "postman", "readiness_attempts": 3}),
        encoding="utf-8",
    )
    settings = load_settings(path, use_env=False)
    assert settings.merge_environments is False
    assert settings.default_import_type == "Postman"
    assert settings.readiness_attempts == 3


def test_unknown_setting_in_file_raises(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"skipOnExistingData": True}), encoding="utf-8")
    with pytest.raises(ConfigError, match="Unknown setting"):
        load_settings(path, use_env=False)


def test_explicit_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_settings(tmp_path / "missing.json")


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{nope", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(path)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RESTLOAD_ENABLED", "off")
    monkeypatch.setenv("RESTLOAD_READINESS_INTERVAL", "0.5")
    monkeypatch.setenv("RESTLOAD_WORKSPACE_LOCATION", "/srv/workspace")
    monkeypatch.setenv("RESTLOAD_TOPOLOGY", "delegated")

    settings = load_settings()
    assert settings.enabled is False
    assert settings.readiness_interval == 0.5
    assert settings.workspace_location == "/srv/workspace"
    assert settings.topology == "delegated"


def test_bad_boolean_raises(monkeypatch):
    monkeypatch.setenv("RESTLOAD_ENABLED", "maybe")
    with pytest.raises(ConfigError, match="true/false"):
        load_settings()


@pytest.mark.parametrize(
    "overrides",
    [
        {"default_import_type": "har"},
        {"topology": "peer"},
        {"host": "mobile"},
        {"readiness_attempts": 0},
        {"readiness_interval": -1.0},
    ],
)
def test_validate_rejects(overrides):
    with pytest.raises(ConfigError):
        validate_settings(AutoLoadSettings(**overrides))


def test_validate_canonicalizes_import_type():
    assert validate_settings(AutoLoadSettings(default_import_type="OPENAPI")).default_import_type == "OpenAPI"
