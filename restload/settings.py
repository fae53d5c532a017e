"""Auto-load switches consumed by the orchestrator.

Resolution order: dataclass defaults, then an optional JSON settings file,
then ``RESTLOAD_*`` environment variables.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

from .errors import ConfigError, UnsupportedFormat
from .importers.normalizer import AUTO, IMPORT_FORMATS, canonical_format
from .paths import DEFAULT_AUTOLOAD_CONFIG, DEFAULT_SETTINGS_PATH

TOPOLOGIES = ("direct", "delegated")
HOSTS = ("desktop", "browser")

DEFAULT_SERVICE_URL = "http://localhost:4004/api/auto-load"
DEFAULT_READINESS_ATTEMPTS = 30
DEFAULT_READINESS_INTERVAL = 2.0

_ENV_PREFIX = "RESTLOAD_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class AutoLoadSettings:
    enabled: bool = True
    skip_on_existing_data: bool = True
    merge_environments: bool = True
    default_import_type: str = "native"
    config_file: str = DEFAULT_AUTOLOAD_CONFIG
    topology: str = "direct"
    host: str = "browser"
    service_url: str = DEFAULT_SERVICE_URL
    readiness_attempts: int = DEFAULT_READINESS_ATTEMPTS
    readiness_interval: float = DEFAULT_READINESS_INTERVAL
    workspace_location: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _coerce(name: str, value: Any, target: Any) -> Any:
    if isinstance(target, bool):
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ConfigError(f"Setting '{name}' must be true/false, got {value!r}")
    if isinstance(target, int):
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Setting '{name}' must be an integer, got {value!r}") from exc
    if isinstance(target, float):
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Setting '{name}' must be a number, got {value!r}") from exc
    if value is None:
        return None
    return str(value)


def validate_settings(settings: AutoLoadSettings) -> AutoLoadSettings:
    try:
        import_type = canonical_format(settings.default_import_type)
    except UnsupportedFormat as exc:
        allowed = ", ".join((*IMPORT_FORMATS, AUTO))
        raise ConfigError(f"Invalid default_import_type '{settings.default_import_type}' (expected one of {allowed})") from exc
    settings.default_import_type = import_type
    if settings.topology not in TOPOLOGIES:
        raise ConfigError(f"Invalid topology '{settings.topology}' (expected one of {', '.join(TOPOLOGIES)})")
    if settings.host not in HOSTS:
        raise ConfigError(f"Invalid host '{settings.host}' (expected one of {', '.join(HOSTS)})")
    if settings.readiness_attempts < 1:
        raise ConfigError("readiness_attempts must be at least 1")
    if settings.readiness_interval < 0:
        raise ConfigError("readiness_interval must not be negative")
    return settings


def _apply(settings: AutoLoadSettings, values: dict[str, Any], *, strict: bool) -> None:
    known = {field.name: field for field in fields(AutoLoadSettings)}
    unknown = set(values) - set(known)
    if unknown and strict:
        raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
    for name, value in values.items():
        if name not in known:
            continue
        current = getattr(settings, name)
        # Optional[str] fields default to None; treat them as strings
        target = current if current is not None else ""
        setattr(settings, name, _coerce(name, value, target))


def _env_values() -> dict[str, str]:
    values = {}
    for field in fields(AutoLoadSettings):
        raw = os.environ.get(_ENV_PREFIX + field.name.upper())
        if raw is not None:
            values[field.name] = raw
    return values


def load_settings(path: Optional[Path] = None, *, use_env: bool = True) -> AutoLoadSettings:
    settings = AutoLoadSettings()
    settings_path = path or DEFAULT_SETTINGS_PATH
    if settings_path.exists():
        try:
            raw = json.loads(settings_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Settings file {settings_path} is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError("Settings payload must be a JSON object")
        _apply(settings, raw, strict=True)
    elif path is not None:
        raise ConfigError(f"Settings file not found: {settings_path}")
    if use_env:
        _apply(settings, _env_values(), strict=False)
    return validate_settings(settings)


__all__ = [
    "AutoLoadSettings",
    "DEFAULT_READINESS_ATTEMPTS",
    "DEFAULT_READINESS_INTERVAL",
    "DEFAULT_SERVICE_URL",
    "HOSTS",
    "TOPOLOGIES",
    "load_settings",
    "validate_settings",
]
