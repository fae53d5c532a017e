"""CLI helper functions."""

from __future__ import annotations

from typing import NoReturn

from restload.cli.types import AppEnv
from restload.errors import ConfigError
from restload.settings import AutoLoadSettings, load_settings


def fail(command: str, message: str) -> NoReturn:
    raise SystemExit(f"{command}: {message}")


def load_effective_settings(env: AppEnv, command: str) -> AutoLoadSettings:
    try:
        return load_settings(env.settings_path)
    except ConfigError as exc:
        fail(command, str(exc))
