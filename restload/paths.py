"""Shared filesystem paths and helpers for Restload."""

from __future__ import annotations

import os
import re
from hashlib import sha256
from pathlib import Path


def _xdg_path(env_var: str, fallback: Path) -> Path:
    raw = os.environ.get(env_var)
    if raw:
        return Path(raw).expanduser()
    return fallback


CONFIG_ROOT = _xdg_path("XDG_CONFIG_HOME", Path.home() / ".config")
CACHE_ROOT = _xdg_path("XDG_CACHE_HOME", Path.home() / ".cache")

CONFIG_HOME = CONFIG_ROOT / "restload"
CACHE_HOME = CACHE_ROOT / "restload"

DEFAULT_SETTINGS_PATH = CONFIG_HOME / "settings.json"
DEFAULT_AUTOLOAD_CONFIG = "collections-envs.yaml"
DEFAULT_SERVICE_CONFIG = CONFIG_HOME / DEFAULT_AUTOLOAD_CONFIG
DEFAULT_CACHE_DIR = CACHE_HOME / "auto-load-cache"

_SAFE_PATH_COMPONENT_RE = re.compile(r"[^A-Za-z0-9._-]")


def safe_path_component(raw: str, *, fallback: str = "item") -> str:
    """Return a filesystem-safe path component derived from raw input."""
    if raw is None:
        raw = ""
    value = str(raw).strip()
    if not value:
        value = fallback
    has_sep = any(sep in value for sep in (os.sep, os.altsep) if sep)
    safe = _SAFE_PATH_COMPONENT_RE.sub("_", value)
    if safe in {"", ".", ".."}:
        safe = fallback
    if has_sep or safe != value:
        digest = sha256(value.encode("utf-8")).hexdigest()[:32]
        prefix = safe.strip("._-") or fallback
        prefix = prefix[:12]
        return f"{prefix}-{digest}"
    return safe


def source_basename(path: str) -> str:
    """Last path segment of a filesystem path or URL, like ``a/b/c.json`` -> ``c.json``."""
    trimmed = path.split("?", 1)[0].split("#", 1)[0].rstrip("/")
    return trimmed.rsplit("/", 1)[-1] or path


def service_config_path() -> Path:
    raw = os.environ.get("RESTLOAD_SERVICE_CONFIG")
    if raw:
        return Path(raw).expanduser()
    return DEFAULT_SERVICE_CONFIG


def cache_dir() -> Path:
    raw = os.environ.get("RESTLOAD_CACHE_DIR")
    if raw:
        return Path(raw).expanduser()
    return DEFAULT_CACHE_DIR


__all__ = [
    "CONFIG_HOME",
    "CACHE_HOME",
    "CONFIG_ROOT",
    "CACHE_ROOT",
    "DEFAULT_AUTOLOAD_CONFIG",
    "DEFAULT_CACHE_DIR",
    "DEFAULT_SERVICE_CONFIG",
    "DEFAULT_SETTINGS_PATH",
    "cache_dir",
    "safe_path_component",
    "service_config_path",
    "source_basename",
]
