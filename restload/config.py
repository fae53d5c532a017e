"""Declarative auto-load config document (``collections-envs.yaml``).

Recognized top-level keys are ``collections`` and ``environments``, each a
list of source locators (plain strings or ``{path: ...}`` mappings). Unknown
keys are ignored. List order is load order.
"""

from __future__ import annotations

from typing import Any

import yaml

from .errors import ConfigError
from .lib.log import get_logger
from .models import AutoLoadConfig, ImportSource, RawFile

logger = get_logger(__name__)

_SECTIONS = ("collections", "environments")


def parse_simple_list_document(text: str) -> dict[str, list[str]]:
    """Line-oriented reader for the two-section list shape.

    Understands ``collections:`` / ``environments:`` headers followed by
    ``- item`` lines; any other ``key:`` line ends the current section.
    Comments, blank lines and anything else are skipped.
    Surrounding quotes are stripped from items.
    """
    result: dict[str, list[str]] = {}
    section: str | None = None
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        header = stripped[:-1] if stripped.endswith(":") else None
        if header is not None and not stripped.startswith("- "):
            section = header if header in _SECTIONS else None
            if section:
                result[section] = []
            continue
        if section and stripped.startswith("- "):
            item = stripped[2:].strip()
            if len(item) >= 2 and item[0] == item[-1] and item[0] in "\"'":
                item = item[1:-1]
            elif item[:1] in "\"'":
                item = item[1:]
            elif item[-1:] in "\"'":
                item = item[:-1]
            if item:
                result[section].append(item)
    return result


def _sources(raw: Any, section: str) -> list[ImportSource]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"Config '{section}' must be a list")
    sources = []
    for entry in raw:
        if isinstance(entry, str) and entry.strip():
            sources.append(ImportSource(path=entry.strip()))
        elif isinstance(entry, dict) and isinstance(entry.get("path"), str) and entry["path"].strip():
            sources.append(ImportSource(path=entry["path"].strip()))
        else:
            raise ConfigError(f"Config '{section}' entries must be paths, got {entry!r}")
    return sources


def config_from_mapping(raw: Any) -> AutoLoadConfig:
    if raw is None:
        return AutoLoadConfig()
    if not isinstance(raw, dict):
        raise ConfigError("Auto-load config must be a mapping")
    return AutoLoadConfig(
        collections=_sources(raw.get("collections"), "collections"),
        environments=_sources(raw.get("environments"), "environments"),
    )


def parse_config_text(text: str) -> AutoLoadConfig:
    """Parse a YAML (or JSON) config document.

    Falls back to ``parse_simple_list_document`` when PyYAML rejects the
    text, so hand-edited files with minor syntax slips still load.
    """
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.info("Config is not valid YAML, using simple list parser", error=str(exc))
        raw = parse_simple_list_document(text)
    return config_from_mapping(raw)


def parse_config_file(raw_file: RawFile) -> AutoLoadConfig:
    if raw_file.kind == "structured":
        return config_from_mapping(raw_file.content)
    return parse_config_text(raw_file.text)


__all__ = [
    "config_from_mapping",
    "parse_config_file",
    "parse_config_text",
    "parse_simple_list_document",
]
