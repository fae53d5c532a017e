"""Merging of named-entity lists (workspace environments)."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from restload.errors import MalformedDocument
from restload.models import Environment


def merge_by_key(
    existing: Sequence[Mapping[str, Any]],
    incoming: Sequence[Mapping[str, Any]],
    key: str = "name",
) -> list[dict[str, Any]]:
    """Combine two lists of mappings matched on ``key``.

    An incoming entry whose key is already present replaces that entry at the
    same position; new keys are appended in incoming order; existing entries
    without a counterpart are kept. Neither input is mutated.
    """
    merged = [dict(item) for item in existing]
    positions: dict[Any, int] = {}
    for index, item in enumerate(merged):
        positions.setdefault(item.get(key), index)

    for item in incoming:
        value = item.get(key)
        if value in positions:
            merged[positions[value]] = dict(item)
        else:
            positions[value] = len(merged)
            merged.append(dict(item))
    return merged


def apply_policy(
    existing: Sequence[Mapping[str, Any]],
    incoming: Sequence[Mapping[str, Any]],
    *,
    merge: bool,
) -> list[dict[str, Any]]:
    if merge:
        return merge_by_key(existing, incoming, "name")
    return [dict(item) for item in incoming]


def coerce_environments(content: Any) -> list[dict[str, Any]]:
    """Validate an environment document; a single object becomes a one-item list."""
    entries = content if isinstance(content, list) else [content]
    environments: list[dict[str, Any]] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise MalformedDocument(f"Environment #{index} is not an object")
        try:
            environment = Environment.model_validate(entry)
        except ValidationError as exc:
            raise MalformedDocument(f"Environment #{index} is invalid: {exc.errors()[0]['msg']}") from exc
        environments.append(environment.model_dump(exclude_none=True))
    return environments


__all__ = ["apply_policy", "coerce_environments", "merge_by_key"]
