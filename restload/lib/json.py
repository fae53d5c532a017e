"""Central JSON utilities using orjson."""

from __future__ import annotations

from typing import Any

import orjson

# orjson.JSONDecodeError subclasses ValueError
JSONDecodeError = orjson.JSONDecodeError


def dumps(obj: Any, *, indent: bool = False) -> str:
    """Dump object to a JSON string."""
    option = orjson.OPT_INDENT_2 if indent else None
    if option is None:
        return orjson.dumps(obj).decode("utf-8")
    return orjson.dumps(obj, option=option).decode("utf-8")


def loads(obj: str | bytes) -> Any:
    """Load object from a JSON string or bytes."""
    return orjson.loads(obj)


def try_loads(text: str) -> tuple[bool, Any]:
    """Parse text as JSON, returning (ok, value) instead of raising."""
    try:
        return True, orjson.loads(text)
    except orjson.JSONDecodeError:
        return False, None


__all__ = ["JSONDecodeError", "dumps", "loads", "try_loads"]
