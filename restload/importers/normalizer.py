"""Format dispatch: foreign export document -> ImportBundle.

Each format is one pure transform with a uniform output shape; adding a
format means adding a tag and a case here.
"""

from __future__ import annotations

from typing import Any

from restload.errors import UnsupportedFormat
from restload.lib.log import get_logger
from restload.models import ImportBundle

from . import insomnia, native, openapi, postman

logger = get_logger(__name__)

NATIVE = "native"
POSTMAN = "Postman"
INSOMNIA = "Insomnia"
OPENAPI = "OpenAPI"
AUTO = "auto"

IMPORT_FORMATS = (NATIVE, POSTMAN, INSOMNIA, OPENAPI)
_CANONICAL = {name.lower(): name for name in (*IMPORT_FORMATS, AUTO)}
_CANONICAL["swagger"] = OPENAPI


def canonical_format(tag: str) -> str:
    """Resolve a format tag case-insensitively; raises UnsupportedFormat."""
    resolved = _CANONICAL.get(str(tag).strip().lower())
    if resolved is None:
        raise UnsupportedFormat(f"Unsupported import type: {tag}")
    return resolved


def detect_format(content: Any) -> str | None:
    """Guess the export format from the document's shape."""
    if isinstance(content, str):
        return OPENAPI if openapi.looks_like(content) else None
    if insomnia.looks_like(content):
        return INSOMNIA
    if postman.looks_like(content):
        return POSTMAN
    if openapi.looks_like(content):
        return OPENAPI
    if native.looks_like(content) or isinstance(content, list):
        return NATIVE
    return None


def normalize(content: Any, fmt: str, workspace_id: str) -> ImportBundle:
    """Convert one foreign document into a canonical tree plus side artifacts.

    Unknown format tags (and undetectable documents under ``auto``) yield an
    empty bundle and a warning. Structurally invalid documents raise
    ``MalformedDocument``. Ids in the result are document-scoped or missing;
    run ``remap`` before merging into a workspace.
    """
    try:
        resolved = canonical_format(fmt)
    except UnsupportedFormat:
        logger.warning("Unsupported import type", import_type=fmt)
        return ImportBundle()

    if resolved == AUTO:
        detected = detect_format(content)
        if detected is None:
            logger.warning("Could not detect import type")
            return ImportBundle()
        logger.debug("Detected import type", import_type=detected)
        resolved = detected

    if resolved == NATIVE:
        return native.parse(content, workspace_id)
    if resolved == POSTMAN:
        return postman.parse(content, workspace_id)
    if resolved == INSOMNIA:
        return ImportBundle(tree=insomnia.parse(content, workspace_id))
    return ImportBundle(tree=openapi.parse(content, workspace_id))


__all__ = [
    "AUTO",
    "IMPORT_FORMATS",
    "INSOMNIA",
    "NATIVE",
    "OPENAPI",
    "POSTMAN",
    "canonical_format",
    "detect_format",
    "normalize",
]
