"""On-disk cache of auto-load sources: one blob per source plus a manifest.

Writes go blobs first, manifest last (atomic rename), so a reader that finds
a manifest always finds the blobs it names. Each write cycle gets its own
generation token in the blob names; the previous generation is kept for
readers still holding the old manifest, anything older is pruned.
"""

from __future__ import annotations

import os
import secrets
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from .lib.json import JSONDecodeError, dumps, loads
from .lib.log import get_logger
from .models import CacheEntry, CachedObjects, CacheManifest, RawFile
from .paths import safe_path_component

logger = get_logger(__name__)

MANIFEST_NAME = "manifest.json"
_BLOB_PREFIXES = ("collection-", "env-")


def _atomic_write(path: Path, text: str) -> None:
    tmp = path.with_name(f".{path.name}.{secrets.token_hex(4)}.tmp")
    tmp.write_text(text, encoding="utf-8")
    os.replace(tmp, path)


class CacheStore:
    def __init__(self, root: Path) -> None:
        self.root = root

    @property
    def manifest_path(self) -> Path:
        return self.root / MANIFEST_NAME

    def read_manifest(self) -> CacheManifest | None:
        try:
            text = self.manifest_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return CacheManifest.model_validate(loads(text))
        except (JSONDecodeError, ValidationError) as exc:
            logger.error("Corrupt auto-load cache manifest", path=str(self.manifest_path), error=str(exc))
            return None

    def _write_blobs(self, prefix: str, generation: str, files: list[RawFile]) -> list[CacheEntry]:
        entries = []
        for index, raw in enumerate(files):
            blob = f"{prefix}{generation}-{index:03d}-{safe_path_component(raw.name)}"
            text = raw.content if raw.kind == "text" else dumps(raw.content)
            _atomic_write(self.root / blob, text)
            entries.append(CacheEntry(name=raw.name, blob=blob, kind=raw.kind))
        return entries

    def write(self, collections: list[RawFile], environments: list[RawFile]) -> CacheManifest:
        self.root.mkdir(parents=True, exist_ok=True)
        previous = self.read_manifest()
        now = datetime.now(timezone.utc)
        generation = f"{now.strftime('%Y%m%dT%H%M%S')}{secrets.token_hex(3)}"

        manifest = CacheManifest(
            collections=self._write_blobs("collection-", generation, collections),
            environments=self._write_blobs("env-", generation, environments),
            timestamp=now.isoformat(),
            generation=generation,
        )
        _atomic_write(self.manifest_path, dumps(manifest.model_dump()))

        keep = {generation}
        if previous is not None:
            keep.add(previous.generation)
        self._prune(keep)
        logger.info(
            "Cached auto-load objects",
            collections=len(manifest.collections),
            environments=len(manifest.environments),
            generation=generation,
        )
        return manifest

    def _prune(self, keep: set[str]) -> None:
        for path in self.root.iterdir():
            name = path.name
            prefix = next((p for p in _BLOB_PREFIXES if name.startswith(p)), None)
            if prefix is None:
                continue
            generation = name[len(prefix):].split("-", 1)[0]
            if generation not in keep:
                path.unlink(missing_ok=True)

    def _read_entry(self, entry: CacheEntry) -> RawFile:
        text = (self.root / entry.blob).read_text(encoding="utf-8")
        content = loads(text) if entry.kind == "structured" else text
        return RawFile(name=entry.name, content=content, kind=entry.kind)

    def read_objects(self) -> CachedObjects | None:
        manifest = self.read_manifest()
        if manifest is None:
            return None
        try:
            return CachedObjects(
                collections=[self._read_entry(entry) for entry in manifest.collections],
                environments=[self._read_entry(entry) for entry in manifest.environments],
            )
        except (OSError, JSONDecodeError) as exc:
            logger.error("Failed to read cached objects", error=str(exc))
            return None


__all__ = ["CacheStore", "MANIFEST_NAME"]
