"""File-reader capability injected into the orchestrator and the cache service.

Two bindings exist, chosen once from the host context: ``FilesystemReader``
for desktop hosts that can touch the local disk, ``HttpReader`` for
browser-hosted sessions that can only fetch over HTTP.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx

from .errors import ConfigError, SourceUnavailable
from .lib.json import try_loads
from .lib.log import get_logger
from .models import RawFile
from .paths import source_basename

logger = get_logger(__name__)

DEFAULT_HTTP_TIMEOUT = 30.0


@runtime_checkable
class SourceReader(Protocol):
    async def fetch(self, path: str) -> RawFile:
        """Read one source; raises SourceUnavailable."""
        ...

    async def read(self, path: str) -> RawFile | None:
        """Read one source; logs and returns None when it is unavailable."""
        ...


class _ReaderBase:
    async def fetch(self, path: str) -> RawFile:
        raise NotImplementedError

    async def read(self, path: str) -> RawFile | None:
        try:
            return await self.fetch(path)
        except SourceUnavailable as exc:
            logger.warning("Failed to read source", path=path, reason=exc.reason)
            return None


class FilesystemReader(_ReaderBase):
    """Reads local files; ``.json`` files are parsed, everything else is text.

    Relative paths are tried against ``workspace_location`` first, then
    against the process working directory.
    """

    def __init__(self, workspace_location: str | Path | None = None) -> None:
        self.workspace_location = Path(workspace_location).expanduser() if workspace_location else None

    def resolve(self, path: str) -> Path:
        candidates = []
        if self.workspace_location is not None:
            candidates.append((self.workspace_location / path).resolve())
        candidates.append(Path(path).expanduser().resolve())
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        raise SourceUnavailable(path, f"Cannot find file: {candidates[-1]}")

    async def fetch(self, path: str) -> RawFile:
        resolved = self.resolve(path)
        try:
            text = await asyncio.to_thread(resolved.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnavailable(path, f"{exc} {resolved}") from exc
        name = resolved.name
        if name.lower().endswith(".json"):
            ok, value = try_loads(text)
            if not ok:
                raise SourceUnavailable(path, "file is not valid JSON")
            return RawFile(name=name, content=value, kind="structured")
        return RawFile(name=name, content=text, kind="text")


class HttpReader(_ReaderBase):
    """Fetches sources over HTTP; bodies that parse as JSON are structured.

    Relative paths resolve against ``base_url``. Pass ``client`` to share a
    connection pool (or a mock transport in tests).
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self.base_url = base_url
        self._client = client
        self._timeout = timeout

    def url_for(self, path: str) -> str:
        if not self.base_url or "://" in path:
            return path
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    async def fetch(self, path: str) -> RawFile:
        url = self.url_for(path)
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                    response = await client.get(url)
        except httpx.HTTPError as exc:
            raise SourceUnavailable(path, str(exc) or type(exc).__name__) from exc
        if not response.is_success:
            raise SourceUnavailable(path, f"{response.status_code} {response.reason_phrase}")
        text = response.text
        name = source_basename(path)
        ok, value = try_loads(text)
        if ok:
            return RawFile(name=name, content=value, kind="structured")
        return RawFile(name=name, content=text, kind="text")


def select_reader(
    host: str,
    *,
    workspace_location: str | None = None,
    base_url: str = "",
    client: httpx.AsyncClient | None = None,
) -> SourceReader:
    if host == "desktop":
        return FilesystemReader(workspace_location)
    if host == "browser":
        return HttpReader(base_url, client=client)
    raise ConfigError(f"Unknown host context: {host}")


__all__ = ["FilesystemReader", "HttpReader", "SourceReader", "select_reader"]
