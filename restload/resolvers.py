"""Auto-load source resolution, one implementation per deployment topology.

``direct``: the orchestrator's own reader loads the config document and every
listed source. ``delegated``: a readiness/cache service has already fetched
everything; the orchestrator waits for it and downloads the cached objects.
Both produce the same ``ResolvedSources`` shape.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol

import httpx
from pydantic import ValidationError
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_fixed

from .config import parse_config_file
from .errors import ConfigError, ConfigResolutionError, ReadinessTimeout
from .lib.log import get_logger
from .models import CachedObjects, ImportSource, RawFile, ResolvedSources
from .readers import SourceReader, select_reader
from .settings import DEFAULT_READINESS_ATTEMPTS, DEFAULT_READINESS_INTERVAL, AutoLoadSettings

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class SourceResolver(Protocol):
    async def resolve(self) -> ResolvedSources: ...


class DirectSourceResolver:
    """Reads the config document and its sources through one reader.

    A missing config document means nothing is configured and resolves to
    no sources; a config that exists but cannot be parsed is an error.
    Unreadable sources are skipped.
    """

    def __init__(self, reader: SourceReader, config_file: str) -> None:
        self.reader = reader
        self.config_file = config_file

    async def resolve(self) -> ResolvedSources:
        raw = await self.reader.read(self.config_file)
        if raw is None:
            logger.info("No auto-load config found, nothing to load", config_file=self.config_file)
            return ResolvedSources()
        try:
            config = parse_config_file(raw)
        except ConfigError as exc:
            raise ConfigResolutionError(f"Invalid auto-load config {self.config_file}: {exc}") from exc

        resolved = ResolvedSources()
        if config.collections:
            logger.info("Auto-loading collections", sources=[s.path for s in config.collections])
            resolved.collections = await self._read_all(config.collections)
        if config.environments:
            logger.info("Auto-loading environments", sources=[s.path for s in config.environments])
            resolved.environments = await self._read_all(config.environments)
        return resolved

    async def _read_all(self, sources: list[ImportSource]) -> list[RawFile]:
        files = []
        for source in sources:
            raw = await self.reader.read(source.path)
            if raw is not None:
                files.append(raw)
        return files


class _NotReady(Exception):
    pass


class DelegatedSourceResolver:
    """Polls the readiness service, then downloads its cached objects."""

    def __init__(
        self,
        service_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        attempts: int = DEFAULT_READINESS_ATTEMPTS,
        interval: float = DEFAULT_READINESS_INTERVAL,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.service_url = service_url.rstrip("/")
        self._client = client
        self.attempts = attempts
        self.interval = interval
        self._sleep = sleep

    async def resolve(self) -> ResolvedSources:
        if self._client is not None:
            return await self._resolve_with(self._client)
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await self._resolve_with(client)

    async def _resolve_with(self, client: httpx.AsyncClient) -> ResolvedSources:
        await self.wait_until_ready(client)
        return await self.fetch_objects(client)

    async def _check_status(self, client: httpx.AsyncClient) -> None:
        response = await client.get(f"{self.service_url}/status")
        response.raise_for_status()
        if not response.json().get("initialized"):
            raise _NotReady()

    async def wait_until_ready(self, client: httpx.AsyncClient) -> None:
        retryer = AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.interval),
            retry=retry_if_exception_type((_NotReady, httpx.HTTPError, ValueError)),
            sleep=self._sleep,
        )
        try:
            async for attempt in retryer:
                with attempt:
                    await self._check_status(client)
        except RetryError as exc:
            waited = self.attempts * self.interval
            raise ReadinessTimeout(
                f"Auto-load service at {self.service_url} not ready after {self.attempts} attempts ({waited:g}s)"
            ) from exc
        logger.debug("Auto-load service ready", service_url=self.service_url)

    async def fetch_objects(self, client: httpx.AsyncClient) -> ResolvedSources:
        try:
            response = await client.get(f"{self.service_url}/objects")
        except httpx.HTTPError as exc:
            raise ConfigResolutionError(f"Failed to fetch cached objects: {exc}") from exc
        if response.status_code == 404:
            raise ConfigResolutionError("Auto-load service has no cached objects")
        if not response.is_success:
            raise ConfigResolutionError(f"Failed to fetch cached objects: {response.status_code} {response.reason_phrase}")
        try:
            objects = CachedObjects.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ConfigResolutionError(f"Malformed cached objects payload: {exc}") from exc
        return ResolvedSources(collections=objects.collections, environments=objects.environments)


def build_resolver(
    settings: AutoLoadSettings,
    *,
    reader: SourceReader | None = None,
    client: httpx.AsyncClient | None = None,
    sleep: Sleep = asyncio.sleep,
) -> SourceResolver:
    """Pick the resolver for the configured topology; there is no fallback between them."""
    if settings.topology == "delegated":
        return DelegatedSourceResolver(
            settings.service_url,
            client=client,
            attempts=settings.readiness_attempts,
            interval=settings.readiness_interval,
            sleep=sleep,
        )
    if reader is None:
        reader = select_reader(settings.host, workspace_location=settings.workspace_location, client=client)
    return DirectSourceResolver(reader, settings.config_file)


__all__ = [
    "DelegatedSourceResolver",
    "DirectSourceResolver",
    "SourceResolver",
    "build_resolver",
]
