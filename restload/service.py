"""Readiness & cache service: fetch configured sources once, serve them many times.

Runs inside the server process. The first load cycle starts with the
process; later cycles run only on an explicit reload. Each source gets a
bounded number of fetch attempts at a fixed interval, and sources that never
succeed are skipped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

from tenacity import AsyncRetrying, RetryError, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_fixed

from .cache import CacheStore
from .config import parse_config_text
from .errors import ConfigError, RestloadError, SourceUnavailable
from .lib.log import get_logger
from .models import AutoLoadConfig, CachedObjects, ImportSource, RawFile, StatusPayload
from .readers import HttpReader, SourceReader

logger = get_logger(__name__)

DEFAULT_FETCH_ATTEMPTS = 60
DEFAULT_FETCH_INTERVAL = 1.0

Sleep = Callable[[float], Awaitable[None]]


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.debug(
        "Fetch attempt failed",
        attempt=retry_state.attempt_number,
        error=str(exc) if exc else None,
    )


class ReadinessService:
    def __init__(
        self,
        config_path: Path,
        cache: CacheStore,
        reader: SourceReader | None = None,
        *,
        attempts: int = DEFAULT_FETCH_ATTEMPTS,
        interval: float = DEFAULT_FETCH_INTERVAL,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config_path = config_path
        self.cache = cache
        self.reader = reader or HttpReader()
        self.attempts = attempts
        self.interval = interval
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self.initialized = False
        self.loaded: CachedObjects | None = None

    def status(self) -> StatusPayload:
        return StatusPayload(
            initialized=self.initialized,
            hasCollections=bool(self.loaded and self.loaded.collections),
            hasEnvironments=bool(self.loaded and self.loaded.environments),
        )

    def start(self) -> asyncio.Task[None]:
        """Schedule the startup load cycle on the running loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._initialize())
        return self._task

    async def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def _initialize(self) -> None:
        logger.info("Initializing auto-load", config=str(self.config_path))
        try:
            await self.load_cycle()
        except ConfigError as exc:
            logger.warning("Auto-load initialization failed or no config found", error=str(exc))
            return
        except (RestloadError, OSError) as exc:
            logger.error("Auto-load initialization failed", error=str(exc))
            return
        logger.info("Auto-load initialized successfully")

    def _read_config(self) -> AutoLoadConfig:
        try:
            text = self.config_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ConfigError(f"Auto-load config not found: {self.config_path}") from exc
        return parse_config_text(text)

    async def fetch_with_retry(self, source: ImportSource) -> RawFile | None:
        retryer = AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.interval),
            retry=retry_if_exception_type(SourceUnavailable),
            before_sleep=_log_retry,
            sleep=self._sleep,
        )
        try:
            async for attempt in retryer:
                with attempt:
                    raw = await self.reader.fetch(source.path)
        except RetryError as exc:
            last = exc.last_attempt.exception()
            logger.error(
                "Failed to fetch source, skipped",
                path=source.path,
                attempts=self.attempts,
                error=str(last) if last else None,
            )
            return None
        return raw

    async def _fetch_all(self, sources: list[ImportSource]) -> list[RawFile]:
        files = []
        for source in sources:
            raw = await self.fetch_with_retry(source)
            if raw is not None:
                files.append(raw)
        return files

    async def load_cycle(self) -> CachedObjects:
        """Fetch every configured source and replace the cache.

        Raises ConfigError when the config document is missing or invalid;
        the cache is left untouched in that case.
        """
        async with self._lock:
            config = await asyncio.to_thread(self._read_config)
            collections = await self._fetch_all(config.collections)
            environments = await self._fetch_all(config.environments)
            await asyncio.to_thread(self.cache.write, collections, environments)
            self.loaded = CachedObjects(collections=collections, environments=environments)
            self.initialized = True
            return self.loaded

    async def cached_objects(self) -> CachedObjects | None:
        return await asyncio.to_thread(self.cache.read_objects)


__all__ = ["DEFAULT_FETCH_ATTEMPTS", "DEFAULT_FETCH_INTERVAL", "ReadinessService"]
