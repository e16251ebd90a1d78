"""
Content Engine - Settings Service
=================================
Flat key/value runtime settings stored in the DB, cached in-process for a
short TTL. Invalidation is explicit through reload(); callers receive typed
snapshots (QualityThresholds / AutomationSettings) instead of reading a
shared global.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from content_engine.core.config import get_settings
from content_engine.core.logging import get_logger
from content_engine.domain.automation.policy import AutomationSettings
from content_engine.models.settings import SystemSetting
from content_engine.schemas.quality import QualityThresholds

logger = get_logger("settings_service")
settings = get_settings()


class SettingsService:
    """Fetch and cache the system_settings map."""

    def __init__(
        self,
        session_factory=None,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session_factory = session_factory
        self._ttl = settings.settings_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._cache: dict[str, str] | None = None
        self._loaded_at = 0.0
        self._lock = asyncio.Lock()

    def _sessions(self):
        if self._session_factory is None:
            from content_engine.core.database import async_session

            self._session_factory = async_session
        return self._session_factory

    async def _load(self) -> dict[str, str]:
        async with self._sessions()() as session:
            rows = await session.execute(select(SystemSetting.key, SystemSetting.value))
            return {key: value for key, value in rows.all() if value is not None}

    def _fresh(self) -> bool:
        return self._cache is not None and (self._clock() - self._loaded_at) < self._ttl

    async def get_map(self) -> dict[str, str]:
        if self._fresh():
            return dict(self._cache)
        async with self._lock:
            if not self._fresh():
                try:
                    loaded = await self._load()
                except SQLAlchemyError as exc:
                    # _loaded_at is left alone so the next read retries the store.
                    logger.warning("settings_load_failed", error=str(exc), cached=self._cache is not None)
                    return dict(self._cache or {})
                self._cache = loaded
                self._loaded_at = self._clock()
                logger.debug("settings_loaded", keys=len(self._cache))
        return dict(self._cache)

    async def get_value(self, key: str, default: str | None = None) -> str | None:
        return (await self.get_map()).get(key, default)

    async def quality_thresholds(self) -> QualityThresholds:
        return QualityThresholds.from_settings_map(await self.get_map())

    async def automation_settings(self) -> AutomationSettings:
        return AutomationSettings.from_settings_map(await self.get_map(), tz=settings.automation_timezone)

    def reload(self) -> None:
        """Drop the cached map; the next read hits the store."""
        self._cache = None
        self._loaded_at = 0.0
        logger.info("settings_cache_invalidated")


# Singleton
settings_service = SettingsService()
