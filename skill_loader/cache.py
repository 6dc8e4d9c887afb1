"""
skill_loader.cache

Time-boxed holder for the most recent directory listing. The clock is always passed in.
"""

from __future__ import annotations

import logging
from typing import Callable

from skill_loader.config import DIRECTORY_CACHE_TTL_SECONDS, SERVER_NAME
from skill_loader.errors import SkillLoaderError
from skill_loader.models import DirectoryEntry

logger = logging.getLogger(f"{SERVER_NAME}.cache")


class DirectoryCache:
    """
    Holds one listing snapshot plus its capture time.

    A failed refresh falls back to the stale snapshot when one exists. Concurrent
    refreshes may both run; the last write wins.
    """

    def __init__(self, ttl_seconds: float = DIRECTORY_CACHE_TTL_SECONDS) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries: list[DirectoryEntry] | None = None
        self._captured_at: float | None = None

    def is_fresh(self, now: float) -> bool:
        return (
            self._captured_at is not None and (now - self._captured_at) < self.ttl_seconds
        )

    def get(self, now: float) -> list[DirectoryEntry] | None:
        if self._entries is not None and self.is_fresh(now):
            return self._entries
        return None

    def store(self, entries: list[DirectoryEntry], now: float) -> None:
        self._entries = list(entries)
        self._captured_at = now

    def refresh(
        self, now: float, loader: Callable[[], list[DirectoryEntry]]
    ) -> list[DirectoryEntry]:
        try:
            entries = loader()
        except SkillLoaderError as exc:
            if self._entries is None:
                raise
            logger.warning(
                "Failed to fetch fresh directory listing, using stale cache: %s",
                exc.message,
            )
            return self._entries
        self.store(entries, now)
        return self._entries or []

    def clear(self) -> None:
        self._entries = None
        self._captured_at = None
