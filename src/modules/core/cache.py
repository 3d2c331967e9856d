"""Cache port and its Django cache-framework adapter.

The cache only ever holds derived, disposable copies of store data.
Values are JSON strings produced by the pydantic DTOs, so a cached entry
never depends on pickled model state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import structlog
from django.core.cache import BaseCache, caches

logger = structlog.get_logger(__name__)


class ICacheStore(ABC):
    """Key/value store with TTL and prefix-pattern invalidation."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the cached value or ``None`` on a miss."""

    @abstractmethod
    def set_with_ttl(self, key: str, value: str, seconds: int) -> None:
        """Store *value* under *key* for *seconds*."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Drop a single key (no-op when absent)."""

    @abstractmethod
    def delete_by_pattern(self, pattern: str) -> int:
        """Drop every key matching a glob *pattern* such as ``orders:*``."""


class DjangoCacheStore(ICacheStore):
    """``ICacheStore`` backed by a configured Django cache alias.

    With the django-redis backend, pattern invalidation is a ``SCAN`` +
    ``DEL``.  Backends that cannot enumerate keys (local memory, dummy)
    are cleared entirely instead, which over-invalidates but never leaves
    a stale entry behind.
    """

    def __init__(self, alias: str = "default", backend: Optional[BaseCache] = None) -> None:
        self._cache = backend if backend is not None else caches[alias]

    def get(self, key: str) -> Optional[str]:
        return self._cache.get(key)

    def set_with_ttl(self, key: str, value: str, seconds: int) -> None:
        self._cache.set(key, value, timeout=seconds)

    def delete(self, key: str) -> None:
        self._cache.delete(key)

    def delete_by_pattern(self, pattern: str) -> int:
        delete_pattern = getattr(self._cache, "delete_pattern", None)
        if delete_pattern is None:
            logger.debug("cache.pattern_unsupported_clearing", pattern=pattern)
            self._cache.clear()
            return 0
        return delete_pattern(pattern)
