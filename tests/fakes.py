"""Test doubles shared across the suite."""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Dict, List, Optional, Tuple

from modules.core.cache import ICacheStore

SHIPPING_ADDRESS = {
    "street": "123 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
}


class CacheUnavailable(ConnectionError):
    pass


class InMemoryCacheStore(ICacheStore):
    """Dict-backed ``ICacheStore`` that records TTLs and can simulate outages."""

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.deleted_patterns: List[str] = []
        self.calls: List[Tuple[str, str]] = []
        self.failing = False

    def _check(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if self.failing:
            raise CacheUnavailable(f"cache down during {operation}")

    def get(self, key: str) -> Optional[str]:
        self._check("get", key)
        return self.data.get(key)

    def set_with_ttl(self, key: str, value: str, seconds: int) -> None:
        self._check("set", key)
        self.data[key] = value
        self.ttls[key] = seconds

    def delete(self, key: str) -> None:
        self._check("delete", key)
        self.data.pop(key, None)

    def delete_by_pattern(self, pattern: str) -> int:
        self._check("delete_pattern", pattern)
        self.deleted_patterns.append(pattern)
        matches = [k for k in self.data if fnmatchcase(k, pattern)]
        for key in matches:
            del self.data[key]
        return len(matches)
