"""
Per-device response cache with a fixed time-to-live.
"""
import time
from typing import Any

_MISSING = object()


class ResponseCache:
    """
    Values keyed by operation name, expiring ``ttl`` seconds after being set.

    Expired entries are dropped on access; a miss always means the caller
    fetches fresh data.
    """

    def __init__(self, ttl: float = 10, enabled: bool = True):
        self.ttl = ttl
        self.enabled = enabled
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        if not self.enabled:
            return default
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires, value = entry
        if time.monotonic() >= expires:
            del self._entries[key]
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        if self.enabled:
            self._entries[key] = (time.monotonic() + self.ttl, value)

    def get_or_set(self, key: str, factory) -> Any:
        """Return the cached value or store and return ``factory()``."""
        value = self.get(key, _MISSING)
        if value is _MISSING:
            value = factory()
            self.set(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()
