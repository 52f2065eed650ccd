"""
Response Cache and Rate Limiter

Explicit objects handed to connectors, so no client keeps hidden module state.
"""

import time
import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)


def location_key(prefix: str, latitude: float, longitude: float, precision: int = 2) -> str:
    """Cache key rounded to `precision` decimals (0.01 deg is ~1 km)"""
    return f"{prefix}_{round(latitude, precision)}_{round(longitude, precision)}"


class TTLCache:
    """In-memory cache with per-entry time-to-live"""

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            ttl_seconds: Default lifetime of an entry
            max_entries: Oldest entries are evicted beyond this size
            clock: Time source in seconds
        """
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.clock = clock
        self._entries = OrderedDict()

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries.pop(key, None)
        self._entries[key] = (value, self.clock() + ttl)

        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def purge_expired(self) -> int:
        """Drop expired entries; returns how many were removed"""
        now = self.clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info(f"Purged {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> Dict[str, int]:
        return {"count": len(self._entries)}

    def __len__(self) -> int:
        return len(self._entries)


class RateLimiter:
    """Enforces a minimum interval between calls"""

    def __init__(
        self,
        min_interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.min_interval = min_interval
        self.clock = clock
        self.sleep = sleep
        self._last_call = None

    def wait(self) -> float:
        """Block until the next call is allowed; returns seconds waited"""
        waited = 0.0
        if self._last_call is not None:
            elapsed = self.clock() - self._last_call
            if elapsed < self.min_interval:
                waited = self.min_interval - elapsed
                logger.debug(f"Rate limit: waiting {waited:.2f}s")
                self.sleep(waited)
        self._last_call = self.clock()
        return waited
