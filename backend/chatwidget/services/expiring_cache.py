"""
Time-windowed key set.

Remembers keys for a fixed time window. Expired keys are removed by an
explicit `sweep()`; lookups ignore expired keys even before a sweep.
"""

import time
from collections import OrderedDict
from typing import Callable, Optional


class ExpiringCache:
    """Keys with an insertion timestamp and a TTL, bounded in size."""

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 10_000,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock or time.monotonic
        self._entries: "OrderedDict[str, float]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def _is_live(self, stamped_at: float, now: float) -> bool:
        return now - stamped_at < self._ttl

    def __contains__(self, key: str) -> bool:
        stamped_at = self._entries.get(key)
        return stamped_at is not None and self._is_live(stamped_at, self._clock())

    def add(self, key: str) -> None:
        """Record `key` now, restarting its window."""
        self._entries.pop(key, None)
        self._entries[key] = self._clock()
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def add_if_absent(self, key: str) -> bool:
        """Record `key` unless it is live. Returns True if it was added."""
        if key in self:
            return False
        self.add(key)
        return True

    def sweep(self) -> int:
        """Drop expired keys. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, stamped_at in self._entries.items() if not self._is_live(stamped_at, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)
