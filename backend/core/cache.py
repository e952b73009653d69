"""
In-process result cache for analysis and chunking responses.
"""
import hashlib
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

from core.config import CACHE_MAX_ENTRIES, CACHE_TTL_SECONDS


def make_cache_key(content: str, *params: Any) -> str:
    """Fingerprint of the content prefix, its length and the request parameters."""
    fingerprint = content[:100] + str(len(content)) + "|" + "|".join(str(p) for p in params)
    return hashlib.sha256(fingerprint.encode()).hexdigest()[:32]


class ResultCache:
    """
    Bounded TTL cache with oldest-insertion eviction.

    Not synchronized and not shared across processes.
    """

    def __init__(
        self,
        max_entries: int = CACHE_MAX_ENTRIES,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: "OrderedDict[str, tuple]" = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, value = entry
        if self.clock() - stored_at > self.ttl_seconds:
            self.evict(key)
            return None

        return value

    def set(self, key: str, value: Any) -> None:
        """Store a value, evicting the oldest entries when over capacity."""
        if key in self._entries:
            del self._entries[key]

        while len(self._entries) >= self.max_entries:
            self._entries.popitem(last=False)

        self._entries[key] = (self.clock(), value)

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
