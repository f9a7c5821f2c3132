"""
In-memory response cache with optional per-entry expiry.

One instance is created per process in the application lifespan and handed
to the services that need it; tests build their own.
"""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, Tuple

_MISSING = object()


class ResponseCache:
    def __init__(self, max_entries: int = 1024, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return default
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._entries[key]
            self.misses += 1
            return default
        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        if key not in self._entries and len(self._entries) >= self.max_entries:
            # evict the oldest insertion
            self._entries.pop(next(iter(self._entries)))
        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = (value, expires_at)

