# app/services/cache.py
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


class TTLCache:
    """Fixed-TTL in-process cache.

    Entries expire ``ttl_seconds`` after they were set, regardless of reads.
    Per process only; a multi-process deployment gets one cache per worker.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: Dict[Hashable, Tuple[float, Any]] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None
        expiry, value = entry
        if self._clock() >= expiry:
            self._store.pop(key, None)
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._store[key] = (self._clock() + self.ttl_seconds, value)

    def delete(self, key: Hashable) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()
