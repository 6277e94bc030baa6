import time
import threading
from typing import Any, Optional, Tuple, Dict


class TTLCache:
    """Very small in-process TTL cache suitable for single-worker setups."""
    def __init__(self, clock=time.time):
        self._store: Dict[str, Tuple[Any, float, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            item = self._store.get(key)
            if not item:
                return None
            value, stored_at, exp = item
            if exp < now:
                self._store.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int = 60) -> None:
        now = self._clock()
        exp = now + max(1, int(ttl_seconds))
        with self._lock:
            self._store[key] = (value, now, exp)

    def age(self, key: str) -> Optional[float]:
        """Seconds since ``key`` was last stored, or None if it is absent or expired."""
        now = self._clock()
        with self._lock:
            item = self._store.get(key)
            if not item or item[2] < now:
                return None
            return now - item[1]

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def delete_prefix(self, prefix: str) -> None:
        with self._lock:
            for key in [k for k in self._store if k.startswith(prefix)]:
                self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


# Settings slices fetched by the console, keyed by "<user_id>:<section>"
settings_cache = TTLCache()
