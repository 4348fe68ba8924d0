import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


def make_key(prefix: str, **params: Any) -> Tuple:
    """Cache key from request parameters; keyword order does not matter."""
    return (prefix,) + tuple(sorted(params.items()))


class TTLCache:
    """
    Keyed cache for upstream payloads with a fixed time-to-live.

    Entries remember when they were stored; freshness is checked on read.
    Expired entries stay available through ``get_stale`` so a failed refresh
    can still serve the last good payload.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def _age(self, stored_at: float) -> float:
        return self._clock() - stored_at

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._age(stored_at) >= self.ttl:
            return None
        return value

    def get_stale(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        return entry[1] if entry else None

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        self._entries.clear()

    def status(self, key: Hashable) -> Dict[str, Any]:
        entry = self._entries.get(key)
        if entry is None:
            return {"has_data": False, "age_seconds": None, "fresh": False}
        age = self._age(entry[0])
        return {"has_data": True, "age_seconds": age, "fresh": age < self.ttl}

    def __len__(self) -> int:
        return len(self._entries)
