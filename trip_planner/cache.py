# trip_planner/cache.py
import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """
    In-memory key -> value store where every entry expires `ttl` seconds
    after it was written. Expired entries are dropped on read of that key and
    swept from the whole store on every write, so keys for coordinates nobody
    asks for again don't pile up.

    The clock is injectable so tests can move time forward without sleeping.
    """

    def __init__(self, ttl: float = 3600, clock: Callable[[], float] = time.monotonic):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        item = self._entries.get(key)
        if item is None:
            return None
        expires_at, value = item
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        self._sweep(now)
        # last write wins
        self._entries[key] = (now + self.ttl, value)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for expires_at, _ in self._entries.values() if now < expires_at)
