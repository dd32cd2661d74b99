import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """Process-wide map whose entries expire ``ttl`` seconds after being set."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, value = entry
        if self.clock() - stored_at >= self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any):
        self._entries[key] = (self.clock(), value)

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)
