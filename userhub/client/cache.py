"""
Response Cache

Time-boxed key/value store used by the cached API client.
"""
import time
from typing import Any, Callable, Dict, Optional, Tuple


class ResponseCache:
    """Entries are served while younger than ttl seconds, then evicted on read."""

    def __init__(self, ttl: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, written_at = entry
        if self._clock() - written_at >= self.ttl:
            del self._entries[key]
            return None
        return value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
