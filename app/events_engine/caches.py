"""In-memory caches owned by a projection engine instance.

Neither cache is a correctness mechanism: guarded writes in the read model
make re-applying an event a no-op. The caches only avoid redundant upstream
calls and handler invocations.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from threading import RLock
from typing import Callable, Dict, Tuple

EmptyBucketKey = Tuple[str, str, str]


@dataclass
class DedupCache:
    """Bounded set of recently applied event ids.

    When the set reaches ``max_size`` it is truncated to the ``max_size // 2``
    most recently inserted ids. Order is insertion order; lookups do not
    refresh an entry.
    """

    max_size: int = 10_000

    def __post_init__(self) -> None:
        if self.max_size < 2:
            raise ValueError("max_size must be at least 2")
        # dict preserves insertion order, which is all the eviction policy needs.
        self._ids: Dict[str, None] = {}
        self._lock = RLock()

    def __contains__(self, event_id: object) -> bool:
        with self._lock:
            return event_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def contains(self, event_id: str) -> bool:
        return event_id in self

    def size(self) -> int:
        return len(self)

    def add(self, event_id: str) -> None:
        with self._lock:
            if event_id in self._ids:
                return
            self._ids[event_id] = None
            if len(self._ids) >= self.max_size:
                self._evict_oldest_half()

    def clear(self) -> None:
        with self._lock:
            self._ids.clear()

    def _evict_oldest_half(self) -> None:
        keep = self.max_size // 2
        survivors = list(self._ids)[-keep:]
        self._ids = dict.fromkeys(survivors)


@dataclass
class EmptyBucketCache:
    """Remembers (flow, event type, bucket) units that recently had nothing new.

    An entry marked at time ``T`` suppresses the unit for checks made before
    ``T + ttl_seconds``; from ``T + ttl_seconds`` on the unit is eligible again.
    """

    ttl_seconds: float = 300.0
    clock: Callable[[], float] = field(default=time.monotonic)

    def __post_init__(self) -> None:
        self._entries: Dict[EmptyBucketKey, float] = {}
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def is_recently_empty(self, flow: str, event_type: str, bucket: str) -> bool:
        with self._lock:
            marked_at = self._entries.get((flow, event_type, bucket))
            if marked_at is None:
                return False
            return self.clock() - marked_at < self.ttl_seconds

    def mark_empty(self, flow: str, event_type: str, bucket: str) -> None:
        with self._lock:
            self._entries[(flow, event_type, bucket)] = self.clock()

    def clear(self, flow: str, event_type: str, bucket: str) -> None:
        with self._lock:
            self._entries.pop((flow, event_type, bucket), None)

    def sweep(self) -> int:
        """Drop expired entries regardless of query activity; return how many were dropped."""

        with self._lock:
            now = self.clock()
            expired = [key for key, marked_at in self._entries.items() if now - marked_at >= self.ttl_seconds]
            for key in expired:
                del self._entries[key]
            return len(expired)
