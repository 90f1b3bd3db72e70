"""
Preview content cache.

Scans always read fresh content; this cache only serves hosts that render a
full-file preview of a selected match. It is keyed by absolute path and
dropped per path when the engine is told a file changed.

Classes:
    CacheStats: Hit/miss/eviction counters
    ContentCache: Thread-safe LRU of decoded file contents

Example:
    >>> cache = ContentCache(max_entries=2)
    >>> cache.put("/w/a.py", "print('a')\\n")
    >>> cache.get("/w/a.py")
    "print('a')\\n"
    >>> cache.invalidate("/w/a.py")
    True
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.api import SearchEngine


@dataclass(slots=True)
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class ContentCache:
    """In-memory LRU cache of decoded file contents."""

    def __init__(self, max_entries: int = 64, max_bytes: int = 32 * 1024 * 1024) -> None:
        self.max_entries = max_entries
        self.max_bytes = max_bytes
        self.stats = CacheStats()
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._size = 0
        # bumped by every invalidation; see put_if_current
        self._generation = 0
        self._lock = threading.RLock()

    def get(self, path: str) -> str | None:
        with self._lock:
            content = self._entries.get(path)
            if content is None:
                self.stats.misses += 1
                return None
            self._entries.move_to_end(path)
            self.stats.hits += 1
            return content

    def put(self, path: str, content: str) -> None:
        with self._lock:
            if path in self._entries:
                self._size -= len(self._entries.pop(path))
            self._entries[path] = content
            self._size += len(content)
            self._evict()

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def put_if_current(self, path: str, content: str, generation: int) -> bool:
        """
        Store content read while ``generation`` was current.

        Returns False, storing nothing, if an invalidation happened since
        ``generation`` was taken: the content may predate the change.
        """
        with self._lock:
            if generation != self._generation:
                return False
            self.put(path, content)
            return True

    def _evict(self) -> None:
        # the newest entry is kept even when it alone exceeds max_bytes
        while len(self._entries) > 1 and (
            len(self._entries) > self.max_entries or self._size > self.max_bytes
        ):
            _, old = self._entries.popitem(last=False)
            self._size -= len(old)
            self.stats.evictions += 1

    def invalidate(self, path: str) -> bool:
        """Drop one path. Returns True if it was cached."""
        with self._lock:
            self._generation += 1
            content = self._entries.pop(path, None)
            if content is None:
                return False
            self._size -= len(content)
            self.stats.invalidations += 1
            return True

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()
            self._size = 0

    def attach(self, engine: SearchEngine) -> None:
        """Subscribe to the engine's invalidation signal."""
        engine.add_invalidation_listener(self.invalidate)

    def detach(self, engine: SearchEngine) -> None:
        engine.remove_invalidation_listener(self.invalidate)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
