"""
Cache Module

Bounded memoization cache used by the split calculator.

Entries are evicted oldest-inserted first (FIFO) once the cache holds more
than max_entries. Reads do not refresh an entry's position, so this is not
an LRU.
"""

import logging
from typing import Any, Hashable

from config.settings import DEFAULT_SPLIT_CACHE_SIZE


logger = logging.getLogger(__name__)

_MISSING = object()


class SplitCache:
    """
    Insertion-ordered cache with a hard size cap.

    Attributes:
        max_entries (int): Maximum number of entries kept.
        hits (int): Number of successful lookups.
        misses (int): Number of failed lookups.
    """

    def __init__(self, max_entries: int = DEFAULT_SPLIT_CACHE_SIZE):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got: {max_entries}")
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self._entries = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def get(self, key: Hashable, default: Any = None) -> Any:
        value = self._entries.get(key, _MISSING)
        if value is _MISSING:
            self.misses += 1
            return default
        self.hits += 1
        return value

    def put(self, key: Hashable, value: Any) -> None:
        """Store value under key, evicting the oldest entry if over capacity."""
        self._entries[key] = value
        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug("Split cache full (%d); evicted oldest entry", self.max_entries)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0
