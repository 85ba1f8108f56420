"""
Thread-safe equity cache shared by all queries to one calculator.

Keys are the smaller of the two distinguished stacks; values are
EquityResult pairs stored by stack size. Entries are never evicted and live
exactly as long as the owning calculator.

Two concurrent queries with the same key may both miss and both compute;
whichever insert lands last is kept.
"""

from __future__ import annotations

import threading

from .model import EquityResult


class EquityCache:
    """Unbounded ``short-stack key → EquityResult`` mapping guarded by a lock."""

    def __init__(self) -> None:
        self._entries: dict[int, EquityResult] = {}
        self._lock = threading.Lock()

    def get(self, key: int) -> EquityResult | None:
        with self._lock:
            return self._entries.get(key)

    def insert(self, key: int, value: EquityResult) -> None:
        with self._lock:
            self._entries[key] = value

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[int]:
        """Snapshot of the cached short-stack keys in ascending order.

        Introspection only: reports use it to show which splits were
        answered, lookups go through get().
        """
        with self._lock:
            return sorted(self._entries)
