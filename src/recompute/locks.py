"""Keyed lock registry serializing work per candidate id or name group."""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Dict, Hashable, Iterator


class KeyedLocks:
    """One ``threading.Lock`` per key, created on first use."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: Dict[Hashable, Lock] = {}

    def _lock_for(self, key: Hashable) -> Lock:
        with self._guard:
            return self._locks.setdefault(key, Lock())

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


__all__ = ["KeyedLocks"]
