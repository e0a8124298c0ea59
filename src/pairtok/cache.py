"""
Thread-safe, capacity-bounded result cache.

The cache is insert-once-until-full: it never evicts, and once ``capacity``
entries are stored further inserts are dropped until :meth:`Cache.clear` is
called. Words first seen after the cache filled up are therefore never cached.
"""

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Final, Generic, TypeVar

log = logging.getLogger(__name__)

DEFAULT_CACHE_CAPACITY: Final[int] = 10_000

K = TypeVar("K")
V = TypeVar("V")


class _ReadWriteLock:
    """Many concurrent readers or one exclusive writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        # new readers wait while a writer is queued
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class Cache(Generic[K, V]):
    """Maps keys to values under a reader/writer lock."""

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY) -> None:
        self.capacity = capacity
        self._map: dict[K, V] = {}
        self._lock = _ReadWriteLock()

    def get(self, key: K) -> V | None:
        """Return the value stored for ``key`` or ``None``."""
        with self._lock.read():
            return self._map.get(key)

    def get_values(self, keys: Iterable[K]) -> list[V]:
        """Return the stored values for those ``keys`` that are present."""
        with self._lock.read():
            return [self._map[key] for key in keys if key in self._map]

    def set(self, key: K, value: V) -> None:
        """Store ``value`` for ``key`` unless the cache is full."""
        with self._lock.write():
            if len(self._map) < self.capacity:
                self._map[key] = value
                self._warn_if_full()

    def set_values(self, entries: Iterable[tuple[K, V]]) -> None:
        """Store entries in order until the cache is full."""
        with self._lock.write():
            if len(self._map) >= self.capacity:
                return
            for key, value in entries:
                if len(self._map) >= self.capacity:
                    break
                self._map[key] = value
            self._warn_if_full()

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock.write():
            self._map.clear()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._map)

    def _warn_if_full(self) -> None:
        # called under the write lock right after an insert
        if len(self._map) == self.capacity:
            log.warning(
                f"cache reached capacity ({self.capacity}), new entries are dropped until cleared"
            )
