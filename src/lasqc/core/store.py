"""In-memory keyed stores used by the orchestrator.

``TTLCache`` keeps recent per-file results with time-based eviction.
``KeyedLocks`` serializes processing runs that target the same file id
while letting runs on different files proceed in parallel.
"""

import logging
import threading
import time
from collections import OrderedDict
from contextlib import contextmanager

__all__ = ["TTLCache", "KeyedLocks"]

logger = logging.getLogger(__name__)


class TTLCache:
    """Thread-safe mapping whose entries expire after ``ttl`` seconds.

    Parameters
    ----------
    ttl : float
        Lifetime of an entry in seconds.
    max_entries : int
        Capacity; the least recently written entry is evicted first.
    clock : callable, optional
        Monotonic time source, injectable for tests.
    """

    def __init__(self, ttl, max_entries=128, clock=time.monotonic):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._items = OrderedDict()
        self._lock = threading.Lock()

    def set(self, key, value):
        with self._lock:
            self._items.pop(key, None)
            self._items[key] = (self._clock() + self.ttl, value)
            while len(self._items) > self.max_entries:
                evicted, _ = self._items.popitem(last=False)
                logger.debug("Cache full, evicted %s", evicted)

    def get(self, key, default=None):
        with self._lock:
            entry = self._items.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._items[key]
                return default
            return value

    def pop(self, key, default=None):
        with self._lock:
            entry = self._items.pop(key, None)
        if entry is None or entry[0] <= self._clock():
            return default
        return entry[1]

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (expires_at, _) in self._items.items() if expires_at <= now]
            for key in expired:
                del self._items[key]
        return len(expired)

    def __contains__(self, key):
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self):
        self.purge_expired()
        with self._lock:
            return len(self._items)


_MISSING = object()


class KeyedLocks:
    """One reentrant lock per key, created on demand.

    A key's lock is dropped once no thread holds or waits on it through
    ``hold``, so the table only tracks files currently in flight.
    """

    def __init__(self):
        self._locks = {}
        self._users = {}
        self._guard = threading.Lock()

    def lock_for(self, key) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, key):
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    self._locks.pop(key, None)
