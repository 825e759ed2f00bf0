"""Per-calendar exclusive leases."""

import threading
from contextlib import contextmanager
from typing import Generator


class CalendarLocks:
    """One lock per key, created on demand and dropped when nobody holds it.

    Usage:
        locks = CalendarLocks()
        with locks.hold(calendar_id):
            ...  # whole create/update/delete protocol
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._users: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Generator[None, None, None]:
        """Hold the lease for ``key`` for the duration of the block."""
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        """Number of keys currently held or waited on."""
        with self._guard:
            return len(self._locks)
