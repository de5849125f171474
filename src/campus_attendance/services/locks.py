"""Per-key mutual exclusion for read-modify-write cycles."""

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass


@dataclass
class _LockEntry:
    lock: threading.Lock
    holders: int = 0


class KeyedLocks:
    """In-memory map of per-key locks.

    Entries are reference counted and dropped once no thread holds or waits on
    them, so the map only grows with the number of keys in flight.
    """

    _entries: dict[Hashable, _LockEntry]

    def __init__(self) -> None:
        self._entries = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Serialize the enclosed block against other holders of the same key."""
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = _LockEntry(lock=threading.Lock())
                self._entries[key] = entry
            entry.holders += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
