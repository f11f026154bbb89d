import threading
import weakref
from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLocks:
    """One re-entrant lock per key.

    Locks are held weakly, so a key's lock disappears once nobody holds or
    waits on it and the map never grows with the number of identities seen.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = weakref.WeakValueDictionary()

    def _get(self, key: Hashable):
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = _Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._get(key)
        with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


class _Lock:
    # threading.RLock() returns a C object that cannot be weakly referenced
    __slots__ = ('_lock', '__weakref__')

    def __init__(self):
        self._lock = threading.RLock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc):
        self._lock.release()
        return False
