"""In-memory response cache with per-entry expiry."""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional


logger = logging.getLogger(__name__)

SHORT = 60
MEDIUM = 5 * 60
LONG = 30 * 60
DAY = 24 * 60 * 60


class ResponseCache:
    def __init__(self, default_ttl: float = MEDIUM, max_entries: int = 5000,
                 clock: Callable[[], float] = time.time):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.clock = clock
        self._lock = threading.Lock()
        self._entries: 'OrderedDict[str, tuple]' = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            data, expiry = entry
            if self.clock() >= expiry:
                del self._entries[key]
                return None
            return data

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        expiry = self.clock() + (self.default_ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = (data, expiry)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self, pattern: Optional[str] = None) -> int:
        """Drop every entry whose key contains ``pattern`` (all when None)."""
        with self._lock:
            if pattern is None:
                cleared = len(self._entries)
                self._entries.clear()
            else:
                keys = [k for k in self._entries if pattern in k]
                for k in keys:
                    del self._entries[k]
                cleared = len(keys)
        logger.info(f"[cache-clear] pattern={pattern} cleared={cleared}")
        return cleared

    def clean_expired(self) -> int:
        now = self.clock()
        with self._lock:
            keys = [k for k, (_, expiry) in self._entries.items() if now >= expiry]
            for k in keys:
                del self._entries[k]
        if keys:
            logger.info(f"[cache-sweep] cleaned={len(keys)}")
        return len(keys)

    def stats(self) -> Dict[str, int]:
        now = self.clock()
        with self._lock:
            active = sum(1 for _, expiry in self._entries.values() if now < expiry)
            total = len(self._entries)
        return {'total': total, 'active': active, 'expired': total - active}
