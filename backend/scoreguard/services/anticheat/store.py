"""Process-wide anti-cheat state.

One RiskStore is built per app (or per shard) at startup and handed to every
check that needs shared state. Nothing else mutates these maps.
"""

import threading
from collections import OrderedDict, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple

from ..locks import KeyedLocks
from .types import Incident


@dataclass
class SuspiciousUserRecord:
    user_id: str
    first_seen: int
    incidents: Deque[Incident] = field(default_factory=deque)
    risk_score: int = 0


@dataclass
class BanEntry:
    reason: str
    banned_at: int


class RiskStore:
    def __init__(self, history_size: int = 50, history_max_keys: int = 10000, incident_cap: int = 50):
        self.history_size = history_size
        self.history_max_keys = history_max_keys
        self.incident_cap = incident_cap
        self._guard = threading.Lock()
        self._user_locks = KeyedLocks()
        self._banned: Dict[str, BanEntry] = {}
        self._records: Dict[str, SuspiciousUserRecord] = {}
        self._histories: 'OrderedDict[Tuple[str, str], Deque[int]]' = OrderedDict()

    def user_lock(self, user_id: str):
        """Serialize updates for one user; other users are unaffected."""
        return self._user_locks.hold(user_id)

    # ---- bans ----
    def is_banned(self, user_id: str) -> bool:
        return user_id in self._banned

    def ban_entry(self, user_id: str) -> Optional[BanEntry]:
        return self._banned.get(user_id)

    def add_ban(self, user_id: str, reason: str, now_ms: int) -> bool:
        """Returns False when the user was already banned (first reason wins)."""
        with self._guard:
            if user_id in self._banned:
                return False
            self._banned[user_id] = BanEntry(reason=reason, banned_at=now_ms)
            return True

    def remove_ban(self, user_id: str) -> bool:
        with self._guard:
            was_banned = self._banned.pop(user_id, None) is not None
            self._records.pop(user_id, None)
            return was_banned

    def banned_count(self) -> int:
        return len(self._banned)

    # ---- suspicious records ----
    def record(self, user_id: str) -> Optional[SuspiciousUserRecord]:
        return self._records.get(user_id)

    def get_or_create_record(self, user_id: str, now_ms: int) -> SuspiciousUserRecord:
        with self._guard:
            rec = self._records.get(user_id)
            if rec is None:
                rec = SuspiciousUserRecord(
                    user_id=user_id,
                    first_seen=now_ms,
                    incidents=deque(maxlen=self.incident_cap),
                )
                self._records[user_id] = rec
            return rec

    def records(self) -> List[SuspiciousUserRecord]:
        with self._guard:
            return list(self._records.values())

    # ---- score history ----
    def history(self, user_id: str, game_id: str) -> List[int]:
        with self._guard:
            entries = self._histories.get((user_id, game_id))
            return list(entries) if entries is not None else []

    def append_history(self, user_id: str, game_id: str, score: int) -> None:
        key = (user_id, game_id)
        with self._guard:
            entries = self._histories.get(key)
            if entries is None:
                entries = deque(maxlen=self.history_size)
                self._histories[key] = entries
            else:
                self._histories.move_to_end(key)
            entries.append(score)
            while len(self._histories) > self.history_max_keys:
                self._histories.popitem(last=False)

    def history_keys(self) -> int:
        return len(self._histories)
