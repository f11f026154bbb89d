import logging
import time
from typing import Any, Callable, Dict, Iterable

from .policy import AntiCheatPolicy
from .store import RiskStore, SuspiciousUserRecord
from .types import Incident


logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class RiskTracker:
    """Turns a user's incident history into a 0-100 risk score and bans
    users once it passes the ban threshold."""

    def __init__(self, store: RiskStore, policy: AntiCheatPolicy, clock: Callable[[], int] = _now_ms):
        self.store = store
        self.policy = policy
        self.clock = clock

    def compute_risk(self, incidents: Iterable[Incident], now_ms: int) -> int:
        p = self.policy
        recent = severe = low = 0
        for inc in incidents:
            if now_ms - inc.timestamp <= p.recent_window_ms:
                recent += 1
            if p.severe_flags.intersection(inc.flags):
                severe += 1
            if inc.confidence < p.low_confidence_threshold:
                low += 1
        score = p.recent_weight * recent + p.severe_weight * severe + p.low_confidence_weight * low
        return max(0, min(100, score))

    def track(self, user_id: str, incident: Incident) -> SuspiciousUserRecord:
        now = self.clock()
        with self.store.user_lock(user_id):
            record = self.store.get_or_create_record(user_id, now)
            record.incidents.append(incident)
            record.risk_score = self.compute_risk(record.incidents, now)
            logger.info(
                f"[risk-track] user={user_id} game={incident.game_id} flags={','.join(incident.flags) or '-'} "
                f"confidence={incident.confidence:.2f} risk={record.risk_score}"
            )
            if record.risk_score > self.policy.ban_threshold:
                self.ban_user(user_id, f'Automatic ban: risk score {record.risk_score}')
            return record

    def ban_user(self, user_id: str, reason: str) -> bool:
        added = self.store.add_ban(user_id, reason, self.clock())
        if added:
            logger.warning(f"[ban] user={user_id} reason={reason}")
        return added

    def unban_user(self, user_id: str) -> bool:
        """Lift a ban and forget the user's incident history entirely."""
        with self.store.user_lock(user_id):
            removed = self.store.remove_ban(user_id)
        logger.warning(f"[unban] user={user_id} was_banned={removed}")
        return removed

    def is_banned(self, user_id: str) -> bool:
        return self.store.is_banned(user_id)

    def get_user_risk_profile(self, user_id: str) -> Dict[str, Any]:
        now = self.clock()
        with self.store.user_lock(user_id):
            record = self.store.record(user_id)
            ban = self.store.ban_entry(user_id)
            incidents = list(record.incidents) if record else []
            profile = {
                'isBanned': ban is not None,
                'riskScore': record.risk_score if record else 0,
                'incidentCount': len(incidents),
                'recentIncidentCount': sum(
                    1 for i in incidents if now - i.timestamp <= self.policy.recent_window_ms
                ),
                'firstSeen': record.first_seen if record else None,
            }
            if ban is not None:
                profile['banReason'] = ban.reason
                profile['bannedAt'] = ban.banned_at
            return profile

    def get_stats(self) -> Dict[str, int]:
        records = self.store.records()
        return {
            'bannedUsers': self.store.banned_count(),
            'suspiciousUsers': len(records),
            'totalIncidents': sum(len(r.incidents) for r in records),
            'highRiskUsers': sum(1 for r in records if r.risk_score > self.policy.high_risk_threshold),
        }
