from typing import Any, Dict

from .errors import PermissionDenied
from .risk import RiskTracker


def _require_admin(actor) -> None:
    if actor is None or not getattr(actor, 'is_admin', False):
        raise PermissionDenied('Admin privileges required')


class AntiCheatAdmin:
    """Ban management and risk reporting, gated on the acting user's role.

    ``actor`` is anything with an ``is_admin`` attribute (the logged-in
    User model in the web app).
    """

    def __init__(self, risk: RiskTracker):
        self.risk = risk

    def ban_user(self, actor, user_id: str, reason: str) -> bool:
        _require_admin(actor)
        return self.risk.ban_user(user_id, reason or 'Banned by admin')

    def unban_user(self, actor, user_id: str) -> bool:
        _require_admin(actor)
        return self.risk.unban_user(user_id)

    def get_user_risk_profile(self, actor, user_id: str) -> Dict[str, Any]:
        _require_admin(actor)
        return self.risk.get_user_risk_profile(user_id)

    def get_stats(self, actor) -> Dict[str, int]:
        _require_admin(actor)
        return self.risk.get_stats()
