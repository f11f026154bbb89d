from typing import Optional

from .policy import AntiCheatPolicy
from .types import CheckResult


class ScoreReasonabilityChecker:
    """Per-game score ceilings plus game-specific hard bounds."""

    def __init__(self, policy: AntiCheatPolicy):
        self.policy = policy

    def check(self, game_id: str, score: int) -> CheckResult:
        rule = self.policy.rule_for(game_id)
        if score < 0:
            return CheckResult(False, 0.0, ['NEGATIVE_SCORE'], reason='Invalid score range')
        if score > rule.max_score:
            return CheckResult(False, 0.0, ['SCORE_TOO_HIGH'], reason=f'Score too high for {rule.name}')
        if score >= rule.max_score * self.policy.near_maximum_ratio:
            return CheckResult(True, self.policy.near_maximum_confidence, ['NEAR_MAXIMUM'])
        return CheckResult(True, 1.0)

    def check_game_bounds(self, game_id: str, score: int, duration_ms: Optional[int]) -> CheckResult:
        """Hard ceiling on scoring rate, e.g. Snake tops out at 100 points a second."""
        rule = self.policy.rule_for(game_id)
        if rule.max_points_per_second is None or not duration_ms:
            return CheckResult(True, 1.0)
        if score / duration_ms > rule.max_points_per_second / 1000.0:
            return CheckResult(False, 0.0, ['IMPOSSIBLE_RATE'], reason=f'Score too fast for {rule.name}')
        return CheckResult(True, 1.0)
