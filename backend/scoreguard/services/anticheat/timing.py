from typing import Optional

from .policy import AntiCheatPolicy
from .types import CheckResult


class TimingAnalyzer:
    """Flags sessions too short or too long for a genuine run."""

    def __init__(self, policy: AntiCheatPolicy):
        self.policy = policy

    def analyze(self, duration_ms: Optional[int]) -> CheckResult:
        p = self.policy
        if duration_ms is None:
            # Missing data is suspicious but not disqualifying
            return CheckResult(True, p.no_timing_confidence, ['NO_TIMING_DATA'])
        if duration_ms < p.min_duration_ms:
            return CheckResult(True, p.too_fast_confidence, ['TOO_FAST'])
        if duration_ms > p.max_duration_ms:
            return CheckResult(True, p.too_long_confidence, ['TOO_LONG'])
        return CheckResult(True, 1.0)
