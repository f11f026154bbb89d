import statistics

from .policy import AntiCheatPolicy
from .store import RiskStore
from .types import CheckResult


class PatternDetector:
    """Compares a score with the user's recent history for the same game.

    Every score is recorded after it is judged, including ones that end up
    rejected, so the history reflects what the client actually sent.
    """

    def __init__(self, store: RiskStore, policy: AntiCheatPolicy):
        self.store = store
        self.policy = policy

    def detect(self, user_id: str, game_id: str, score: int) -> CheckResult:
        try:
            return self._judge(self.store.history(user_id, game_id), score)
        finally:
            self.store.append_history(user_id, game_id, score)

    def _judge(self, history, score: int) -> CheckResult:
        p = self.policy
        if len(history) < p.pattern_min_samples:
            return CheckResult(True, 1.0)

        recent = history[-p.pattern_window:]
        best = max(recent)
        flags = []
        penalty = 0.0

        if score > p.sudden_improvement_factor * best:
            flags.append('SUDDEN_IMPROVEMENT')
            penalty += p.sudden_improvement_penalty

        if sum(1 for s in recent if s == best) > p.perfect_repeat_count and score == best:
            flags.append('CONSISTENT_PERFECT')
            penalty += p.consistent_perfect_penalty

        if len(recent) > p.zero_variance_min_samples and statistics.pvariance(recent) < p.zero_variance_threshold:
            # Near-identical runs point at replayed or scripted input
            flags.append('ZERO_VARIANCE')
            penalty += p.zero_variance_penalty

        confidence = round(max(0.0, 1.0 - penalty), 4)
        return CheckResult(confidence >= p.pattern_valid_cutoff, confidence, flags)
