"""Tunable anti-cheat constants.

The numbers below were hand-tuned on the original deployment and have no
documented derivation. They live here so they can be recalibrated against
real submission data without touching the checks.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, FrozenSet, Optional


@dataclass(frozen=True)
class GameRule:
    name: str
    max_score: int
    # Hard ceiling on points per second of play; None disables the check
    max_points_per_second: Optional[float] = None


DEFAULT_GAME_RULES: Dict[str, GameRule] = {
    'snake': GameRule('Snake', 10000, max_points_per_second=100.0),
    '2048': GameRule('2048', 1000000),
    'tetris': GameRule('Tetris', 999999),
}
DEFAULT_RULE = GameRule('this game', 999999999)

SEVERE_FLAGS: FrozenSet[str] = frozenset({
    'USER_BANNED',
    'SCORE_TOO_HIGH',
    'SESSION_TAMPERING',
    'AUTOMATION_DETECTED',
})


@dataclass(frozen=True)
class AntiCheatPolicy:
    # Timestamp window
    timestamp_max_age_ms: int = 24 * 60 * 60 * 1000
    timestamp_future_tolerance_ms: int = 0
    require_signature: bool = True
    unsigned_confidence: float = 0.7

    # Timing
    min_duration_ms: int = 5000
    max_duration_ms: int = 60 * 60 * 1000
    no_timing_confidence: float = 0.8
    too_fast_confidence: float = 0.3
    too_long_confidence: float = 0.7

    # Reasonability
    near_maximum_ratio: float = 0.95
    near_maximum_confidence: float = 0.6

    # Patterns
    history_size: int = 50
    history_max_keys: int = 10000
    pattern_min_samples: int = 3
    pattern_window: int = 10
    sudden_improvement_factor: float = 3.0
    sudden_improvement_penalty: float = 0.3
    perfect_repeat_count: int = 5
    consistent_perfect_penalty: float = 0.2
    zero_variance_threshold: float = 10.0
    zero_variance_min_samples: int = 5
    zero_variance_penalty: float = 0.4
    pattern_valid_cutoff: float = 0.4

    # Session
    no_session_confidence: float = 0.8
    session_clock_slack_ms: int = 2000

    # Aggregation
    accept_threshold: float = 0.5
    track_below_confidence: float = 0.6
    adjust_score_by_confidence: bool = True
    adjust_floor: float = 0.7

    # Risk
    incident_cap: int = 50
    recent_window_ms: int = 24 * 60 * 60 * 1000
    recent_weight: int = 10
    severe_weight: int = 20
    low_confidence_weight: int = 15
    low_confidence_threshold: float = 0.3
    ban_threshold: int = 80
    high_risk_threshold: int = 50
    severe_flags: FrozenSet[str] = SEVERE_FLAGS

    game_rules: Dict[str, GameRule] = field(default_factory=lambda: dict(DEFAULT_GAME_RULES))
    default_rule: GameRule = DEFAULT_RULE

    def rule_for(self, game_id: str) -> GameRule:
        return self.game_rules.get(game_id, self.default_rule)

    @classmethod
    def from_config(cls, config) -> 'AntiCheatPolicy':
        """Build a policy from a Flask config mapping, keeping defaults for
        anything the config does not set."""
        mapping = {
            'TIMESTAMP_MAX_AGE_MS': 'timestamp_max_age_ms',
            'TIMESTAMP_FUTURE_TOLERANCE_MS': 'timestamp_future_tolerance_ms',
            'REQUIRE_SIGNATURE': 'require_signature',
            'ADJUST_SCORE_BY_CONFIDENCE': 'adjust_score_by_confidence',
            'SESSION_CLOCK_SLACK_MS': 'session_clock_slack_ms',
        }
        known = {f.name for f in fields(cls)}
        overrides = {
            attr: config[key] for key, attr in mapping.items()
            if key in config and attr in known
        }
        return cls(**overrides)
