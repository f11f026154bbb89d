import pytest

from scoreguard.services.anticheat import AntiCheatPolicy, InvalidSubmission, ScoreSubmission
from scoreguard.services.anticheat.reasonability import ScoreReasonabilityChecker
from scoreguard.services.anticheat.timing import TimingAnalyzer


@pytest.fixture()
def policy():
    return AntiCheatPolicy()


@pytest.mark.parametrize('duration, confidence, flags', [
    (None, 0.8, ['NO_TIMING_DATA']),
    (4999, 0.3, ['TOO_FAST']),
    (5000, 1.0, []),
    (3_600_000, 1.0, []),
    (3_600_001, 0.7, ['TOO_LONG']),
])
def test_timing_analyzer(policy, duration, confidence, flags):
    result = TimingAnalyzer(policy).analyze(duration)
    assert result.valid
    assert result.confidence == confidence
    assert result.flags == flags


def test_reasonability_rejects_too_high_with_game_name(policy):
    result = ScoreReasonabilityChecker(policy).check('snake', 9000000)
    assert not result.valid
    assert result.confidence == 0
    assert result.flags == ['SCORE_TOO_HIGH']
    assert 'too high for Snake' in result.reason


def test_reasonability_negative_and_near_maximum(policy):
    checker = ScoreReasonabilityChecker(policy)
    negative = checker.check('tetris', -1)
    assert not negative.valid and negative.flags == ['NEGATIVE_SCORE']

    near = checker.check('snake', 9600)
    assert near.valid and near.confidence == 0.6 and near.flags == ['NEAR_MAXIMUM']

    assert checker.check('snake', 500).confidence == 1.0


def test_reasonability_falls_back_for_unknown_games(policy):
    checker = ScoreReasonabilityChecker(policy)
    assert checker.check('pong', 123456).valid
    assert not checker.check('pong', 1_000_000_000).valid


def test_snake_rate_ceiling(policy):
    checker = ScoreReasonabilityChecker(policy)
    # 100 points per second is the ceiling
    assert checker.check_game_bounds('snake', 1000, 10000).valid
    too_fast = checker.check_game_bounds('snake', 1001, 10000)
    assert not too_fast.valid
    assert too_fast.reason == 'Score too fast for Snake'
    # games without a rate rule are not checked
    assert checker.check_game_bounds('tetris', 999999, 1).valid


def test_submission_from_payload_parses_client_keys():
    sub = ScoreSubmission.from_payload(7, 'snake', {
        'score': 500, 'timestamp': 1700000000000.0, 'signature': 'ab', 'duration': 1200.5,
        'sessionId': 'abc', 'metadata': {'level': 3},
    })
    assert sub.user_id == '7'
    assert sub.timestamp == 1700000000000
    assert sub.duration == 1200
    assert sub.session_id == 'abc'
    assert sub.metadata == {'level': 3}


@pytest.mark.parametrize('payload', [
    None,
    [],
    {'timestamp': 1},
    {'score': 1},
    {'score': 'high', 'timestamp': 1},
    {'score': True, 'timestamp': 1},
    {'score': 1, 'timestamp': 1, 'duration': -5},
    {'score': 1, 'timestamp': 1, 'signature': 42},
    {'score': 1, 'timestamp': 1, 'metadata': 'x'},
    {'score': 1, 'timestamp': 1, 'metadata': {str(i): i for i in range(40)}},
    {'score': 1, 'timestamp': 1, 'metadata': {'blob': 'x' * 5000}},
])
def test_submission_from_payload_rejects_bad_shapes(payload):
    with pytest.raises(InvalidSubmission):
        ScoreSubmission.from_payload('u1', 'snake', payload)


def test_policy_from_config_overrides_known_keys():
    policy = AntiCheatPolicy.from_config({'REQUIRE_SIGNATURE': False, 'TIMESTAMP_FUTURE_TOLERANCE_MS': 500, 'OTHER': 1})
    assert policy.require_signature is False
    assert policy.timestamp_future_tolerance_ms == 500
    assert policy.ban_threshold == 80
