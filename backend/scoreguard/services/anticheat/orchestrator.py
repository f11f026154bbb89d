"""Single entry point for validating a score submission.

A submission moves RECEIVED -> BANNED_REJECT, or RECEIVED -> CHECKING ->
AGGREGATED -> ACCEPTED | REJECTED. Hard gates (timestamp, signature, score
bounds, game-specific bounds) reject on the spot. Soft signals (session,
timing, patterns) are averaged into one confidence value.
"""

import logging
import math
import time
from typing import Any, Callable, Dict, Optional

from .errors import HardGateFailure, InvalidSubmission, SessionUnavailable
from .patterns import PatternDetector
from .policy import AntiCheatPolicy
from .reasonability import ScoreReasonabilityChecker
from .risk import RiskTracker
from .sessions import SessionManager
from .signature import verify_signature
from .store import RiskStore
from .timing import TimingAnalyzer
from .types import CheckResult, Incident, ScoreSubmission, Verdict


logger = logging.getLogger(__name__)

GENERIC_REJECTION = 'Score could not be verified'


def _now_ms() -> int:
    return int(time.time() * 1000)


class AntiCheatOrchestrator:
    def __init__(
        self,
        store: RiskStore,
        secret: str,
        policy: Optional[AntiCheatPolicy] = None,
        session_manager: Optional[SessionManager] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.store = store
        self.secret = secret
        self.policy = policy or AntiCheatPolicy()
        self.session_manager = session_manager
        self.clock = clock
        self.timing = TimingAnalyzer(self.policy)
        self.reasonability = ScoreReasonabilityChecker(self.policy)
        self.patterns = PatternDetector(store, self.policy)
        self.risk = RiskTracker(store, self.policy, clock)

    def validate_payload(self, user_id: Any, game_id: Any, payload: Any) -> Verdict:
        """Parse a raw request body and validate it. Never raises."""
        try:
            submission = ScoreSubmission.from_payload(user_id, game_id, payload)
        except InvalidSubmission as exc:
            logger.info(f"[score-malformed] user={user_id} game={game_id} error={exc}")
            return Verdict(False, 0.0, 0, ['MALFORMED'], reason='Malformed submission', state='REJECTED')
        return self.validate(submission)

    def validate(self, submission: ScoreSubmission) -> Verdict:
        try:
            with self.store.user_lock(submission.user_id):
                return self._run(submission)
        except Exception:
            logger.exception(f"[score-error] user={submission.user_id} game={submission.game_id}")
            return Verdict(False, 0.0, 0, ['INTERNAL_ERROR'], reason='Validation error', state='REJECTED')

    def _run(self, sub: ScoreSubmission) -> Verdict:
        now = self.clock()

        if self.store.is_banned(sub.user_id):
            verdict = Verdict(False, 0.0, 0, ['USER_BANNED'], reason='User is banned', state='BANNED_REJECT')
            self._track(sub, verdict, now)
            return verdict

        checks: Dict[str, CheckResult] = {}
        soft = []
        try:
            self._check_timestamp(sub, now)

            signature = self._check_signature(sub)
            checks['signature'] = signature
            if signature.flags:
                soft.append('signature')

            checks['session'] = self._check_session(sub, now)
            soft.append('session')

            reasonable = self.reasonability.check(sub.game_id, sub.score)
            checks['reasonability'] = reasonable
            if not reasonable.valid:
                raise HardGateFailure(reasonable.reason, reasonable.flags[0])
            soft.append('reasonability')

            checks['timing'] = self.timing.analyze(sub.duration)
            soft.append('timing')
            checks['pattern'] = self.patterns.detect(sub.user_id, sub.game_id, sub.score)
            soft.append('pattern')

            bounds = self.reasonability.check_game_bounds(sub.game_id, sub.score, sub.duration)
            checks['game_bounds'] = bounds
            if not bounds.valid:
                raise HardGateFailure(bounds.reason, bounds.flags[0])
        except HardGateFailure as gate:
            logger.info(f"[score-reject] user={sub.user_id} game={sub.game_id} flag={gate.flag} reason={gate.reason}")
            verdict = Verdict(False, 0.0, 0, [gate.flag], reason=gate.reason, checks=checks, state='REJECTED')
            self._track(sub, verdict, now)
            return verdict

        return self._aggregate(sub, checks, soft, now)

    def _aggregate(self, sub: ScoreSubmission, checks: Dict[str, CheckResult], soft, now: int) -> Verdict:
        p = self.policy
        results = [checks[name] for name in soft]
        confidence = round(sum(r.confidence for r in results) / len(results), 4)

        flags = []
        for result in checks.values():
            flags.extend(f for f in result.flags if f not in flags)
        if 'TOO_FAST' in checks['timing'].flags and 'ZERO_VARIANCE' in checks['pattern'].flags:
            flags.append('AUTOMATION_DETECTED')

        accepted = confidence > p.accept_threshold and all(r.valid for r in results)
        if accepted:
            factor = max(confidence, p.adjust_floor) if p.adjust_score_by_confidence else 1.0
            adjusted = int(math.floor(sub.score * factor))
        else:
            adjusted = 0

        verdict = Verdict(
            accepted=accepted,
            confidence=confidence,
            adjusted_score=adjusted,
            flags=flags,
            reason=None if accepted else GENERIC_REJECTION,
            checks=checks,
            state='ACCEPTED' if accepted else 'REJECTED',
        )
        if not accepted or confidence < p.track_below_confidence or p.severe_flags.intersection(flags):
            self._track(sub, verdict, now)
        return verdict

    def _check_timestamp(self, sub: ScoreSubmission, now: int) -> None:
        age = now - sub.timestamp
        if age < -self.policy.timestamp_future_tolerance_ms:
            raise HardGateFailure('Score submitted from the future', 'FUTURE_TIMESTAMP')
        if age > self.policy.timestamp_max_age_ms:
            raise HardGateFailure('Score too old', 'STALE_TIMESTAMP')

    def _check_signature(self, sub: ScoreSubmission) -> CheckResult:
        if sub.signature is None:
            if self.policy.require_signature:
                raise HardGateFailure('Invalid signature', 'MISSING_SIGNATURE')
            return CheckResult(True, self.policy.unsigned_confidence, ['UNSIGNED'])
        if not verify_signature(sub.user_id, sub.game_id, sub.score, sub.timestamp, sub.signature, self.secret):
            raise HardGateFailure('Invalid signature', 'INVALID_SIGNATURE')
        return CheckResult(True, 1.0)

    def _check_session(self, sub: ScoreSubmission, now: int) -> CheckResult:
        if sub.session_id is None or self.session_manager is None:
            return CheckResult(True, self.policy.no_session_confidence, ['NO_SESSION'])
        try:
            return self.session_manager.close_and_verify(sub, now)
        except SessionUnavailable as exc:
            logger.warning(f"[session-inconclusive] user={sub.user_id} session={sub.session_id} error={exc}")
        except Exception:
            logger.exception(f"[session-inconclusive] user={sub.user_id} session={sub.session_id}")
        return CheckResult(False, 0.0, ['NO_SESSION', 'INCONCLUSIVE'], reason='Session check inconclusive')

    def _track(self, sub: ScoreSubmission, verdict: Verdict, now: int) -> None:
        self.risk.track(sub.user_id, Incident(
            timestamp=now,
            confidence=verdict.confidence,
            flags=list(verdict.flags),
            game_id=sub.game_id,
            score=sub.score,
        ))
