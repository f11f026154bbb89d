"""Play-session closure checks.

The session store lives outside the anti-cheat core. A manager answers one
question: does the claimed session back this submission? It returns a
CheckResult, or raises SessionUnavailable when it cannot answer.
"""

from dataclasses import dataclass
from typing import Optional

from .types import CheckResult, ScoreSubmission


@dataclass(frozen=True)
class SessionSnapshot:
    user_id: str
    game_id: str
    started_at: int
    closed_at: Optional[int] = None


class SessionManager:
    def __init__(self, clock_slack_ms: int = 2000):
        self.clock_slack_ms = clock_slack_ms

    def close_and_verify(self, submission: ScoreSubmission, now_ms: int) -> CheckResult:
        raise NotImplementedError

    def judge(self, snapshot: Optional[SessionSnapshot], submission: ScoreSubmission, now_ms: int) -> CheckResult:
        if snapshot is None:
            return CheckResult(False, 0.0, ['SESSION_TAMPERING'], reason='Unknown session')
        if snapshot.user_id != submission.user_id or snapshot.game_id != submission.game_id:
            return CheckResult(False, 0.0, ['SESSION_TAMPERING'], reason='Session does not match submission')
        if snapshot.closed_at is not None:
            return CheckResult(False, 0.0, ['SESSION_TAMPERING'], reason='Session already used')
        elapsed = now_ms - snapshot.started_at
        if submission.duration is not None and submission.duration > elapsed + self.clock_slack_ms:
            # Claimed play time longer than the session has existed
            return CheckResult(False, 0.0, ['SESSION_TAMPERING'], reason='Duration exceeds session')
        return CheckResult(True, 1.0)


class InMemorySessionManager(SessionManager):
    """Dict-backed manager for tests and single-process tools."""

    def __init__(self, clock_slack_ms: int = 2000):
        super().__init__(clock_slack_ms)
        self.sessions = {}

    def open(self, session_id: str, user_id: str, game_id: str, started_at: int) -> None:
        self.sessions[session_id] = SessionSnapshot(user_id, game_id, started_at)

    def close_and_verify(self, submission: ScoreSubmission, now_ms: int) -> CheckResult:
        snapshot = self.sessions.get(submission.session_id)
        result = self.judge(snapshot, submission, now_ms)
        if result.valid:
            self.sessions[submission.session_id] = SessionSnapshot(
                snapshot.user_id, snapshot.game_id, snapshot.started_at, closed_at=now_ms
            )
        return result
