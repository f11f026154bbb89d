from scoreguard import db
from scoreguard.models import PlaySession
from scoreguard.services.anticheat.errors import SessionUnavailable
from scoreguard.services.anticheat.sessions import SessionManager, SessionSnapshot
from sqlalchemy.exc import SQLAlchemyError


def open_session(user_id: int, game_id: str) -> PlaySession:
    session = PlaySession(user_id=user_id, game_id=game_id)
    db.session.add(session)
    db.session.commit()
    return session


class SqlSessionManager(SessionManager):
    """Closes PlaySession rows on score submission.

    Must be called inside an app context. Database errors surface as
    SessionUnavailable so the orchestrator can mark the check inconclusive.
    """

    def close_and_verify(self, submission, now_ms):
        try:
            row = db.session.get(PlaySession, submission.session_id)
            snapshot = None
            if row is not None:
                snapshot = SessionSnapshot(
                    user_id=str(row.user_id),
                    game_id=row.game_id,
                    started_at=row.started_at,
                    closed_at=row.closed_at,
                )
            result = self.judge(snapshot, submission, now_ms)
            if result.valid:
                row.closed_at = now_ms
                db.session.add(row)
                db.session.commit()
            return result
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise SessionUnavailable(str(exc)) from exc
