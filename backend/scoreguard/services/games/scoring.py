from scoreguard import db
from scoreguard.models import BestScore
from sqlalchemy.exc import IntegrityError
import json
import time


def record_best_score(user_id: int, game_id: str, score: int, metadata=None):
    """Store ``score`` if it beats the user's best for this game.

    Returns (is_new_best, previous_best). previous_best is 0 when the user has
    no score yet.
    """
    payload = json.dumps(metadata) if metadata else None
    now = int(time.time() * 1000)
    current = BestScore.query.filter_by(user_id=user_id, game_id=game_id).first()
    if current is None:
        db.session.add(BestScore(user_id=user_id, game_id=game_id, score=score, metadata_json=payload, submitted_at=now))
        try:
            db.session.commit()
            return True, 0
        except IntegrityError:
            # Another request inserted first; fall through to the update path
            db.session.rollback()
            current = BestScore.query.filter_by(user_id=user_id, game_id=game_id).first()
    previous = current.score
    if score <= previous:
        return False, previous
    current.score = score
    current.metadata_json = payload
    current.submitted_at = now
    db.session.add(current)
    db.session.commit()
    return True, previous


def get_leaderboard(game_id: str, limit: int = 100):
    rows = (
        BestScore.query.filter_by(game_id=game_id)
        .order_by(BestScore.score.desc(), BestScore.submitted_at.asc())
        .limit(limit)
        .all()
    )
    board = []
    for rank, row in enumerate(rows, start=1):
        entry = row.to_dict()
        entry['rank'] = rank
        entry.pop('metadata', None)
        board.append(entry)
    return board


def get_position(user_id: int, game_id: str):
    best = BestScore.query.filter_by(user_id=user_id, game_id=game_id).first()
    if not best:
        return None
    better = BestScore.query.filter(BestScore.game_id == game_id, BestScore.score > best.score).count()
    total = BestScore.query.filter_by(game_id=game_id).count()
    return {'score': best.score, 'rank': better + 1, 'totalPlayers': total}
