from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from scoreguard.middleware import rate_limited
from scoreguard.services.games.sessions import open_session

sessions = Blueprint('sessions', __name__)


@sessions.route('', methods=['POST'])
@login_required
@rate_limited('game')
def start_session():
    """
    Opens a tracked play session. The client sends the returned sessionId
    with its score; the submission closes the session.
    """
    data = request.get_json(silent=True) or {}
    game_id = data.get('gameId')
    if not isinstance(game_id, str) or not game_id or len(game_id) > 64:
        return jsonify({'error': 'gameId is required'}), 400
    session = open_session(current_user.id, game_id)
    current_app.logger.info(f"[session-open] user={current_user.id} game={game_id} session={session.id}")
    return jsonify(session.to_dict()), 201
