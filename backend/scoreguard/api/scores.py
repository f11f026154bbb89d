from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from scoreguard import socketio
from scoreguard.middleware import cached, get_cache, rate_limited
from scoreguard.services.games.scoring import get_leaderboard, get_position, record_best_score

scores = Blueprint('scores', __name__)


def leaderboard_cache_pattern(game_id):
    return f"GET:/api/scores/{game_id}?"


@scores.route('/<string:game_id>', methods=['POST'])
@login_required
@rate_limited('score_submit')
def submit_score(game_id):
    """
    Validates a signed score with the anti-cheat pipeline and keeps it if it
    is the player's new best.
    """
    data = request.get_json(silent=True)
    verdict = current_app.extensions['scoreguard'].validate_payload(current_user.get_id(), game_id, data)
    body = {'success': verdict.accepted}
    body.update(verdict.to_dict(include_internals=current_user.is_admin))

    if not verdict.accepted:
        current_app.logger.info(
            f"[score-rejected] user={current_user.id} game={game_id} state={verdict.state} reason={verdict.reason}"
        )
        return jsonify(body), 400

    is_new_best, previous = record_best_score(current_user.id, game_id, verdict.adjusted_score, data.get('metadata'))
    body['isNewBest'] = is_new_best
    body['previousBest' if is_new_best else 'currentBest'] = previous
    current_app.logger.info(
        f"[score-accept] user={current_user.id} game={game_id} score={verdict.adjusted_score} new_best={is_new_best}"
    )

    if is_new_best:
        get_cache().clear(leaderboard_cache_pattern(game_id))
        socketio.emit(
            'leaderboard_update',
            {'gameId': game_id, 'userId': current_user.id, 'username': current_user.username,
             'score': verdict.adjusted_score},
            to=f"leaderboard:{game_id}",
            namespace='/ws',
        )
    return jsonify(body), 200


@scores.route('/<string:game_id>', methods=['GET'])
@rate_limited('leaderboard')
@cached()
def leaderboard(game_id):
    try:
        limit = int(request.args.get('limit', 100))
    except ValueError:
        return jsonify({'error': 'limit must be an integer'}), 400
    limit = max(1, min(limit, 1000))
    return jsonify({'success': True, 'data': {'gameId': game_id, 'leaderboard': get_leaderboard(game_id, limit)}})


@scores.route('/<string:game_id>/position/<int:user_id>', methods=['GET'])
@rate_limited('leaderboard')
def position(game_id, user_id):
    found = get_position(user_id, game_id)
    if not found:
        return jsonify({'success': True, 'data': {'hasScore': False}})
    found['hasScore'] = True
    return jsonify({'success': True, 'data': found})
