from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from scoreguard.middleware import get_cache
from scoreguard.services.anticheat import PermissionDenied

admin = Blueprint('admin', __name__)


def _admin_service():
    return current_app.extensions['scoreguard_admin']


@admin.errorhandler(PermissionDenied)
def forbidden(exc):
    current_app.logger.warning(f"[admin-denied] user={current_user.get_id()} path={request.path}")
    return jsonify({'error': str(exc)}), 403


@admin.route('/users/<string:user_id>/ban', methods=['POST'])
@login_required
def ban_user(user_id):
    data = request.get_json(silent=True) or {}
    reason = data.get('reason') or 'Banned by admin'
    added = _admin_service().ban_user(current_user, user_id, reason)
    current_app.logger.info(f"[admin-ban] actor={current_user.id} user={user_id} added={added}")
    return jsonify({'success': True, 'userId': user_id, 'alreadyBanned': not added})


@admin.route('/users/<string:user_id>/unban', methods=['POST'])
@login_required
def unban_user(user_id):
    removed = _admin_service().unban_user(current_user, user_id)
    current_app.logger.info(f"[admin-unban] actor={current_user.id} user={user_id} removed={removed}")
    return jsonify({'success': True, 'userId': user_id, 'wasBanned': removed})


@admin.route('/users/<string:user_id>/risk', methods=['GET'])
@login_required
def risk_profile(user_id):
    return jsonify(_admin_service().get_user_risk_profile(current_user, user_id))


@admin.route('/stats', methods=['GET'])
@login_required
def stats():
    data = _admin_service().get_stats(current_user)
    data['cache'] = get_cache().stats()
    data['rateLimit'] = current_app.extensions['scoreguard_ratelimit'].stats()
    return jsonify(data)


@admin.route('/cache/clear', methods=['POST'])
@login_required
def clear_cache():
    if not current_user.is_admin:
        raise PermissionDenied('Admin privileges required')
    data = request.get_json(silent=True) or {}
    cleared = get_cache().clear(data.get('pattern'))
    return jsonify({'success': True, 'cleared': cleared})
