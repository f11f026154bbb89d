"""Flask glue for rate limiting and response caching.

The bypass header and the admin role skip rate limiting entirely. This is an
operational escape hatch for load tests and support staff, not a security
boundary; RATE_LIMIT_BYPASS_TOKEN must be guarded like ANTI_CHEAT_SECRET.
"""

from functools import wraps
import hmac

from flask import current_app, jsonify, make_response, request
from flask_login import current_user

from scoreguard.services.ratelimit import score_submit_key


EXEMPT_PATHS = {'/health'}


def get_limiter():
    return current_app.extensions['scoreguard_ratelimit']


def get_cache():
    return current_app.extensions['scoreguard_cache']


def client_ip():
    return request.remote_addr or 'unknown'


def _user_id():
    if current_user.is_authenticated:
        return current_user.get_id()
    return None


def is_bypassed():
    token = current_app.config.get('RATE_LIMIT_BYPASS_TOKEN') or ''
    supplied = request.headers.get('X-Bypass-Token', '')
    if token and supplied and hmac.compare_digest(token.encode('utf-8'), supplied.encode('utf-8')):
        current_app.logger.info(f"[rate-limit-bypass] path={request.path} ip={client_ip()} via=token")
        return True
    if current_user.is_authenticated and getattr(current_user, 'is_admin', False):
        return True
    return False


def rate_limit_response(decision):
    res = make_response(jsonify(decision.to_response()), 429)
    res.headers['Retry-After'] = str(decision.retry_after_seconds(get_limiter().clock()))
    return res


def adaptive_rate_limit():
    """before_request hook: global per-identity limit for every request."""
    if not current_app.config.get('RATE_LIMIT_ENABLED', True):
        return None
    if request.method == 'OPTIONS' or request.path in EXEMPT_PATHS or is_bypassed():
        return None
    user_id = _user_id()
    decision = get_limiter().check_adaptive(
        user_id or client_ip(),
        authenticated=user_id is not None,
        premium=bool(user_id and getattr(current_user, 'is_premium', False)),
    )
    if not decision.allowed:
        return rate_limit_response(decision)
    return None


def _default_key(policy_name):
    if policy_name == 'score_submit':
        return score_submit_key(client_ip(), _user_id())
    return _user_id() or client_ip()


def rate_limited(policy_name):
    """Apply one of the named fixed-window policies to a view."""
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if (request.method != 'OPTIONS' and current_app.config.get('RATE_LIMIT_ENABLED', True)
                    and not is_bypassed()):
                decision = get_limiter().check(policy_name, _default_key(policy_name))
                if not decision.allowed:
                    return rate_limit_response(decision)
            return view(*args, **kwargs)
        return wrapper
    return decorator


def cache_key():
    return f"{request.method}:{request.full_path}:{_user_id() or 'anonymous'}"


def cached(ttl=None):
    """Cache successful JSON GET responses for ``ttl`` seconds."""
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if request.method != 'GET':
                return view(*args, **kwargs)
            cache = get_cache()
            key = cache_key()
            data = cache.get(key)
            if data is not None:
                res = make_response(jsonify(data))
                res.headers['X-Cache'] = 'HIT'
                return res
            res = make_response(view(*args, **kwargs))
            if res.status_code == 200 and res.is_json:
                cache.set(key, res.get_json(), ttl)
            res.headers['X-Cache'] = 'MISS'
            return res
        return wrapper
    return decorator
