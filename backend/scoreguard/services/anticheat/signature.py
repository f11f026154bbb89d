"""Score signatures.

A signature is the hex SHA-256 of ``userId-gameId-score-timestamp-secret``.
The secret is appended rather than used as an HMAC key so that existing game
clients keep working; a keyed HMAC would be the stronger construction.
Comparison is constant time.
"""

import hashlib
import hmac
from typing import Any


def _canonical(value: Any) -> str:
    # JS clients format 1700000000000.0 as "1700000000000"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def generate_signature(user_id, game_id, score, timestamp, secret: str) -> str:
    data = '-'.join(_canonical(v) for v in (user_id, game_id, score, timestamp, secret))
    return hashlib.sha256(data.encode('utf-8')).hexdigest()


def verify_signature(user_id, game_id, score, timestamp, signature, secret: str) -> bool:
    """Return True only when ``signature`` matches. Fails closed."""
    if not isinstance(signature, str) or len(signature) != 64 or not secret:
        return False
    try:
        expected = generate_signature(user_id, game_id, score, timestamp, secret)
        return hmac.compare_digest(expected, signature)
    except (TypeError, ValueError, UnicodeError):
        return False
