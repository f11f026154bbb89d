"""Value types passed between the anti-cheat checks."""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import InvalidSubmission


MAX_METADATA_KEYS = 32
MAX_METADATA_BYTES = 4096
MAX_ID_LENGTH = 128


def _as_int(value: Any, name: str) -> int:
    # bool is an int subclass; a JSON true is never a valid score or timestamp
    if isinstance(value, bool):
        raise InvalidSubmission(f'{name} must be an integer')
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidSubmission(f'{name} must be an integer')
        return int(value)
    if not isinstance(value, int):
        raise InvalidSubmission(f'{name} must be an integer')
    return value


def _as_id(value: Any, name: str) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value or len(value) > MAX_ID_LENGTH:
        raise InvalidSubmission(f'{name} is required')
    return value


def validate_metadata(metadata: Any) -> Dict[str, Any]:
    """Check the opaque metadata bag for size and shape only."""
    if metadata is None:
        return {}
    if not isinstance(metadata, dict):
        raise InvalidSubmission('metadata must be an object')
    if len(metadata) > MAX_METADATA_KEYS:
        raise InvalidSubmission('metadata has too many keys')
    if not all(isinstance(k, str) for k in metadata):
        raise InvalidSubmission('metadata keys must be strings')
    try:
        encoded = json.dumps(metadata, separators=(',', ':'))
    except (TypeError, ValueError):
        raise InvalidSubmission('metadata must be JSON serialisable')
    if len(encoded.encode('utf-8')) > MAX_METADATA_BYTES:
        raise InvalidSubmission('metadata is too large')
    return dict(metadata)


@dataclass(frozen=True)
class ScoreSubmission:
    user_id: str
    game_id: str
    score: int
    timestamp: int
    signature: Optional[str] = None
    duration: Optional[int] = None
    session_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, user_id: Any, game_id: Any, payload: Any) -> 'ScoreSubmission':
        """Build a submission from a decoded JSON body.

        Accepts the camelCase keys sent by the game client. Raises
        InvalidSubmission when a required field is missing or mistyped.
        """
        if not isinstance(payload, dict):
            raise InvalidSubmission('body must be a JSON object')
        if 'score' not in payload:
            raise InvalidSubmission('score is required')
        if 'timestamp' not in payload:
            raise InvalidSubmission('timestamp is required')

        signature = payload.get('signature')
        if signature is not None and not isinstance(signature, str):
            raise InvalidSubmission('signature must be a string')

        duration = payload.get('duration')
        if duration is not None:
            if (isinstance(duration, bool) or not isinstance(duration, (int, float))
                    or (isinstance(duration, float) and not math.isfinite(duration)) or duration < 0):
                raise InvalidSubmission('duration must be a non-negative number')
            duration = int(duration)

        session_id = payload.get('sessionId', payload.get('session_id'))
        if session_id is not None:
            session_id = _as_id(session_id, 'sessionId')

        return cls(
            user_id=_as_id(user_id, 'userId'),
            game_id=_as_id(game_id, 'gameId'),
            score=_as_int(payload['score'], 'score'),
            timestamp=_as_int(payload['timestamp'], 'timestamp'),
            signature=signature or None,
            duration=duration,
            session_id=session_id,
            metadata=validate_metadata(payload.get('metadata')),
        )


@dataclass
class CheckResult:
    valid: bool
    confidence: float
    flags: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'valid': self.valid, 'confidence': self.confidence, 'flags': list(self.flags)}
        if self.reason:
            data['reason'] = self.reason
        return data


@dataclass
class Incident:
    timestamp: int
    confidence: float
    flags: List[str]
    game_id: str
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'confidence': self.confidence,
            'flags': list(self.flags),
            'gameId': self.game_id,
            'score': self.score,
        }


@dataclass
class Verdict:
    accepted: bool
    confidence: float
    adjusted_score: int
    flags: List[str] = field(default_factory=list)
    reason: Optional[str] = None
    checks: Dict[str, CheckResult] = field(default_factory=dict)
    state: str = 'RECEIVED'

    def to_dict(self, include_internals: bool = True) -> Dict[str, Any]:
        """Serialise for a response. Internals (confidence, flags, per-check
        breakdown) are for admin callers only."""
        data: Dict[str, Any] = {'accepted': self.accepted, 'adjustedScore': self.adjusted_score}
        if self.reason:
            data['reason'] = self.reason
        if include_internals:
            data['confidence'] = self.confidence
            data['flags'] = list(self.flags)
            data['checks'] = {name: c.to_dict() for name, c in self.checks.items()}
        return data
