"""Per-endpoint fixed-window limits plus an adaptive per-identity bucket."""

import logging
import math
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..locks import KeyedLocks
from .buckets import FixedWindow, TokenBucket


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    name: str
    limit: int
    window_seconds: int
    message: str


DEFAULT_POLICIES: Dict[str, RateLimitPolicy] = {
    'auth': RateLimitPolicy('auth', 5, 15 * 60, 'Too many login attempts. Please try again later.'),
    'game': RateLimitPolicy('game', 60, 60, 'Too many game requests. Please wait a moment.'),
    'leaderboard': RateLimitPolicy('leaderboard', 200, 60, 'Too many leaderboard requests.'),
    'score_submit': RateLimitPolicy(
        'score_submit', 10, 5 * 60, 'Too many score submissions. Please play more before submitting.'
    ),
    # for upload endpoints served next to this API; no route here uses it
    'upload': RateLimitPolicy('upload', 10, 60 * 60, 'Upload limit reached. Please try again later.'),
}


@dataclass
class RateLimitDecision:
    allowed: bool
    policy: str
    limit: int
    remaining: int
    reset_at: float
    message: str = ''
    remaining_tokens: Optional[int] = None
    max_tokens: Optional[int] = None

    @property
    def retry_after_ms(self) -> int:
        """Epoch milliseconds at which a retry can succeed."""
        return int(math.ceil(self.reset_at * 1000))

    def retry_after_seconds(self, now: float) -> int:
        return max(1, int(math.ceil(self.reset_at - now)))

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            'success': False,
            'message': self.message,
            'retryAfter': self.retry_after_ms,
        }
        if self.remaining_tokens is not None:
            body['remainingTokens'] = self.remaining_tokens
            body['maxTokens'] = self.max_tokens
        return body


def system_load() -> float:
    """One-minute load average per CPU, clamped to [0, 1]."""
    try:
        load1 = os.getloadavg()[0]
    except (AttributeError, OSError):
        return 0.0
    return max(0.0, min(1.0, load1 / (os.cpu_count() or 1)))


def score_submit_key(ip: Optional[str], user_id: Optional[Any]) -> str:
    return f'{ip}:{user_id}:score'


class RateLimiter:
    """Process-wide limiter state.

    ``check`` applies a named fixed-window policy. ``check_adaptive`` applies
    the global per-identity bucket whose size depends on who is calling and
    how loaded the host is.
    """

    def __init__(
        self,
        policies: Optional[Dict[str, RateLimitPolicy]] = None,
        adaptive_base: int = 100,
        adaptive_window_seconds: int = 15 * 60,
        load_provider: Callable[[], float] = system_load,
        clock: Callable[[], float] = time.time,
        max_keys: int = 100000,
    ):
        self.policies = dict(DEFAULT_POLICIES if policies is None else policies)
        self.adaptive_base = adaptive_base
        self.adaptive_window_seconds = adaptive_window_seconds
        self.load_provider = load_provider
        self.clock = clock
        self.max_keys = max_keys
        self._guard = threading.Lock()
        self._locks = KeyedLocks()
        self._windows: Dict[tuple, FixedWindow] = {}
        self._buckets: Dict[str, TokenBucket] = {}

    def check(self, policy_name: str, key: str) -> RateLimitDecision:
        policy = self.policies[policy_name]
        wkey = (policy_name, key)
        with self._locks.hold(wkey):
            now = self.clock()
            window = self._window(wkey, now)
            allowed, remaining, reset_at = window.hit(now, policy.limit, policy.window_seconds)
        if not allowed:
            logger.info(f"[rate-limit] policy={policy_name} key={key} reset_at={reset_at:.0f}")
        return RateLimitDecision(
            allowed=allowed,
            policy=policy_name,
            limit=policy.limit,
            remaining=remaining,
            reset_at=reset_at,
            message='' if allowed else policy.message,
        )

    def current_load(self) -> float:
        try:
            load = float(self.load_provider())
        except Exception:
            logger.exception('[rate-limit] load provider failed')
            return 0.0
        return max(0.0, min(1.0, load))

    def adaptive_max(self, authenticated: bool = False, premium: bool = False) -> int:
        if premium:
            return self.adaptive_base * 5
        if authenticated:
            return self.adaptive_base * 2
        return max(10, int(math.floor(self.adaptive_base * (1 - self.current_load() * 0.5))))

    def check_adaptive(self, identity: str, authenticated: bool = False, premium: bool = False) -> RateLimitDecision:
        capacity = self.adaptive_max(authenticated, premium)
        fill_rate = capacity / float(self.adaptive_window_seconds)
        with self._locks.hold(('adaptive', identity)):
            bucket = self._bucket(identity, capacity, fill_rate)
            if bucket.capacity != capacity:
                bucket.resize(capacity, fill_rate)
            allowed = bucket.consume(1)
            now = self.clock()
            wait = bucket.seconds_until(1)
            remaining_tokens = int(math.floor(bucket.tokens))
        if not allowed:
            logger.info(f"[rate-limit] policy=adaptive key={identity} capacity={capacity}")
        return RateLimitDecision(
            allowed=allowed,
            policy='adaptive',
            limit=capacity,
            remaining=remaining_tokens,
            reset_at=now + (wait if math.isfinite(wait) else self.adaptive_window_seconds),
            message='' if allowed else 'Too many requests. Please slow down.',
            remaining_tokens=remaining_tokens,
            max_tokens=capacity,
        )

    def _window(self, wkey: tuple, now: float) -> FixedWindow:
        with self._guard:
            window = self._windows.get(wkey)
            if window is None:
                self._evict_oldest(self._windows)
                window = FixedWindow(now)
                self._windows[wkey] = window
            return window

    def _bucket(self, identity: str, capacity: int, fill_rate: float) -> TokenBucket:
        with self._guard:
            bucket = self._buckets.get(identity)
            if bucket is None:
                self._evict_oldest(self._buckets)
                bucket = TokenBucket(capacity, fill_rate, clock=self.clock)
                self._buckets[identity] = bucket
            return bucket

    def _evict_oldest(self, mapping: dict) -> None:
        while len(mapping) >= self.max_keys:
            mapping.pop(next(iter(mapping)))

    def sweep(self, idle_seconds: float = 60 * 60) -> int:
        """Drop buckets idle for ``idle_seconds`` and windows that have run out."""
        now = self.clock()
        removed = 0
        with self._guard:
            for identity in [k for k, b in self._buckets.items() if b.idle_for(now) > idle_seconds]:
                del self._buckets[identity]
                removed += 1
            for wkey in [k for k, w in self._windows.items()
                         if k[0] not in self.policies or w.expired(now, self.policies[k[0]].window_seconds)]:
                del self._windows[wkey]
                removed += 1
        return removed

    def stats(self) -> Dict[str, int]:
        return {'buckets': len(self._buckets), 'windows': len(self._windows)}
