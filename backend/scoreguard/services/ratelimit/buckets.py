import time
from typing import Callable, Optional, Tuple


class TokenBucket:
    """Lazily refilled token bucket.

    No timer runs in the background; the bucket tops itself up from the
    elapsed time whenever it is touched. ``tokens`` stays within
    [0, capacity] for any sequence of calls.
    """

    def __init__(self, capacity: float, fill_rate: float, clock: Callable[[], float] = time.time,
                 tokens: Optional[float] = None):
        if capacity <= 0 or fill_rate < 0:
            raise ValueError('capacity must be positive and fill_rate non-negative')
        self.capacity = float(capacity)
        self.fill_rate = float(fill_rate)
        self.clock = clock
        self.tokens = self.capacity if tokens is None else max(0.0, min(self.capacity, float(tokens)))
        self.last_refill = clock()

    def refill(self) -> None:
        now = self.clock()
        # A clock stepping backwards must never add tokens
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.fill_rate)
        self.last_refill = max(self.last_refill, now)

    def consume(self, n: float = 1) -> bool:
        if n < 0:
            raise ValueError('cannot consume a negative number of tokens')
        self.refill()
        if self.tokens >= n:
            self.tokens -= n
            return True
        return False

    def available(self) -> float:
        self.refill()
        return self.tokens

    def seconds_until(self, n: float = 1) -> float:
        """Time until ``n`` tokens are available; inf if it can never happen."""
        self.refill()
        missing = n - self.tokens
        if missing <= 0:
            return 0.0
        if n > self.capacity or self.fill_rate == 0:
            return float('inf')
        return missing / self.fill_rate

    def resize(self, capacity: float, fill_rate: float) -> None:
        self.refill()
        self.capacity = float(capacity)
        self.fill_rate = float(fill_rate)
        self.tokens = min(self.tokens, self.capacity)

    def idle_for(self, now: float) -> float:
        return now - self.last_refill


class FixedWindow:
    """Counter for one key over a fixed window starting at its first hit."""

    __slots__ = ('started_at', 'count')

    def __init__(self, started_at: float):
        self.started_at = started_at
        self.count = 0

    def hit(self, now: float, limit: int, window_seconds: float) -> Tuple[bool, int, float]:
        """Count one request. Returns (allowed, remaining, reset_at)."""
        if now - self.started_at >= window_seconds or now < self.started_at:
            self.started_at = now
            self.count = 0
        reset_at = self.started_at + window_seconds
        if self.count >= limit:
            return False, 0, reset_at
        self.count += 1
        return True, limit - self.count, reset_at

    def expired(self, now: float, window_seconds: float) -> bool:
        return now - self.started_at >= window_seconds
