"""Request rate limiting: token buckets and fixed windows, no Flask imports."""

from .buckets import FixedWindow, TokenBucket
from .limiter import (
    DEFAULT_POLICIES,
    RateLimitDecision,
    RateLimiter,
    RateLimitPolicy,
    score_submit_key,
    system_load,
)

__all__ = [
    'DEFAULT_POLICIES',
    'FixedWindow',
    'RateLimitDecision',
    'RateLimitPolicy',
    'RateLimiter',
    'TokenBucket',
    'score_submit_key',
    'system_load',
]
