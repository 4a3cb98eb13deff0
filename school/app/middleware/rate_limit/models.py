"""Rate limiting data models.

This module contains dataclasses for token bucket state and check results.
"""

import threading
from dataclasses import dataclass, field


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""
    allowed: bool
    limit: int
    remaining: int
    retry_after: float = 0.0


@dataclass
class TokenBucket:
    """Token bucket state for a single client.

    ``tokens`` stays within ``[0, burst]``. ``lock`` guards both fields;
    buckets of different clients never share a lock.
    """
    tokens: float
    last_refill: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
