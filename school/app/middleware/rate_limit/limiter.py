"""In-memory token bucket rate limiter.

Each client key gets its own bucket holding up to ``burst`` tokens that
refill continuously at ``requests_per_window / window_seconds`` tokens per
second. Refill happens lazily on every check, so there is no per-client
timer; a background sweep drops buckets that have been idle for two windows.
"""

import asyncio
import time
from typing import Callable, Dict, Optional, Tuple

from school.app.core.logging import get_logger
from school.app.middleware.rate_limit.models import RateLimitResult, TokenBucket

logger = get_logger(__name__)

# Absorbs float drift when a client waits exactly the advertised retry delay.
_EPSILON = 1e-9


class TokenBucketRateLimiter:
    """Per-client token bucket limiter with an owned idle sweep.

    Usage:
        limiter = TokenBucketRateLimiter(requests_per_window=10, window_seconds=5)
        allowed, retry_after = limiter.allow("10.0.0.1")

        await limiter.start_cleanup()
        ...
        await limiter.stop_cleanup()
    """

    def __init__(
        self,
        requests_per_window: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the limiter.

        Args:
            requests_per_window: Requests admitted per window, also the burst size
            window_seconds: Window length, drives the refill rate and sweep interval
            clock: Monotonic time source in seconds, injectable for tests
        """
        if requests_per_window < 1:
            raise ValueError("requests_per_window must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.burst = requests_per_window
        self.window_seconds = float(window_seconds)
        self.rate = requests_per_window / self.window_seconds
        self._clock = clock
        self._buckets: Dict[str, TokenBucket] = {}
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, client_key: str) -> bool:
        return client_key in self._buckets

    def _get_bucket(self, client_key: str, now: float) -> TokenBucket:
        bucket = self._buckets.get(client_key)
        if bucket is None:
            # setdefault is atomic, so two first requests share one bucket
            bucket = self._buckets.setdefault(
                client_key, TokenBucket(tokens=float(self.burst), last_refill=now)
            )
        return bucket

    def check(self, client_key: str) -> RateLimitResult:
        """Refill the client's bucket and try to take one token.

        Args:
            client_key: Client identifier, e.g. the remote address

        Returns:
            RateLimitResult; on denial ``retry_after`` is the time needed to
            refill the missing fraction of a token and nothing is debited.
        """
        now = self._clock()
        bucket = self._get_bucket(client_key, now)

        with bucket.lock:
            elapsed = max(0.0, now - bucket.last_refill)
            bucket.tokens = min(float(self.burst), bucket.tokens + elapsed * self.rate)
            bucket.last_refill = now

            if bucket.tokens + _EPSILON >= 1.0:
                bucket.tokens = max(0.0, bucket.tokens - 1.0)
                return RateLimitResult(
                    allowed=True,
                    limit=self.burst,
                    remaining=int(bucket.tokens),
                )

            return RateLimitResult(
                allowed=False,
                limit=self.burst,
                remaining=0,
                retry_after=(1.0 - bucket.tokens) / self.rate,
            )

    def allow(self, client_key: str) -> Tuple[bool, float]:
        """Return ``(admitted, retry_after_seconds)`` for one request."""
        result = self.check(client_key)
        return result.allowed, result.retry_after

    def tokens(self, client_key: str) -> Optional[float]:
        """Current token count of a client's bucket without refilling it."""
        bucket = self._buckets.get(client_key)
        if bucket is None:
            return None
        with bucket.lock:
            return bucket.tokens

    def sweep(self) -> int:
        """Remove buckets idle for more than two windows.

        Returns:
            Number of buckets removed
        """
        cutoff = self._clock() - 2 * self.window_seconds
        removed = 0
        for key, bucket in list(self._buckets.items()):
            with bucket.lock:
                idle = bucket.last_refill < cutoff
            if idle and self._buckets.get(key) is bucket:
                del self._buckets[key]
                removed += 1
        if removed:
            logger.debug(f"Rate limiter swept {removed} idle buckets")
        return removed

    async def start_cleanup(self) -> None:
        """Start the background sweep, once per window."""
        if self._task is not None:
            logger.debug("Rate limiter sweep already running")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_cleanup())
        logger.info(f"Started rate limiter sweep (interval: {self.window_seconds}s)")

    async def stop_cleanup(self) -> None:
        """Stop the background sweep and wait for it to exit."""
        if self._task is None:
            return

        self._stop_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Rate limiter sweep did not stop gracefully, cancelling")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
            logger.info("Stopped rate limiter sweep")

    @property
    def cleanup_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run_cleanup(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.window_seconds)
            except asyncio.TimeoutError:
                # Interval elapsed
                self.sweep()
