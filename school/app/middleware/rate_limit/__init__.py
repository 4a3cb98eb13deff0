"""Rate limiting middleware for the school API.

Every inbound request is checked against a per-client token bucket before
routing. Clients are identified by their remote address only; proxy headers
are not trusted.
"""

import math

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from school.app.core.logging import get_logger
from school.app.middleware.rate_limit.limiter import TokenBucketRateLimiter
from school.app.middleware.rate_limit.models import RateLimitResult, TokenBucket

logger = get_logger(__name__)

__all__ = [
    "RateLimitResult",
    "TokenBucket",
    "TokenBucketRateLimiter",
    "RateLimitMiddleware",
    "get_client_key",
]


def get_client_key(request: Request) -> str:
    """Rate limit key for a request: the remote host."""
    return request.client.host if request.client else "unknown"


def _format_delay(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:.2f}s"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce the token bucket limit on every request.

    The limiter is owned by the application (``app.state.rate_limiter``)
    and passed in at registration time.
    """

    def __init__(self, app, limiter: TokenBucketRateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with rate limiting."""
        client_key = get_client_key(request)
        result = self.limiter.check(client_key)

        if not result.allowed:
            logger.info(
                "Rate limit exceeded",
                extra={
                    "client_ip": client_key,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
            # HTTPException raised inside BaseHTTPMiddleware surfaces as a 500,
            # so the 429 is returned directly.
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": (
                        "Rate limit exceeded. "
                        f"Try again in {_format_delay(result.retry_after)}."
                    ),
                    "retry_after": _format_delay(result.retry_after),
                    "retry_after_seconds": round(result.retry_after, 3),
                },
                headers={
                    "Retry-After": str(max(1, math.ceil(result.retry_after))),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return response
