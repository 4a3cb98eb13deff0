"""Middleware package for the school API."""

from school.app.middleware.auth import get_current_user, require_role
from school.app.middleware.rate_limit import RateLimitMiddleware, TokenBucketRateLimiter
from school.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "get_current_user",
    "require_role",
    "RateLimitMiddleware",
    "TokenBucketRateLimiter",
    "RequestIdMiddleware",
    "get_request_id",
]
