"""Core utilities: settings, logging, cache backends and security."""

from school.app.core.cache import (
    CacheBackend,
    InMemoryCache,
    RedisCache,
    get_cache,
    reset_cache,
)
from school.app.core.config import settings
from school.app.core.logging import get_logger, setup_logging

__all__ = [
    "CacheBackend",
    "InMemoryCache",
    "RedisCache",
    "get_cache",
    "reset_cache",
    "settings",
    "get_logger",
    "setup_logging",
]
