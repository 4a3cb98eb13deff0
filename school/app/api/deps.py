"""Shared FastAPI dependencies for the routers."""

from typing import Annotated, Optional

from fastapi import Depends, Query

from school.app.core.cache import CacheBackend, get_cache
from school.app.db.pagination import PaginatedQuery


def get_cache_backend() -> Optional[CacheBackend]:
    """Cache used by list endpoints, or None when caching is disabled."""
    return get_cache()


PaginationDep = Annotated[PaginatedQuery, Query()]
CacheDep = Annotated[Optional[CacheBackend], Depends(get_cache_backend)]
