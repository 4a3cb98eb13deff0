"""Cache-aside access for list endpoints.

List reads try the cache first and fall back to the database on a miss,
writing the fetched list back with a short TTL. The cache is strictly
best-effort: a broken or unreachable cache degrades to a direct fetch and is
only ever logged.

Cached lists are not invalidated on writes. Staleness is bounded by the TTL
(30 seconds by default). Concurrent misses for the same key each fetch and
the last write wins.

Cache key format: {prefix}:{k1}={v1}&{k2}={v2}... with parameter names sorted.
"""

from typing import Any, Awaitable, Callable, Generic, Mapping, Optional, Protocol, Sequence, TypeVar

from pydantic import TypeAdapter
from redis.exceptions import RedisError

from school.app.core.cache import CacheBackend
from school.app.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 30

# Errors the accessor absorbs. Pydantic's ValidationError is a ValueError,
# so undecodable payloads are covered too.
CACHE_ERRORS = (RedisError, OSError, ValueError)

Fetcher = Callable[[], Awaitable[list]]


class ListStore(Protocol[T]):
    """Anything that can get and set a list by key."""

    async def get_list(self, key: str) -> Optional[list[T]]: ...

    async def set_list(self, key: str, items: Sequence[T]) -> None: ...


class ListCache(Generic[T]):
    """Typed list store on top of a byte CacheBackend.

    Values are JSON arrays encoded and decoded with a pydantic TypeAdapter
    for ``list[item_type]``.

    Example:
        >>> students = ListCache(get_cache(), StudentRead)
        >>> await students.set_list("students:list:limit=10", items)
    """

    def __init__(
        self,
        backend: CacheBackend,
        item_type: type[T],
        ttl: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self.backend = backend
        self.ttl = ttl
        self._adapter: TypeAdapter[list[T]] = TypeAdapter(list[item_type])

    async def get_list(self, key: str) -> Optional[list[T]]:
        """Return the cached list, or None on a miss.

        Raises:
            RedisError, OSError: the backend is unreachable
            ValueError: the payload does not decode as a list of items
        """
        data = await self.backend.get(key)
        if data is None:
            return None
        return self._adapter.validate_json(data)

    async def set_list(self, key: str, items: Sequence[T]) -> None:
        await self.backend.set(key, self._adapter.dump_json(list(items)), self.ttl)


def build_cache_key(prefix: str, params: Mapping[str, Any]) -> str:
    """Derive a deterministic cache key from a prefix and query parameters.

    Parameter names are sorted, so two mappings with the same pairs produce
    the same key regardless of insertion order.

    Args:
        prefix: Logical query name, e.g. "students:list"
        params: Parameters used only for key derivation

    Returns:
        Key such as "students:list:limit=10&offset=0&order=asc&sort=id"
    """
    pairs = "&".join(f"{name}={params[name]}" for name in sorted(params))
    return f"{prefix}:{pairs}"


async def _read(store: ListStore[T], key: str) -> Optional[list[T]]:
    try:
        return await store.get_list(key)
    except CACHE_ERRORS as e:
        logger.warning(f"Cache read failed for '{key}', falling back to database: {e}")
        return None


async def _write(store: ListStore[T], key: str, items: list[T]) -> None:
    try:
        await store.set_list(key, items)
    except CACHE_ERRORS as e:
        logger.warning(f"Cache write failed for '{key}': {e}")


async def _read_through(store: ListStore[T], key: str, fetcher: Fetcher) -> list[T]:
    cached = await _read(store, key)
    if cached:
        logger.debug(f"Cache hit for '{key}'")
        return cached

    items = await fetcher()
    await _write(store, key, items)
    return items


async def get_list_with_cache(
    store: ListStore[T],
    prefix: str,
    params: Mapping[str, Any],
    fetcher: Fetcher,
) -> list[T]:
    """Serve a list query from the cache, falling back to ``fetcher``.

    A non-empty cached list is returned without calling ``fetcher``.
    Otherwise ``fetcher`` runs exactly once and its result is written back
    once. Cache failures are logged and never raised; errors raised by
    ``fetcher`` propagate unchanged.

    Args:
        store: List cache to read from and populate
        prefix: Logical query name used in the key
        params: Query parameters used in the key
        fetcher: Coroutine function returning the authoritative list

    Returns:
        The cached or freshly fetched list
    """
    return await _read_through(store, build_cache_key(prefix, params), fetcher)


def students_by_teacher_key(teacher_id: int) -> str:
    return f"students:teacher:{teacher_id}"


async def get_students_by_teacher_with_cache(
    store: ListStore[T],
    teacher_id: int,
    fetcher: Fetcher,
) -> list[T]:
    """Point lookup of a teacher's students, keyed by teacher id.

    Same read-through and write-back behaviour as ``get_list_with_cache``.
    """
    return await _read_through(store, students_by_teacher_key(teacher_id), fetcher)
