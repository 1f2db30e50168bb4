"""Cache-aside read orchestration shared by every resource accessor.

Read path: cache (unless forced) -> API -> transform -> write-through.
On API failure: stale cache entry of any age -> resource default.
A cached payload that no longer decodes into its model counts as a miss.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, TypeVar

from core.cache import STALE_OK
from core.errors import ApiError
from core.interfaces import ApiTransport, ResourceCache
from core.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)

_MISS = object()


class CachedResource:
    def __init__(self, *, api: ApiTransport, cache: ResourceCache) -> None:
        self._api = api
        self._cache = cache

    async def _read_through(
        self,
        key: str,
        *,
        ttl: float,
        fetch: Callable[[], Awaitable[Any]],
        transform: Callable[[Any], T],
        decode: Callable[[Any], T],
        encode: Callable[[T], Any],
        default: Callable[[], T],
        force_refresh: bool = False,
    ) -> T:
        if not force_refresh:
            cached = await self._cached(key, ttl, decode)
            if cached is not _MISS:
                return cached

        try:
            raw = await fetch()
        except ApiError as e:
            stale = await self._cached(key, STALE_OK, decode)
            if stale is not _MISS:
                logger.warning("serving_stale_cache", cache_key=key, error=str(e))
                return stale
            logger.warning("fetch_failed_no_cache", cache_key=key, error=str(e))
            return default()

        result = transform(raw)
        await self._cache.set(key, encode(result), ttl)
        return result

    async def _cached(self, key: str, ttl: Optional[float], decode: Callable[[Any], T]) -> Any:
        data = await self._cache.get(key, ttl)
        if data is None:
            return _MISS
        try:
            return decode(data)
        except (TypeError, KeyError, ValueError, AttributeError) as e:
            # Payload no longer fits the model
            logger.warning("cache_entry_undecodable", cache_key=key, error=str(e))
            await self._cache.invalidate(key)
            return _MISS
