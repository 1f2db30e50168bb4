"""Two-tier TTL cache: in-process dict in front of a persistent key-value store.

Entries carry their write timestamp and TTL (epoch milliseconds and
milliseconds). Every persistent-storage call is guarded: a storage failure
degrades the operation to memory-only and is logged, never raised.
"""

from __future__ import annotations

import json
import math
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Generic, List, Optional, Set, TypeVar

from core.interfaces import KeyValueStore
from core.logging import get_logger, log_cache_operation

T = TypeVar("T")

logger = get_logger(__name__)

CACHE_PREFIX = "@verikey_cache_"

# Pass as `ttl` to `CacheStore.get` to accept an entry of any age.
STALE_OK = math.inf


def _now_ms() -> float:
    return time.time() * 1000.0


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    # Stores payload + wall-clock write time; replaced wholesale on write
    data: T
    timestamp: float  # epoch milliseconds
    ttl: float  # milliseconds

    def is_fresh(self, now: float, ttl: Optional[float] = None) -> bool:
        # The stored ttl is authoritative; a caller ttl can only widen it.
        window = self.ttl if ttl is None else max(self.ttl, ttl)
        return now - self.timestamp < window

    def to_json(self) -> str:
        return json.dumps({"data": self.data, "timestamp": self.timestamp, "ttl": self.ttl})

    @classmethod
    def from_json(cls, raw: str) -> "CacheEntry[Any]":
        obj = json.loads(raw)
        return cls(data=obj["data"], timestamp=float(obj["timestamp"]), ttl=float(obj["ttl"]))


@dataclass(frozen=True, slots=True)
class SweepResult:
    memory_removed: int = 0
    storage_removed: int = 0


@dataclass(frozen=True, slots=True)
class CacheStats:
    memory_entries: int
    storage_entries: int
    memory_keys: List[str] = field(default_factory=list)
    storage_keys: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CacheStore:
    """TTL-aware cache with a memory tier mirrored to persistent storage.

    Purpose:
      - get(key, ttl=None) -> data | None (memory first, then storage)
      - set(key, data, ttl) -> writes both tiers
      - invalidate / invalidate_pattern / clear -> remove from both tiers
      - clean_expired() -> sweeps entries expired under their own ttl

    A failed storage removal leaves a memory tombstone: the key is not read
    back from storage until a later write or sweep settles it.

    Keys are opaque; every persisted key is namespaced by `prefix` so the
    cache never reads or removes unrelated persisted data.
    """

    def __init__(self, storage: KeyValueStore, *, prefix: str = CACHE_PREFIX) -> None:
        self._storage = storage
        self._prefix = prefix
        self._memory: Dict[str, CacheEntry[Any]] = {}
        # Keys whose storage removal failed; never read back from storage
        self._tombstones: Set[str] = set()

    async def get(self, key: str, ttl: Optional[float] = None) -> Any:
        """Return cached data for `key` if fresh, else None.

        Pass `STALE_OK` as `ttl` to accept an expired entry of any age.
        """
        prefixed = self._prefixed(key)
        now = _now_ms()

        entry = self._memory.get(prefixed)
        if entry is not None and entry.is_fresh(now, ttl):
            log_cache_operation(logger, "get", key, hit=True, tier="memory")
            return entry.data

        if prefixed in self._tombstones:
            log_cache_operation(logger, "get", key, hit=False, tombstoned=True)
            return None

        try:
            stored = await self._storage.get_item(prefixed)
            if stored:
                entry = CacheEntry.from_json(stored)
                if entry.is_fresh(now, ttl):
                    # Back-fill the memory tier on a storage hit
                    self._memory[prefixed] = entry
                    log_cache_operation(logger, "get", key, hit=True, tier="storage")
                    return entry.data
        except Exception as e:
            logger.error("cache_read_failed", cache_key=key, error=str(e))

        log_cache_operation(logger, "get", key, hit=False)
        return None

    async def set(self, key: str, data: Any, ttl: float) -> None:
        prefixed = self._prefixed(key)
        entry = CacheEntry(data=data, timestamp=_now_ms(), ttl=float(ttl))

        # Memory stays authoritative for this process even if persisting fails
        self._memory[prefixed] = entry

        try:
            await self._storage.set_item(prefixed, entry.to_json())
            self._tombstones.discard(prefixed)
            log_cache_operation(logger, "set", key, ttl=ttl)
        except Exception as e:
            logger.error("cache_write_failed", cache_key=key, error=str(e))

    async def invalidate(self, key: str) -> None:
        prefixed = self._prefixed(key)
        self._memory.pop(prefixed, None)

        try:
            await self._storage.remove_item(prefixed)
        except Exception as e:
            self._tombstones.add(prefixed)
            logger.error("cache_invalidate_failed", cache_key=key, error=str(e))
            return

        self._tombstones.discard(prefixed)
        log_cache_operation(logger, "invalidate", key)

    async def invalidate_pattern(self, pattern: str) -> None:
        """Remove every entry whose key contains `pattern` (literal substring)."""
        memory_keys = [k for k in self._memory if pattern in self._unprefixed(k)]
        for k in memory_keys:
            del self._memory[k]

        storage_keys: List[str] = []
        try:
            storage_keys = [
                k for k in await self._owned_storage_keys() if pattern in self._unprefixed(k)
            ]
            if storage_keys:
                await self._storage.multi_remove(storage_keys)
        except Exception as e:
            self._tombstones.update(memory_keys)
            self._tombstones.update(storage_keys)
            logger.error("cache_invalidate_pattern_failed", pattern=pattern, error=str(e))
            return

        self._tombstones.difference_update(storage_keys)
        logger.debug(
            "cache_pattern_invalidated",
            pattern=pattern,
            memory_removed=len(memory_keys),
            storage_removed=len(storage_keys),
        )

    async def clear(self) -> None:
        memory_keys = list(self._memory)
        memory_size = len(memory_keys)
        self._memory.clear()

        cache_keys: List[str] = []
        try:
            cache_keys = await self._owned_storage_keys()
            if cache_keys:
                await self._storage.multi_remove(cache_keys)
        except Exception as e:
            self._tombstones.update(memory_keys)
            self._tombstones.update(cache_keys)
            logger.error("cache_clear_failed", error=str(e))
            return

        self._tombstones.clear()
        logger.info("cache_cleared", memory_removed=memory_size, storage_removed=len(cache_keys))

    async def clean_expired(self) -> SweepResult:
        """Remove entries expired under their own ttl; drop unreadable ones."""
        now = _now_ms()

        expired = [k for k, entry in self._memory.items() if not entry.is_fresh(now)]
        for k in expired:
            del self._memory[k]

        storage_removed = 0
        for k in list(self._tombstones):
            try:
                await self._storage.remove_item(k)
            except Exception as e:
                logger.error("cache_sweep_remove_failed", cache_key=self._unprefixed(k), error=str(e))
                continue
            self._tombstones.discard(k)
            storage_removed += 1

        try:
            cache_keys = await self._owned_storage_keys()
        except Exception as e:
            logger.error("cache_sweep_list_failed", error=str(e))
            cache_keys = []

        for k in cache_keys:
            try:
                stored = await self._storage.get_item(k)
                if not stored:
                    continue
                if CacheEntry.from_json(stored).is_fresh(now):
                    continue
            except Exception:
                # Corrupt entry: fall through and remove it
                pass

            try:
                await self._storage.remove_item(k)
                storage_removed += 1
            except Exception as e:
                logger.error("cache_sweep_remove_failed", cache_key=self._unprefixed(k), error=str(e))

        result = SweepResult(memory_removed=len(expired), storage_removed=storage_removed)
        if result.memory_removed or result.storage_removed:
            logger.info(
                "cache_expired_cleaned",
                memory_removed=result.memory_removed,
                storage_removed=result.storage_removed,
            )
        return result

    async def get_stats(self) -> CacheStats:
        try:
            storage_keys = await self._owned_storage_keys()
        except Exception as e:
            logger.error("cache_stats_failed", error=str(e))
            storage_keys = []

        return CacheStats(
            memory_entries=len(self._memory),
            storage_entries=len(storage_keys),
            memory_keys=sorted(self._unprefixed(k) for k in self._memory),
            storage_keys=sorted(self._unprefixed(k) for k in storage_keys),
        )

    # --- key helpers ---

    def _prefixed(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _unprefixed(self, key: str) -> str:
        return key[len(self._prefix):] if key.startswith(self._prefix) else key

    async def _owned_storage_keys(self) -> List[str]:
        all_keys = await self._storage.get_all_keys()
        return [k for k in all_keys if k.startswith(self._prefix)]
