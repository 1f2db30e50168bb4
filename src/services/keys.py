"""Keys accessor: sent/received shareable keys with cache-aside reads."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import config
from core.interfaces import ApiTransport, ResourceCache
from core.models import KeyCollection, KeyDetails
from core.validation import normalize_id
from services import cache_keys
from services.base import CachedResource
from services.transforms import transform_key_details, transform_keys


class KeysAPI(CachedResource):
    def __init__(
        self,
        *,
        api: ApiTransport,
        cache: ResourceCache,
        list_ttl_ms: float = config.KEYS_TTL_MS,
        detail_ttl_ms: float = config.KEY_DETAIL_TTL_MS,
    ) -> None:
        super().__init__(api=api, cache=cache)
        self._list_ttl = list_ttl_ms
        self._detail_ttl = detail_ttl_ms

    async def get_all_keys(self, force_refresh: bool = False) -> KeyCollection:
        """Sent and received keys; empty collection if unavailable."""
        return await self._read_through(
            cache_keys.ALL_KEYS,
            ttl=self._list_ttl,
            fetch=lambda: self._api.request("GET", "/api/keys"),
            transform=transform_keys,
            decode=KeyCollection.from_dict,
            encode=KeyCollection.to_dict,
            default=KeyCollection,
            force_refresh=force_refresh,
        )

    async def get_key_details(self, key_id: int, force_refresh: bool = False) -> Optional[KeyDetails]:
        kid = normalize_id(key_id, name="key_id")
        return await self._read_through(
            cache_keys.key_detail(kid),
            ttl=self._detail_ttl,
            fetch=lambda: self._api.request("GET", f"/api/keys/{kid}"),
            transform=transform_key_details,
            decode=KeyDetails.from_dict,
            encode=KeyDetails.to_dict,
            default=lambda: None,
            force_refresh=force_refresh,
        )

    async def create_shareable_key(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        result = await self._api.request("POST", "/api/keys", json=dict(payload))
        await self._cache.invalidate_pattern(cache_keys.KEYS_PREFIX)
        return result or {}

    async def revoke_shareable_key(self, key_id: int) -> Dict[str, Any]:
        kid = normalize_id(key_id, name="key_id")
        result = await self._api.request("POST", f"/api/keys/{kid}/revoke")
        await self._invalidate_key(kid)
        return result or {}

    async def delete_shareable_key(self, key_id: int) -> Dict[str, Any]:
        kid = normalize_id(key_id, name="key_id")
        result = await self._api.request("DELETE", f"/api/keys/{kid}")
        await self._invalidate_key(kid)
        return result or {}

    async def _invalidate_key(self, key_id: int) -> None:
        await self._cache.invalidate_pattern(cache_keys.KEYS_PREFIX)
        await self._cache.invalidate(cache_keys.key_detail(key_id))
