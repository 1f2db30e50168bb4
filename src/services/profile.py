from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import config
from clients.token_store import TokenStore
from core.errors import ValidationError
from core.interfaces import ApiTransport, ResourceCache
from core.models import Profile
from services import cache_keys
from services.base import CachedResource
from services.transforms import transform_profile


class ProfileAPI(CachedResource):
    def __init__(
        self,
        *,
        api: ApiTransport,
        cache: ResourceCache,
        ttl_ms: float = config.PROFILE_TTL_MS,
        tokens: Optional[TokenStore] = None,
    ) -> None:
        super().__init__(api=api, cache=cache)
        self._ttl = ttl_ms
        self._tokens = tokens

    async def get_profile(self, force_refresh: bool = False) -> Profile:
        return await self._read_through(
            cache_keys.PROFILE,
            ttl=self._ttl,
            fetch=lambda: self._api.request("GET", "/api/profile"),
            transform=transform_profile,
            decode=Profile.from_dict,
            encode=Profile.to_dict,
            default=Profile.empty,
            force_refresh=force_refresh,
        )

    async def update_profile(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        result = await self._api.request("POST", "/api/profile", json=dict(payload))
        await self._cache.invalidate_pattern(cache_keys.PROFILE_PREFIX)
        return result or {}

    async def update_profile_image(self, image_url: str) -> Dict[str, Any]:
        url = (image_url or "").strip()
        if not url:
            raise ValidationError("image_url must be non-empty")
        result = await self._api.request("POST", "/api/profile/image", json={"profile_image": url})
        await self._cache.invalidate_pattern(cache_keys.PROFILE_PREFIX)
        return result or {}

    async def check_screen_name(self, screen_name: str) -> bool:
        name = (screen_name or "").strip()
        if not name:
            raise ValidationError("screen_name must be non-empty")
        result = await self._api.request(
            "POST", "/api/profile/check-screen-name", json={"screen_name": name}
        )
        return bool((result or {}).get("available", False))

    async def delete_account(self, password: str) -> Dict[str, Any]:
        if not password:
            raise ValidationError("password is required")
        result = await self._api.request("DELETE", "/api/profile", json={"password": password})
        # The account is gone: drop its token and everything cached for it
        try:
            if self._tokens is not None:
                await self._tokens.remove_token()
        finally:
            await self._cache.clear()
        return result or {}
