from __future__ import annotations

from typing import Any, Dict, Mapping

import config
from core.interfaces import ApiTransport, ResourceCache
from core.models import KycStatus
from services import cache_keys
from services.base import CachedResource
from services.transforms import transform_kyc_status


class KYCAPI(CachedResource):
    # Verification status changes rarely; long TTL avoids over-fetching it
    def __init__(
        self,
        *,
        api: ApiTransport,
        cache: ResourceCache,
        ttl_ms: float = config.KYC_TTL_MS,
    ) -> None:
        super().__init__(api=api, cache=cache)
        self._ttl = ttl_ms

    async def get_status(self, force_refresh: bool = False) -> KycStatus:
        return await self._read_through(
            cache_keys.KYC_STATUS,
            ttl=self._ttl,
            fetch=lambda: self._api.request("GET", "/api/kyc/status"),
            transform=transform_kyc_status,
            decode=KycStatus.from_dict,
            encode=KycStatus.to_dict,
            default=KycStatus.default,
            force_refresh=force_refresh,
        )

    async def submit_verification(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        result = await self._api.request("POST", "/api/kyc/verify", json=dict(payload))
        await self._cache.invalidate_pattern(cache_keys.KYC_PREFIX)
        await self._cache.invalidate_pattern(cache_keys.PROFILE_PREFIX)
        return result or {}
