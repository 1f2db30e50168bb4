from __future__ import annotations

from typing import List, Optional

import config
from core.interfaces import ApiTransport, ResourceCache
from core.models import UserSummary
from core.validation import normalize_id, normalize_query
from services import cache_keys
from services.base import CachedResource
from services.transforms import transform_user, transform_users


def _encode_users(users: List[UserSummary]) -> list:
    return [u.to_dict() for u in users]


def _decode_users(data: list) -> List[UserSummary]:
    return [UserSummary.from_dict(u) for u in data]


class UsersAPI(CachedResource):
    def __init__(
        self,
        *,
        api: ApiTransport,
        cache: ResourceCache,
        search_ttl_ms: float = config.USERS_TTL_MS,
        detail_ttl_ms: float = config.USER_DETAIL_TTL_MS,
    ) -> None:
        super().__init__(api=api, cache=cache)
        self._search_ttl = search_ttl_ms
        self._detail_ttl = detail_ttl_ms

    async def search_users(self, query: str, force_refresh: bool = False) -> List[UserSummary]:
        q = normalize_query(query)
        if not q:
            return []
        return await self._read_through(
            cache_keys.user_search(q),
            ttl=self._search_ttl,
            fetch=lambda: self._api.request("GET", "/api/users/search", params={"q": q}),
            transform=transform_users,
            decode=_decode_users,
            encode=_encode_users,
            default=list,
            force_refresh=force_refresh,
        )

    async def get_user(self, user_id: int, force_refresh: bool = False) -> Optional[UserSummary]:
        uid = normalize_id(user_id, name="user_id")
        return await self._read_through(
            cache_keys.user_detail(uid),
            ttl=self._detail_ttl,
            fetch=lambda: self._api.request("GET", f"/api/users/{uid}"),
            transform=lambda raw: transform_user(raw.get("user", raw) if isinstance(raw, dict) else {}),
            decode=UserSummary.from_dict,
            encode=UserSummary.to_dict,
            default=lambda: None,
            force_refresh=force_refresh,
        )
