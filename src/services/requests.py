"""Requests accessor: verification requests and responses to them."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import config
from core.interfaces import ApiTransport, ResourceCache
from core.models import RequestCollection, VerificationRequest
from core.validation import normalize_id, validate_title
from services import cache_keys
from services.base import CachedResource
from services.transforms import transform_request_details, transform_requests


def _with_valid_title(payload: Mapping[str, Any]) -> Dict[str, Any]:
    body = dict(payload)
    # The backend names the title "label"
    if "title" in body and "label" not in body:
        body["label"] = body.pop("title")
    if "label" in body:
        body["label"] = validate_title(str(body["label"] or ""))
    return body


class RequestsAPI(CachedResource):
    def __init__(
        self,
        *,
        api: ApiTransport,
        cache: ResourceCache,
        list_ttl_ms: float = config.REQUESTS_TTL_MS,
        detail_ttl_ms: float = config.REQUEST_DETAIL_TTL_MS,
    ) -> None:
        super().__init__(api=api, cache=cache)
        self._list_ttl = list_ttl_ms
        self._detail_ttl = detail_ttl_ms

    async def get_requests(self, force_refresh: bool = False) -> RequestCollection:
        return await self._read_through(
            cache_keys.ALL_REQUESTS,
            ttl=self._list_ttl,
            fetch=lambda: self._api.request("GET", "/requests"),
            transform=transform_requests,
            decode=RequestCollection.from_dict,
            encode=RequestCollection.to_dict,
            default=RequestCollection,
            force_refresh=force_refresh,
        )

    async def get_request_details(
        self, request_id: int, force_refresh: bool = False
    ) -> Optional[VerificationRequest]:
        rid = normalize_id(request_id, name="request_id")
        return await self._read_through(
            cache_keys.request_detail(rid),
            ttl=self._detail_ttl,
            fetch=lambda: self._api.request("GET", f"/requests/{rid}"),
            transform=transform_request_details,
            decode=VerificationRequest.from_dict,
            encode=VerificationRequest.to_dict,
            default=lambda: None,
            force_refresh=force_refresh,
        )

    async def create_request(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        body = _with_valid_title(payload)
        result = await self._api.request("POST", "/requests", json=body)
        await self._cache.invalidate_pattern(cache_keys.REQUESTS_PREFIX)
        return result or {}

    async def update_request(self, request_id: int, payload: Mapping[str, Any]) -> Dict[str, Any]:
        rid = normalize_id(request_id, name="request_id")
        body = _with_valid_title(payload)
        result = await self._api.request("PUT", f"/requests/{rid}", json=body)
        await self._invalidate_request(rid)
        return result or {}

    async def deny_request(self, request_id: int) -> Dict[str, Any]:
        rid = normalize_id(request_id, name="request_id")
        result = await self._api.request("POST", f"/requests/{rid}/deny")
        await self._invalidate_request(rid)
        return result or {}

    async def cancel_request(self, request_id: int) -> Dict[str, Any]:
        rid = normalize_id(request_id, name="request_id")
        result = await self._api.request("DELETE", f"/requests/{rid}")
        await self._invalidate_request(rid)
        return result or {}

    async def submit_verification(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Respond to a received request; the response becomes a new key."""
        body = dict(payload)
        rid = normalize_id(body.get("request_id"), name="request_id")
        body["request_id"] = rid
        result = await self._api.request("POST", "/verifications", json=body)
        await self._invalidate_request(rid)
        await self._cache.invalidate_pattern(cache_keys.KEYS_PREFIX)
        return result or {}

    async def _invalidate_request(self, request_id: int) -> None:
        await self._cache.invalidate_pattern(cache_keys.REQUESTS_PREFIX)
        await self._cache.invalidate(cache_keys.request_detail(request_id))
