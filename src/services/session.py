"""Session boundary: login, signup and logout.

Every identity change clears the whole cache; nothing cached for one user is
trusted for the next. The profile accessor is injected as a `ProfileReader`
so this module never imports it.
"""

from __future__ import annotations

from typing import Any, Dict

from clients.token_store import TokenStore
from core.errors import ApiError, ValidationError
from core.interfaces import ApiTransport, ProfileReader, ResourceCache
from core.logging import get_logger
from core.models import Profile

logger = get_logger(__name__)


def _credentials(email: str, password: str) -> Dict[str, str]:
    e = (email or "").strip().lower()
    if not e or "@" not in e:
        raise ValidationError("A valid email is required")
    if not password:
        raise ValidationError("Password is required")
    return {"email": e, "password": password}


class SessionService:
    def __init__(
        self,
        *,
        api: ApiTransport,
        cache: ResourceCache,
        tokens: TokenStore,
        profile: ProfileReader,
    ) -> None:
        self._api = api
        self._cache = cache
        self._tokens = tokens
        self._profile = profile

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._authenticate("/login", _credentials(email, password))

    async def signup(self, email: str, password: str) -> Dict[str, Any]:
        return await self._authenticate("/signup", _credentials(email, password))

    async def logout(self) -> None:
        try:
            await self._tokens.remove_token()
        finally:
            await self._cache.clear()
            logger.info("logged_out")

    async def verify_token(self) -> Dict[str, Any]:
        return await self._api.request("GET", "/verify-token") or {}

    async def check_username(self, screen_name: str) -> bool:
        name = (screen_name or "").strip()
        if not name:
            raise ValidationError("screen_name must be non-empty")
        result = await self._api.request(
            "POST", "/check-username", json={"screen_name": name}, authenticated=False
        )
        return bool((result or {}).get("available", False))

    async def refresh_user(self) -> Profile:
        """Fresh profile of the signed-in user (empty profile if unavailable)."""
        try:
            return await self._profile.get_profile(force_refresh=True)
        except ApiError as e:
            logger.error("refresh_user_failed", error=str(e))
            return Profile.empty()

    async def _authenticate(self, path: str, body: Dict[str, str]) -> Dict[str, Any]:
        response = await self._api.request("POST", path, json=body, authenticated=False) or {}
        token = response.get("token")
        if token:
            await self._tokens.save_token(str(token))
        await self._cache.clear()
        logger.info("session_started", path=path, user_id=(response.get("user") or {}).get("id"))
        return response
