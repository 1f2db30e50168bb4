"""MCP tools for the signed-in account: session, profile, KYC, user lookup, cache."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from core.cache import CacheStore
from services.kyc import KYCAPI
from services.profile import ProfileAPI
from services.session import SessionService
from services.users import UsersAPI


def register(
    mcp: FastMCP,
    *,
    session: SessionService,
    profile_api: ProfileAPI,
    kyc_api: KYCAPI,
    users_api: UsersAPI,
    cache: CacheStore,
) -> None:
    @mcp.tool(name="login")
    async def login(email: str, password: str) -> Dict[str, Any]:
        """Sign in; the cache is cleared on every identity change."""
        response = await session.login(email, password)
        # Never echo the bearer token back to the agent
        return {k: v for k, v in response.items() if k != "token"}

    @mcp.tool(name="logout")
    async def logout() -> Dict[str, Any]:
        await session.logout()
        return {"ok": True}

    @mcp.tool(name="get_profile")
    async def get_profile(force_refresh: bool = False) -> Dict[str, Any]:
        return (await profile_api.get_profile(force_refresh=force_refresh)).to_dict()

    @mcp.tool(name="update_profile")
    async def update_profile(
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        screen_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            k: v.strip()
            for k, v in (
                ("first_name", first_name),
                ("last_name", last_name),
                ("screen_name", screen_name),
            )
            if v is not None
        }
        return await profile_api.update_profile(payload)

    @mcp.tool(name="get_kyc_status")
    async def get_kyc_status(force_refresh: bool = False) -> Dict[str, Any]:
        return (await kyc_api.get_status(force_refresh=force_refresh)).to_dict()

    @mcp.tool(name="submit_kyc")
    async def submit_kyc(document_type: str, document_base64: str, selfie_base64: str) -> Dict[str, Any]:
        """Submit identity documents for KYC verification."""
        return await kyc_api.submit_verification(
            {
                "document_type": document_type,
                "document_image": document_base64,
                "selfie_image": selfie_base64,
            }
        )

    @mcp.tool(name="search_users")
    async def search_users(query: str, force_refresh: bool = False) -> List[Dict[str, Any]]:
        users = await users_api.search_users(query, force_refresh=force_refresh)
        return [u.to_dict() for u in users]

    @mcp.tool(name="cache_stats")
    async def cache_stats() -> Dict[str, Any]:
        """Report memory/storage entry counts and cached keys."""
        return (await cache.get_stats()).to_dict()
