"""MCP tools over the keys accessor.

Registers list_keys, get_key_details, create_key, revoke_key and delete_key.
Reads are cache-backed and never fail on backend outages; mutations raise.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from core.validation import validate_title
from services.keys import KeysAPI


def register(mcp: FastMCP, *, keys_api: KeysAPI) -> None:
    @mcp.tool(name="list_keys")
    async def list_keys(force_refresh: bool = False) -> Dict[str, Any]:
        """List sent and received keys.

        Params:
          - force_refresh: bypass the cache and hit the backend (default: False).

        Returns:
          {"sent": [...], "received": [...], "new_count": int}
        """
        keys = await keys_api.get_all_keys(force_refresh=force_refresh)
        return {**keys.to_dict(), "new_count": keys.new_count}

    @mcp.tool(name="get_key_details")
    async def get_key_details(key_id: int, force_refresh: bool = False) -> Optional[Dict[str, Any]]:
        """Return one key with its shared data, or None if unavailable."""
        details = await keys_api.get_key_details(key_id, force_refresh=force_refresh)
        return details.to_dict() if details is not None else None

    @mcp.tool(name="create_key")
    async def create_key(
        title: str,
        recipient_email: str,
        information_types: List[str],
        views_allowed: int = 1,
        notes: str = "",
    ) -> Dict[str, Any]:
        """Share verified information with a recipient as a new key.

        Params:
          - views_allowed: number of views; 999 means unlimited.
        """
        payload = {
            "label": validate_title(title),
            "recipient_email": (recipient_email or "").strip(),
            "information_types": list(information_types or []),
            "views_allowed": int(views_allowed),
            "notes": notes,
        }
        return await keys_api.create_shareable_key(payload)

    @mcp.tool(name="revoke_key")
    async def revoke_key(key_id: int) -> Dict[str, Any]:
        """Revoke a sent key so it can no longer be viewed."""
        return await keys_api.revoke_shareable_key(key_id)

    @mcp.tool(name="delete_key")
    async def delete_key(key_id: int) -> Dict[str, Any]:
        return await keys_api.delete_shareable_key(key_id)
