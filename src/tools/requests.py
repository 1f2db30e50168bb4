"""MCP tools over the requests accessor."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from services.requests import RequestsAPI


def register(mcp: FastMCP, *, requests_api: RequestsAPI) -> None:
    @mcp.tool(name="list_requests")
    async def list_requests(force_refresh: bool = False) -> Dict[str, Any]:
        """List sent and received verification requests.

        Returns:
          {"sent": [...], "received": [...], "pending_count": int}
        """
        reqs = await requests_api.get_requests(force_refresh=force_refresh)
        return {**reqs.to_dict(), "pending_count": reqs.pending_count}

    @mcp.tool(name="get_request_details")
    async def get_request_details(request_id: int, force_refresh: bool = False) -> Optional[Dict[str, Any]]:
        req = await requests_api.get_request_details(request_id, force_refresh=force_refresh)
        return req.to_dict() if req is not None else None

    @mcp.tool(name="create_request")
    async def create_request(
        title: str,
        target_email: str,
        information_types: List[str],
        notes: str = "",
    ) -> Dict[str, Any]:
        """Ask someone to share verified information.

        Raises:
          ValidationError if the title breaks the title rules.
        """
        return await requests_api.create_request(
            {
                "title": title,
                "target_email": (target_email or "").strip(),
                "information_types": list(information_types or []),
                "notes": notes,
            }
        )

    @mcp.tool(name="update_request")
    async def update_request(
        request_id: int,
        title: Optional[str] = None,
        information_types: Optional[List[str]] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if title is not None:
            payload["title"] = title
        if information_types is not None:
            payload["information_types"] = list(information_types)
        if notes is not None:
            payload["notes"] = notes
        return await requests_api.update_request(request_id, payload)

    @mcp.tool(name="deny_request")
    async def deny_request(request_id: int) -> Dict[str, Any]:
        return await requests_api.deny_request(request_id)

    @mcp.tool(name="cancel_request")
    async def cancel_request(request_id: int) -> Dict[str, Any]:
        return await requests_api.cancel_request(request_id)

    @mcp.tool(name="respond_to_request")
    async def respond_to_request(
        request_id: int,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        photo_base64: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Answer a received request; the answer becomes a new received key for the requester."""
        payload: Dict[str, Any] = {"request_id": request_id}
        if latitude is not None and longitude is not None:
            payload["latitude"] = latitude
            payload["longitude"] = longitude
        if photo_base64:
            payload["photo_base64"] = photo_base64
        return await requests_api.submit_verification(payload)
