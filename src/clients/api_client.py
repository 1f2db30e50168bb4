"""Verikey backend client: JSON requests with auth, retries and token refresh.

This module provides the async HTTP transport the resource accessors call.
It injects the stored bearer token, retries transient failures (network
errors, 429, 5xx) with bounded linear backoff via `core.retry.RetryPolicy`,
and on a 401 performs one token refresh followed by one replay.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from clients.token_store import TokenStore
from core.errors import ApiError, AuthenticationError, ExternalServiceError, NotFoundError
from core.logging import get_logger
from core.retry import RetryPolicy

logger = get_logger(__name__)


class ApiClient:
    """Async client for the Verikey REST API.

    Purpose:
      - request(method, path, json=None, params=None, authenticated=True) -> parsed JSON

    Key behavior:
      - Adds `Authorization: Bearer <token>` when a token is stored.
      - Retries transport errors and 5xx/429 a bounded number of times.
      - On 401: refresh the token once and replay; if refresh fails the
        stored token is discarded and AuthenticationError is raised.
      - Maps 404 to NotFoundError and any other failure to ApiError.
    """

    REFRESH_PATH = "/refresh-token"
    USER_AGENT = "verikey-client"

    def __init__(
        self,
        *,
        base_url: str,
        tokens: TokenStore,
        timeout: float = 15.0,
        verify: bool = True,
        retry: Optional[RetryPolicy] = None,
    ) -> None:
        self._base_url = (base_url or "").rstrip("/")
        self._tokens = tokens
        self._timeout = float(timeout)
        self._verify = bool(verify)
        self._retry = retry or RetryPolicy()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        authenticated: bool = True,
    ) -> Any:
        resp = await self._send(method, path, json=json, params=params, authenticated=authenticated)

        if resp.status_code == 401 and authenticated:
            if await self._refresh_token():
                resp = await self._send(method, path, json=json, params=params, authenticated=True)
            if resp.status_code == 401:
                await self._tokens.remove_token()
                raise AuthenticationError(self._error_message(resp), status=401)

        self._raise_for_status(resp, context=f"{method.upper()} {path}")
        return self._parse_body(resp)

    # --- HTTP helpers ---

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Content-Type": "application/json", "User-Agent": self.USER_AGENT},
            timeout=self._timeout,
            verify=self._verify,
        )

    async def _auth_headers(self) -> dict[str, str]:
        try:
            token = (await self._tokens.get_token() or "").strip()
        except Exception as e:
            logger.error("token_read_failed", error=str(e))
            return {}
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        """Send with bounded retries for transport errors and transient statuses."""
        headers = await self._auth_headers() if authenticated else {}
        attempts = self._retry.attempts

        async with self._create_client() as client:
            for attempt in range(1, attempts + 1):
                try:
                    resp = await client.request(
                        method.upper(),
                        path,
                        json=json,
                        params=dict(params) if params else None,
                        headers=headers,
                    )
                except httpx.HTTPError as e:
                    if attempt < attempts:
                        logger.info("api_retry", method=method.upper(), path=path, attempt=attempt, error=str(e))
                        await self._retry.wait(attempt)
                        continue
                    raise ExternalServiceError(f"Request failed ({method.upper()} {path}): {e}") from e

                if attempt < attempts and self._retry.is_retryable(resp):
                    logger.info("api_retry", method=method.upper(), path=path, attempt=attempt, status=resp.status_code)
                    await self._retry.wait(attempt, resp)
                    continue

                return resp

        raise RuntimeError("Unreachable: _send did not return a response")

    async def _refresh_token(self) -> bool:
        if not await self._tokens.get_token():
            return False

        try:
            resp = await self._send("POST", self.REFRESH_PATH, authenticated=True)
            if resp.status_code >= 400:
                logger.warning("token_refresh_failed", status=resp.status_code)
                return False
            body = self._parse_body(resp)
        except ApiError as e:
            logger.warning("token_refresh_failed", error=str(e))
            return False

        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            logger.warning("token_refresh_failed", reason="no token in response")
            return False

        await self._tokens.save_token(str(token))
        logger.info("token_refreshed")
        return True

    def _raise_for_status(self, resp: httpx.Response, *, context: str) -> None:
        status = resp.status_code
        if status < 400:
            return

        message = self._error_message(resp)
        if status == 404:
            raise NotFoundError(message, status=status)
        if status == 401:
            raise AuthenticationError(message, status=status)
        if status >= 500:
            raise ExternalServiceError(f"{context}: {message}", status=status)
        raise ApiError(message, status=status)

    def _error_message(self, resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for field in ("error", "message"):
                value = body.get(field)
                if value:
                    return str(value)
        return (resp.text or "").strip()[:200] or f"HTTP {resp.status_code}"

    def _parse_body(self, resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON in response: {e}", status=resp.status_code) from e
