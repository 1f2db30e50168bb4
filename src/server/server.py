"""Server bootstrap for the Verikey MCP service.

Builds the persistent store, cache, API client and resource accessors,
registers the tools on a FastMCP instance, runs the expired-entry sweeper
for the server's lifetime, and starts the MCP server (stdio transport).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

from mcp.server.fastmcp import FastMCP

import config
from clients.api_client import ApiClient
from clients.token_store import TokenStore
from core.cache import CacheStore
from core.interfaces import KeyValueStore
from core.logging import configure_logging
from core.retry import RetryPolicy
from core.storage import FileKeyValueStore
from core.sweeper import CacheSweeper
from services.keys import KeysAPI
from services.kyc import KYCAPI
from services.profile import ProfileAPI
from services.requests import RequestsAPI
from services.session import SessionService
from services.users import UsersAPI

from tools.account import register as register_account
from tools.keys import register as register_keys
from tools.requests import register as register_requests


@dataclass(frozen=True)
class Services:
    cache: CacheStore
    sweeper: CacheSweeper
    keys: KeysAPI
    requests: RequestsAPI
    profile: ProfileAPI
    kyc: KYCAPI
    users: UsersAPI
    session: SessionService


def build_services(storage: Optional[KeyValueStore] = None) -> Services:
    store = storage if storage is not None else FileKeyValueStore(path=config.CACHE_DIR / "store.json")
    cache = CacheStore(store)
    tokens = TokenStore(store)
    api = ApiClient(
        base_url=config.VERIKEY_API_URL,
        tokens=tokens,
        timeout=config.API_TIMEOUT,
        verify=config.HTTP_VERIFY,
        retry=RetryPolicy(max_retries=config.API_MAX_RETRIES, backoff_seconds=config.API_RETRY_BACKOFF),
    )

    profile = ProfileAPI(api=api, cache=cache, tokens=tokens)
    return Services(
        cache=cache,
        sweeper=CacheSweeper(cache, interval_seconds=config.CACHE_SWEEP_INTERVAL),
        keys=KeysAPI(api=api, cache=cache),
        requests=RequestsAPI(api=api, cache=cache),
        profile=profile,
        kyc=KYCAPI(api=api, cache=cache),
        users=UsersAPI(api=api, cache=cache),
        session=SessionService(api=api, cache=cache, tokens=tokens, profile=profile),
    )


def register_tools(mcp: Any, services: Services) -> None:
    register_keys(mcp, keys_api=services.keys)
    register_requests(mcp, requests_api=services.requests)
    register_account(
        mcp,
        session=services.session,
        profile_api=services.profile,
        kyc_api=services.kyc,
        users_api=services.users,
        cache=services.cache,
    )


def make_lifespan(services: Services):
    @asynccontextmanager
    async def lifespan(_server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
        services.sweeper.start()
        try:
            yield {"services": services}
        finally:
            await services.sweeper.stop()

    return lifespan


configure_logging(config.LOG_LEVEL, config.LOG_FORMAT)

app_services = build_services()
mcp = FastMCP("verikey-mcp", lifespan=make_lifespan(app_services))
register_tools(mcp, app_services)


def main() -> None:
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
