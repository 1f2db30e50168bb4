import httpx
import pytest

import core.retry as retry_mod
from clients.api_client import ApiClient
from clients.token_store import TokenStore
from core.cache import CACHE_PREFIX, CacheStore
from core.errors import ApiError, AuthenticationError, ExternalServiceError, NotFoundError
from core.retry import RetryPolicy
from core.storage import FileKeyValueStore, MemoryKeyValueStore
from services.keys import KeysAPI


# ---------------------------
# Helpers
# ---------------------------

def patch_transport(monkeypatch, client: ApiClient, handler):
    """Patch ApiClient._create_client() to use httpx.MockTransport."""
    transport = httpx.MockTransport(handler)

    def _create_client():
        return httpx.AsyncClient(
            base_url=client._base_url,
            timeout=client._timeout,
            transport=transport,
        )

    monkeypatch.setattr(client, "_create_client", _create_client)


@pytest.fixture
def sleeps(monkeypatch):
    calls = []

    async def fake_sleep(seconds: float):
        calls.append(seconds)

    monkeypatch.setattr(retry_mod.asyncio, "sleep", fake_sleep)
    return calls


@pytest.fixture
def tokens():
    return TokenStore(MemoryKeyValueStore())


def make_client(tokens, **kwargs):
    return ApiClient(
        base_url="https://api.verikey.test",
        tokens=tokens,
        timeout=5.0,
        retry=RetryPolicy(max_retries=2, backoff_seconds=1.0),
        **kwargs,
    )


# ---------------------------
# Success path
# ---------------------------

@pytest.mark.asyncio
async def test_request_injects_bearer_token_and_parses_json(monkeypatch, tokens):
    await tokens.save_token("tok-1")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        return httpx.Response(200, json={"sent_keys": []})

    client = make_client(tokens)
    patch_transport(monkeypatch, client, handler)

    out = await client.request("GET", "/api/keys")
    assert out == {"sent_keys": []}
    assert seen == {"auth": "Bearer tok-1", "path": "/api/keys"}


@pytest.mark.asyncio
async def test_unauthenticated_request_sends_no_token(monkeypatch, tokens):
    await tokens.save_token("tok-1")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"token": "new"})

    client = make_client(tokens)
    patch_transport(monkeypatch, client, handler)

    await client.request("POST", "/login", json={"email": "a@b.c"}, authenticated=False)
    assert seen["auth"] is None


@pytest.mark.asyncio
async def test_empty_body_returns_none(monkeypatch, tokens):
    client = make_client(tokens)
    patch_transport(monkeypatch, client, lambda r: httpx.Response(204))

    assert await client.request("DELETE", "/api/keys/1") is None


# ---------------------------
# Retries
# ---------------------------

@pytest.mark.asyncio
async def test_5xx_is_retried_with_linear_backoff(monkeypatch, tokens, sleeps):
    attempts = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["n"] += 1
        if attempts["n"] < 3:
            return httpx.Response(503, json={"error": "busy"})
        return httpx.Response(200, json={"ok": True})

    client = make_client(tokens)
    patch_transport(monkeypatch, client, handler)

    assert await client.request("GET", "/requests") == {"ok": True}
    assert attempts["n"] == 3
    assert sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_5xx_after_retries_raises_external_service_error(monkeypatch, tokens, sleeps):
    client = make_client(tokens)
    patch_transport(monkeypatch, client, lambda r: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(ExternalServiceError) as exc:
        await client.request("GET", "/requests")
    assert exc.value.status == 500
    assert len(sleeps) == 2


@pytest.mark.asyncio
async def test_network_error_is_retried_then_raised(monkeypatch, tokens, sleeps):
    attempts = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["n"] += 1
        raise httpx.ConnectError("unreachable", request=request)

    client = make_client(tokens)
    patch_transport(monkeypatch, client, handler)

    with pytest.raises(ExternalServiceError) as exc:
        await client.request("GET", "/api/keys")
    assert exc.value.status is None
    assert attempts["n"] == 3


@pytest.mark.asyncio
async def test_429_honors_retry_after(monkeypatch, tokens, sleeps):
    attempts = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["n"] += 1
        if attempts["n"] == 1:
            return httpx.Response(429, headers={"Retry-After": "7"})
        return httpx.Response(200, json=[])

    client = make_client(tokens)
    patch_transport(monkeypatch, client, handler)

    assert await client.request("GET", "/api/users/search") == []
    assert sleeps == [7.0]


@pytest.mark.asyncio
async def test_4xx_is_not_retried(monkeypatch, tokens, sleeps):
    client = make_client(tokens)
    patch_transport(monkeypatch, client, lambda r: httpx.Response(400, json={"error": "bad title"}))

    with pytest.raises(ApiError) as exc:
        await client.request("POST", "/requests", json={})
    assert exc.value.status == 400
    assert exc.value.message == "bad title"
    assert sleeps == []


@pytest.mark.asyncio
async def test_404_raises_not_found(monkeypatch, tokens):
    client = make_client(tokens)
    patch_transport(monkeypatch, client, lambda r: httpx.Response(404, json={"message": "no such key"}))

    with pytest.raises(NotFoundError) as exc:
        await client.request("GET", "/api/keys/9")
    assert str(exc.value) == "[404] no such key"


# ---------------------------
# 401 refresh and replay
# ---------------------------

@pytest.mark.asyncio
async def test_401_refreshes_token_and_replays_once(monkeypatch, tokens):
    await tokens.save_token("expired")
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        auth = request.headers.get("Authorization")
        seen.append((request.url.path, auth))
        if request.url.path == "/refresh-token":
            return httpx.Response(200, json={"token": "fresh"})
        if auth == "Bearer fresh":
            return httpx.Response(200, json={"id": 1})
        return httpx.Response(401, json={"error": "expired"})

    client = make_client(tokens)
    patch_transport(monkeypatch, client, handler)

    assert await client.request("GET", "/api/profile") == {"id": 1}
    assert await tokens.get_token() == "fresh"
    assert seen == [
        ("/api/profile", "Bearer expired"),
        ("/refresh-token", "Bearer expired"),
        ("/api/profile", "Bearer fresh"),
    ]


@pytest.mark.asyncio
async def test_401_with_failed_refresh_discards_token(monkeypatch, tokens):
    await tokens.save_token("expired")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "invalid token"})

    client = make_client(tokens)
    patch_transport(monkeypatch, client, handler)

    with pytest.raises(AuthenticationError) as exc:
        await client.request("GET", "/api/profile")
    assert exc.value.status == 401
    assert await tokens.get_token() is None


@pytest.mark.asyncio
async def test_401_without_token_does_not_call_refresh(monkeypatch, tokens):
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(401, json={"error": "login required"})

    client = make_client(tokens)
    patch_transport(monkeypatch, client, handler)

    with pytest.raises(AuthenticationError):
        await client.request("GET", "/api/keys")
    assert paths == ["/api/keys"]


# ---------------------------
# Unreadable token storage
# ---------------------------

@pytest.mark.asyncio
async def test_token_read_failure_sends_request_without_token(monkeypatch):
    class BrokenStore(MemoryKeyValueStore):
        async def get_item(self, key):
            raise OSError("disk unavailable")

    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"ok": True})

    client = make_client(TokenStore(BrokenStore()))
    patch_transport(monkeypatch, client, handler)

    assert await client.request("GET", "/api/keys") == {"ok": True}
    assert seen["auth"] is None


@pytest.mark.asyncio
async def test_keys_read_survives_corrupt_store_file(monkeypatch, tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{truncated", encoding="utf-8")
    store = FileKeyValueStore(path=path)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"sent_keys": [{"id": 1, "label": "Lease"}]})

    client = make_client(TokenStore(store))
    patch_transport(monkeypatch, client, handler)
    keys_api = KeysAPI(api=client, cache=CacheStore(store))

    result = await keys_api.get_all_keys()

    assert [k.title for k in result.sent] == ["Lease"]
    assert await store.get_all_keys() == [f"{CACHE_PREFIX}keys_all"]
