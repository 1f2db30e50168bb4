import pytest

from core.cache import STALE_OK
from core.errors import ValidationError
from services import cache_keys
from services.requests import RequestsAPI


RAW_REQUESTS = {
    "sent": [{"id": 1, "label": "Tenant check", "target_email": "t@x.test", "status": "pending"}],
    "received": [
        {"id": 2, "label": "Employer", "requester_screen_name": "acme", "status": "pending"},
        {"id": 3, "label": "Bank", "requester_email": "bank@x.test", "status": "denied"},
    ],
}


@pytest.fixture
def requests_api(fake_api, cache):
    return RequestsAPI(api=fake_api, cache=cache, list_ttl_ms=30_000, detail_ttl_ms=60_000)


@pytest.mark.asyncio
async def test_get_requests_transforms_and_caches(clock, fake_api, requests_api):
    fake_api.on("GET", "/requests", RAW_REQUESTS)

    coll = await requests_api.get_requests()
    await requests_api.get_requests()

    assert fake_api.count("GET", "/requests") == 1
    assert coll.sent[0].counterpart == "t@x.test"
    assert [r.counterpart for r in coll.received] == ["acme", "bank@x.test"]
    assert coll.pending_count == 1


@pytest.mark.asyncio
async def test_get_requests_stale_fallback(clock, fake_api, requests_api):
    fake_api.on("GET", "/requests", RAW_REQUESTS)
    cached = await requests_api.get_requests()

    clock["now"] += 3600
    fake_api.fail("GET", "/requests")

    assert await requests_api.get_requests() == cached


@pytest.mark.asyncio
async def test_create_request_renames_and_validates_title(clock, fake_api, cache, requests_api):
    fake_api.on("POST", "/requests", {"id": 5})
    await cache.set(cache_keys.ALL_REQUESTS, {"sent": [], "received": []}, 30_000)

    out = await requests_api.create_request({"title": "  Tenant check ", "target_email": "t@x.test"})

    assert out == {"id": 5}
    assert fake_api.calls[-1][2] == {"label": "Tenant check", "target_email": "t@x.test"}
    assert await cache.get(cache_keys.ALL_REQUESTS, STALE_OK) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "title",
    ["ab", "x" * 31, "Supercalifragilistic1", "a extraordinarilylong b", "12345"],
)
async def test_create_request_rejects_bad_titles_without_calling_api(fake_api, requests_api, title):
    with pytest.raises(ValidationError):
        await requests_api.create_request({"title": title})
    assert fake_api.calls == []


@pytest.mark.asyncio
async def test_update_deny_cancel_invalidate_request_family(clock, fake_api, cache, requests_api):
    fake_api.on("PUT", "/requests/2", {"ok": True})
    fake_api.on("POST", "/requests/2/deny", None)
    fake_api.on("DELETE", "/requests/2", None)

    for call in (
        lambda: requests_api.update_request(2, {"label": "New title"}),
        lambda: requests_api.deny_request(2),
        lambda: requests_api.cancel_request(2),
    ):
        await cache.set(cache_keys.ALL_REQUESTS, {"sent": [], "received": []}, 30_000)
        await cache.set(cache_keys.request_detail(2), {"id": 2}, 60_000)
        await call()
        assert await cache.get(cache_keys.ALL_REQUESTS, STALE_OK) is None
        assert await cache.get(cache_keys.request_detail(2), STALE_OK) is None


@pytest.mark.asyncio
async def test_submit_verification_invalidates_requests_and_keys(clock, fake_api, cache, requests_api):
    fake_api.on("POST", "/verifications", {"key_id": 11})
    await cache.set(cache_keys.ALL_REQUESTS, {"sent": [], "received": []}, 30_000)
    await cache.set(cache_keys.ALL_KEYS, {"sent": [], "received": []}, 30_000)
    await cache.set(cache_keys.PROFILE, {"id": 1}, 30_000)

    out = await requests_api.submit_verification({"request_id": "2", "information_types": ["email"]})

    assert out == {"key_id": 11}
    assert fake_api.calls[-1][2] == {"request_id": 2, "information_types": ["email"]}
    assert await cache.get(cache_keys.ALL_REQUESTS, STALE_OK) is None
    assert await cache.get(cache_keys.ALL_KEYS, STALE_OK) is None
    assert await cache.get(cache_keys.PROFILE, STALE_OK) == {"id": 1}


@pytest.mark.asyncio
async def test_get_request_details(clock, fake_api, requests_api):
    fake_api.on("GET", "/requests/2", {"id": 2, "type": "received", "requester_email": "r@x.test"})

    req = await requests_api.get_request_details(2)

    assert req.request_type == "received"
    assert req.counterpart == "r@x.test"
    assert await requests_api.get_request_details(99) is None
