import pytest
import httpx

import core.retry as retry_mod
from core.retry import RetryPolicy


def _resp(status: int, headers: dict[str, str]):
    req = httpx.Request("GET", "https://example.test/x")
    return httpx.Response(status, headers=headers, request=req)


@pytest.fixture
def sleeps(monkeypatch):
    calls = []

    async def fake_sleep(seconds: float):
        calls.append(seconds)

    monkeypatch.setattr(retry_mod.asyncio, "sleep", fake_sleep)
    return calls


def test_retry_policy_attempts_and_retryable_statuses():
    p = RetryPolicy(max_retries=3)
    assert p.attempts == 4

    assert p.is_retryable(_resp(429, {})) is True
    assert p.is_retryable(_resp(500, {})) is True
    assert p.is_retryable(_resp(503, {})) is True
    assert p.is_retryable(_resp(400, {})) is False
    assert p.is_retryable(_resp(401, {})) is False
    assert p.is_retryable(_resp(404, {})) is False


def test_retry_policy_negative_retries_clamped():
    assert RetryPolicy(max_retries=-5).attempts == 1


@pytest.mark.asyncio
async def test_retry_policy_linear_backoff(sleeps):
    p = RetryPolicy(backoff_seconds=0.5)

    await p.wait(1)
    await p.wait(2, _resp(502, {}))

    assert sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_retry_policy_429_honors_retry_after(sleeps):
    p = RetryPolicy(backoff_seconds=1.0)

    await p.wait(1, _resp(429, {"Retry-After": "10"}))

    assert sleeps == [10]


@pytest.mark.asyncio
async def test_retry_policy_429_without_retry_after_uses_backoff(sleeps):
    p = RetryPolicy(backoff_seconds=2.0)

    await p.wait(2, _resp(429, {"Retry-After": "soon"}))

    assert sleeps == [4.0]


@pytest.mark.asyncio
async def test_retry_policy_bounded_sleep(sleeps):
    p = RetryPolicy(max_sleep_seconds=5)

    await p.wait(1, _resp(429, {"Retry-After": "60"}))

    assert sleeps == [5]


@pytest.mark.asyncio
async def test_retry_policy_zero_backoff_never_sleeps(sleeps):
    p = RetryPolicy(backoff_seconds=0)

    await p.wait(1)
    await p.wait(2, _resp(500, {}))

    assert sleeps == []
