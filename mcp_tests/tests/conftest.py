import pytest

import core.cache as cache_mod
from core.cache import CacheStore
from core.errors import ExternalServiceError
from core.storage import MemoryKeyValueStore


class DummyMCP:
    """Minimal FastMCP stand-in to capture tool registration."""

    def __init__(self) -> None:
        self.tools = {}

    def tool(self, *, name: str):
        def _decorator(fn):
            self.tools[name] = fn
            return fn
        return _decorator


class FakeApi:
    """ApiTransport stand-in: routes (METHOD, PATH) to a payload or an exception."""

    def __init__(self) -> None:
        self.routes = {}
        self.calls = []

    def on(self, method: str, path: str, result=None):
        self.routes[(method.upper(), path)] = result

    def fail(self, method: str, path: str, status=None):
        self.routes[(method.upper(), path)] = ExternalServiceError("backend down", status=status)

    def count(self, method: str, path: str) -> int:
        return sum(1 for c in self.calls if c[0] == method.upper() and c[1] == path)

    async def request(self, method, path, *, json=None, params=None, authenticated=True):
        self.calls.append((method.upper(), path, json, params))
        key = (method.upper(), path)
        if key not in self.routes:
            raise ExternalServiceError(f"no route for {method} {path}")
        val = self.routes[key]
        if isinstance(val, Exception):
            raise val
        return val


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose operations can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    def _check(self):
        if self.broken:
            raise OSError("disk unavailable")

    async def get_item(self, key):
        self._check()
        return await super().get_item(key)

    async def set_item(self, key, value):
        self._check()
        await super().set_item(key, value)

    async def remove_item(self, key):
        self._check()
        await super().remove_item(key)

    async def multi_remove(self, keys):
        self._check()
        await super().multi_remove(keys)

    async def get_all_keys(self):
        self._check()
        return await super().get_all_keys()


@pytest.fixture
def dummy_mcp():
    return DummyMCP()


@pytest.fixture
def clock(monkeypatch):
    """Controllable wall clock in seconds; the cache reads it as epoch ms."""
    t = {"now": 1_700_000_000.0}

    def fake_time():
        return t["now"]

    monkeypatch.setattr(cache_mod.time, "time", fake_time)
    return t


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def cache(store):
    return CacheStore(store)


@pytest.fixture
def fake_api():
    return FakeApi()
