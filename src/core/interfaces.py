"""Core protocol and interface definitions.

Defines the seams between layers: the persistent key-value store consumed
by the cache, the cache surface consumed by resource accessors, the HTTP
transport consumed by accessors, and the profile reader consumed by the
session service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Protocol, Sequence

if TYPE_CHECKING:
    from core.models import Profile


class KeyValueStore(Protocol):
    """Durable string key-value storage (device storage, file, etc.)."""

    async def get_item(self, key: str) -> Optional[str]:
        ...

    async def set_item(self, key: str, value: str) -> None:
        ...

    async def remove_item(self, key: str) -> None:
        ...

    async def multi_remove(self, keys: Sequence[str]) -> None:
        ...

    async def get_all_keys(self) -> List[str]:
        ...


class ResourceCache(Protocol):
    """Cache surface used by resource accessors."""

    async def get(self, key: str, ttl: Optional[float] = None) -> Any:
        ...

    async def set(self, key: str, data: Any, ttl: float) -> None:
        ...

    async def invalidate(self, key: str) -> None:
        ...

    async def invalidate_pattern(self, pattern: str) -> None:
        ...

    async def clear(self) -> None:
        ...


class ApiTransport(Protocol):
    """Contract for the remote API client."""

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        authenticated: bool = True,
    ) -> Any:
        ...


class ProfileReader(Protocol):
    async def get_profile(self, force_refresh: bool = False) -> "Profile":
        ...
