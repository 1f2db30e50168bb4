from __future__ import annotations

from typing import Optional

from core.interfaces import KeyValueStore


TOKEN_KEY = "verikey_token"


class TokenStore:
    # Auth token persistence; lives outside the cache prefix so cache clears never touch it
    def __init__(self, storage: KeyValueStore, *, key: str = TOKEN_KEY) -> None:
        self._storage = storage
        self._key = key

    async def save_token(self, token: str) -> None:
        await self._storage.set_item(self._key, token)

    async def get_token(self) -> Optional[str]:
        return await self._storage.get_item(self._key)

    async def remove_token(self) -> None:
        await self._storage.remove_item(self._key)
