"""Persistent key-value stores backing the cache and the token store.

`MemoryKeyValueStore` keeps everything in a dict (tests, ephemeral runs).
`FileKeyValueStore` persists a single JSON document on disk so cached
entries and tokens survive process restarts.
"""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from core.logging import get_logger

logger = get_logger(__name__)


class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    async def multi_remove(self, keys: Sequence[str]) -> None:
        for key in keys:
            self._items.pop(key, None)

    async def get_all_keys(self) -> List[str]:
        return list(self._items.keys())


class FileKeyValueStore:
    """JSON-file backed store.

    The whole document is loaded lazily on first use and rewritten
    atomically (temp file + replace) after each mutation. A document that
    does not parse is renamed to `<name>.corrupt` and replaced. Blocking IO runs
    in a worker thread to keep the event loop responsive.
    """

    def __init__(self, *, path: Path) -> None:
        self._path = Path(path)
        self._items: Optional[Dict[str, str]] = None
        # Serialises load and read-modify-write cycles across tasks.
        self._lock = asyncio.Lock()

    async def get_item(self, key: str) -> Optional[str]:
        items = await self._loaded()
        return items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            items = await self._load_locked()
            items[key] = value
            await self._flush_locked(items)

    async def remove_item(self, key: str) -> None:
        await self.multi_remove([key])

    async def multi_remove(self, keys: Sequence[str]) -> None:
        async with self._lock:
            items = await self._load_locked()
            removed = [k for k in keys if items.pop(k, None) is not None]
            if removed:
                await self._flush_locked(items)

    async def get_all_keys(self) -> List[str]:
        items = await self._loaded()
        return list(items.keys())

    async def _loaded(self) -> Dict[str, str]:
        async with self._lock:
            return await self._load_locked()

    async def _load_locked(self) -> Dict[str, str]:
        if self._items is not None:
            return self._items

        path = self._path

        def _do() -> Dict[str, str]:
            if not path.exists():
                return {}
            raw = json.loads(path.read_text(encoding="utf-8") or "{}")
            if not isinstance(raw, dict):
                raise ValueError(f"Storage file is not a JSON object: {path}")
            return {str(k): str(v) for k, v in raw.items()}

        def _quarantine() -> Path:
            aside = path.with_suffix(path.suffix + ".corrupt")
            os.replace(path, aside)
            return aside

        try:
            self._items = await asyncio.to_thread(_do)
        except ValueError as e:
            # Set the unreadable document aside and start empty
            aside = await asyncio.to_thread(_quarantine)
            logger.error("storage_file_corrupt", path=str(path), moved_to=str(aside), error=str(e))
            self._items = {}
        return self._items

    async def _flush_locked(self, items: Dict[str, str]) -> None:
        path = self._path
        snapshot = dict(items)

        def _do() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".tmp")
            tmp.write_text(json.dumps(snapshot, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, path)

        await asyncio.to_thread(_do)
