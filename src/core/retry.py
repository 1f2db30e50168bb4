"""Retry policy for transient backend failures.

- Transport errors and 5xx responses: linear backoff (backoff * attempt).
- 429 responses: honor Retry-After when present, else linear backoff.
- Sleeps are bounded to a configurable maximum to avoid long blocking.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional

import httpx


class RetryPolicy:
    def __init__(
        self,
        *,
        max_retries: int = 2,
        backoff_seconds: float = 1.0,
        max_sleep_seconds: float = 30.0,
    ) -> None:
        self.max_retries = max(0, int(max_retries))
        self._backoff = max(0.0, float(backoff_seconds))
        self._max_sleep = float(max_sleep_seconds)

    @property
    def attempts(self) -> int:
        return self.max_retries + 1

    def is_retryable(self, response: httpx.Response) -> bool:
        return response.status_code == 429 or response.status_code >= 500

    async def wait(self, attempt: int, response: Optional[httpx.Response] = None) -> None:
        # `attempt` is the 1-based number of the attempt that just failed
        delay = self._backoff * attempt
        if response is not None and response.status_code == 429:
            retry_after = self._parse_int_header(response.headers, "Retry-After")
            if retry_after is not None:
                delay = retry_after
        await self._sleep_bounded(delay)

    async def _sleep_bounded(self, seconds: float) -> None:
        if seconds <= 0:
            return
        await asyncio.sleep(min(float(seconds), self._max_sleep))

    def _parse_int_header(self, headers: Mapping[str, str], name: str) -> Optional[int]:
        value = headers.get(name)
        if not value:
            return None
        value = value.strip()
        if not value.isdigit():
            return None
        return int(value)
