"""Sleeper abstraction and retry delay schedule for testable backoff."""

from __future__ import annotations

import asyncio
from typing import Protocol


class Sleeper(Protocol):
    """Protocol for waiting between retries.  Inject a fake in tests."""

    async def sleep(self, seconds: float) -> None: ...


class AsyncioSleeper:
    """Default sleeper backed by ``asyncio.sleep`` (honours task cancellation)."""

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


def backoff_delay(attempt: int, base: float, cap: float) -> float:
    """Return the delay before retry number *attempt* (1-based), doubling up to *cap*."""
    return min(cap, base * (2.0 ** (attempt - 1)))
