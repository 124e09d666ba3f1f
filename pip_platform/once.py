"""Single-assignment async cell used for per-object memoization."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


class AsyncOnce(Generic[T]):
    """Compute a value on first request and serve it thereafter.

    Concurrent first callers share one computation. A failed computation
    leaves the cell empty so the next caller retries.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._set = False
        self._value: T | None = None

    async def get_or_compute(self, compute: Callable[[], Awaitable[T]]) -> T:
        if self._set:
            return self._value
        async with self._lock:
            if not self._set:
                self._value = await compute()
                self._set = True
        return self._value
