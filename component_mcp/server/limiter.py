"""Process-wide ceiling on concurrently running mutating operations."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from component_mcp.errors import TooManyConcurrentOperations


class OperationLimiter:
    """Admit at most ``limit`` operations at once; reject the rest immediately.

    Unlike a semaphore, callers never queue: a call arriving while the
    limiter is full fails with :class:`TooManyConcurrentOperations`.
    Everything runs on one event loop, so the counter needs no lock.
    """

    def __init__(self, limit: int = 5) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self.active = 0
        self.rejected = 0

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        if self.active >= self.limit:
            self.rejected += 1
            raise TooManyConcurrentOperations(self.limit)
        self.active += 1
        try:
            yield
        finally:
            self.active -= 1
