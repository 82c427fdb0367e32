"""In-process cache of catalog fetches.

Entries are ``asyncio.Task`` objects rather than results, so two
coroutines asking for the same URL at the same time share one request.
A task that fails is evicted once it settles so that the next caller
retries instead of receiving the stale error.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any


class RegistryCache:
    """URL-keyed cache of in-flight and completed fetches."""

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[Any]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached result for *key*, starting *fetch* on a miss."""
        task = self._tasks.get(key)
        if task is not None:
            self.hits += 1
        else:
            self.misses += 1
            task = asyncio.ensure_future(fetch())
            self._tasks[key] = task
            task.add_done_callback(lambda done, key=key: self._evict_failed(key, done))
        # shield: one cancelled waiter must not cancel the fetch for the others
        return await asyncio.shield(task)

    def _evict_failed(self, key: str, task: asyncio.Task[Any]) -> None:
        if task.cancelled() or task.exception() is not None:
            if self._tasks.get(key) is task:
                del self._tasks[key]

    def clear(self) -> None:
        self._tasks.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> dict[str, int]:
        return {"entries": len(self._tasks), "hits": self.hits, "misses": self.misses}
