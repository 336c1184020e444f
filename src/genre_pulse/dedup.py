"""Coalescing of identical in-flight requests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


def make_request_key(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    """Build the dedup key: endpoint plus query parameters sorted by name."""
    if not params:
        return endpoint
    return f"{endpoint}?{urlencode(sorted((k, str(v)) for k, v in params.items()))}"


class RequestDeduplicator:
    """Shares one in-flight task between all callers of the same key.

    The entry for a key is removed by the task itself as it settles, so a
    lookup can never observe a finished task and the next request for that
    key starts a fresh attempt sequence.
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, asyncio.Task[Any]] = {}

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def execute(self, key: str, thunk: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``thunk`` for ``key`` unless an identical request is already running."""
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, thunk))
            self._in_flight[key] = task
        else:
            logger.debug(f"Joining in-flight request {key}")

        # A cancelled waiter must not cancel the shared task
        return await asyncio.shield(task)

    async def _run(self, key: str, thunk: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await thunk()
        finally:
            if self._in_flight.get(key) is asyncio.current_task():
                del self._in_flight[key]

    def clear(self) -> None:
        """Forget every in-flight entry. Running tasks still deliver to their waiters."""
        self._in_flight.clear()
