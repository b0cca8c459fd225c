"""Detached execution of non-critical side effects (analytics, metrics, email).

Submitted coroutines run as background tasks on the current event loop. The
submitter never awaits them; their failures are logged here and go no
further. On shutdown, drain() gives in-flight work a bounded grace period.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundDispatcher:
    def __init__(self, max_pending: int = 1000) -> None:
        self._max_pending = max_pending
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], description: str) -> bool:
        """Schedule coro without waiting for it. Returns False if it was dropped."""
        if len(self._tasks) >= self._max_pending:
            coro.close()
            logger.warning("background queue full, dropped %s", description)
            return False
        task = asyncio.get_running_loop().create_task(self._run(coro, description))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _run(self, coro: Coroutine[Any, Any, Any], description: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            logger.warning("background task cancelled: %s", description)
            raise
        except Exception:
            logger.warning("background task failed: %s", description, exc_info=True)

    async def drain(self, timeout: float = 2.0) -> int:
        """Wait up to timeout for in-flight tasks; cancel the rest.

        Returns the number of tasks that had to be cancelled.
        """
        if not self._tasks:
            return 0
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning("cancelled %d background task(s) at shutdown", len(pending))
        return len(pending)
