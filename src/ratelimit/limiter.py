"""Sliding-window rate limiting keyed by anonymized client identity.

The in-memory limiter is per process: separate instances do not share a
window, so N instances admit up to N x max_requests. StoreRateLimiter keeps
the window in the shared key-value store for cross-instance enforcement.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
import uuid
from datetime import UTC, datetime
from typing import Protocol

from src.collaborators.store import KeyValueStore

logger = logging.getLogger(__name__)


class Limiter(Protocol):
    max_requests: int
    window_seconds: int

    async def admit(self, client_key: str) -> bool: ...


class RateLimiter:
    """In-memory sliding window: at most max_requests per trailing window.

    A timestamp exactly window_seconds old is expired. Rejected attempts are
    not recorded.
    """

    def __init__(self, max_requests: int = 10, window_seconds: int = 60) -> None:
        if max_requests < 1 or window_seconds < 1:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def check(self, client_key: str) -> bool:
        """Return True and record the attempt if client_key is under the limit."""
        with self._lock:
            now = time.time()
            window_start = now - self.window_seconds
            self._prune(window_start)

            timestamps = self._windows.get(client_key, [])
            if len(timestamps) >= self.max_requests:
                return False

            timestamps.append(now)
            self._windows[client_key] = timestamps
            return True

    async def admit(self, client_key: str) -> bool:
        return self.check(client_key)

    def _prune(self, window_start: float) -> None:
        for key in list(self._windows):
            fresh = [t for t in self._windows[key] if t > window_start]
            if fresh:
                self._windows[key] = fresh
            else:
                del self._windows[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)


def new_rate_limiter(max_requests: int, window_seconds: int) -> RateLimiter:
    return RateLimiter(max_requests=max_requests, window_seconds=window_seconds)


def _sort_key(ts: float) -> str:
    return "time#" + datetime.fromtimestamp(ts, UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class StoreRateLimiter:
    """Sliding window kept in the shared key-value store.

    Each admitted request is one item in the ``ratelimit#<key>`` partition,
    expiring once it leaves the window. Store failures admit the request.
    """

    def __init__(
        self,
        store: KeyValueStore,
        max_requests: int = 10,
        window_seconds: int = 60,
    ) -> None:
        if max_requests < 1 or window_seconds < 1:
            raise ValueError("max_requests and window_seconds must be positive")
        self._store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._lock = asyncio.Lock()

    async def admit(self, client_key: str) -> bool:
        partition = f"ratelimit#{client_key}"
        async with self._lock:
            now = time.time()
            window_start = now - self.window_seconds
            try:
                items = await self._store.query_range(partition, _sort_key(window_start))
                recent = [i for i in items if float(i.get("ts", 0)) > window_start]
                if len(recent) >= self.max_requests:
                    return False
                await self._store.put(
                    {
                        "pk": partition,
                        "sk": f"{_sort_key(now)}#{uuid.uuid4().hex[:8]}",
                        "ts": now,
                    },
                    ttl=int(now) + self.window_seconds + 1,
                )
            except Exception:
                # any store failure fails open
                logger.warning(
                    "rate limiter store unavailable, admitting key=%s", client_key, exc_info=True,
                )
            return True
