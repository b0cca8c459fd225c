"""Key-value store collaborator: put with expiry, range query by sort key.

Items are flat dicts carrying a partition key ``pk`` and a sort key ``sk``.
``ttl`` is the absolute expiry in epoch seconds; expired items are invisible
to queries and are removed by the store itself, never by callers.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
import time
from typing import Any, Protocol


class StoreError(Exception):
    """Raised when the backing store cannot complete an operation."""


class KeyValueStore(Protocol):
    async def put(self, item: dict[str, Any], ttl: int) -> None: ...

    async def query_range(
        self, partition_key: str, sort_key_lower: str,
    ) -> list[dict[str, Any]]: ...


def _require_keys(item: dict[str, Any]) -> tuple[str, str]:
    try:
        return str(item["pk"]), str(item["sk"])
    except KeyError as exc:
        raise StoreError(f"item is missing key attribute {exc}") from exc


class InMemoryKeyValueStore:
    """Process-local store, suitable for tests and single-instance runs."""

    def __init__(self) -> None:
        self._partitions: dict[str, dict[str, tuple[dict[str, Any], int]]] = {}
        self._lock = threading.Lock()

    async def put(self, item: dict[str, Any], ttl: int) -> None:
        pk, sk = _require_keys(item)
        with self._lock:
            self._partitions.setdefault(pk, {})[sk] = (dict(item), ttl)

    async def query_range(
        self, partition_key: str, sort_key_lower: str,
    ) -> list[dict[str, Any]]:
        now = int(time.time())
        with self._lock:
            partition = self._partitions.get(partition_key, {})
            expired = [sk for sk, (_, ttl) in partition.items() if ttl <= now]
            for sk in expired:
                del partition[sk]
            if not partition:
                self._partitions.pop(partition_key, None)
            return [
                dict(item)
                for sk, (item, _) in sorted(partition.items())
                if sk >= sort_key_lower
            ]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(p) for p in self._partitions.values())


class SqliteKeyValueStore:
    """SQLite-backed store for durable local state across restarts.

    Database work runs in a worker thread so the event loop keeps serving
    requests while a write or query is in progress.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute(
            """CREATE TABLE IF NOT EXISTS kv_items (
                pk TEXT NOT NULL,
                sk TEXT NOT NULL,
                item_json TEXT NOT NULL,
                ttl INTEGER NOT NULL,
                PRIMARY KEY (pk, sk)
            )"""
        )
        self._conn.execute("CREATE INDEX IF NOT EXISTS idx_kv_ttl ON kv_items(ttl)")
        self._conn.commit()

    async def put(self, item: dict[str, Any], ttl: int) -> None:
        pk, sk = _require_keys(item)
        await asyncio.to_thread(self._put_sync, pk, sk, item, ttl)

    def _put_sync(self, pk: str, sk: str, item: dict[str, Any], ttl: int) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT OR REPLACE INTO kv_items (pk, sk, item_json, ttl) "
                    "VALUES (?, ?, ?, ?)",
                    (pk, sk, json.dumps(item, default=str), ttl),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    async def query_range(
        self, partition_key: str, sort_key_lower: str,
    ) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._query_sync, partition_key, sort_key_lower)

    def _query_sync(self, partition_key: str, sort_key_lower: str) -> list[dict[str, Any]]:
        now = int(time.time())
        try:
            with self._lock:
                self._conn.execute("DELETE FROM kv_items WHERE ttl <= ?", (now,))
                self._conn.commit()
                rows = self._conn.execute(
                    "SELECT item_json FROM kv_items WHERE pk = ? AND sk >= ? ORDER BY sk",
                    (partition_key, sort_key_lower),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        return [json.loads(row[0]) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
