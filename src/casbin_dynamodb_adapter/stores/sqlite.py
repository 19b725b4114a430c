"""SQLiteStore — durable, single-file storage backend using aiosqlite."""

from __future__ import annotations

import json
from typing import Any

try:
    import aiosqlite
except ImportError as exc:
    raise ImportError(
        "SQLiteStore requires the 'aiosqlite' package. "
        "Install it with: pip install casbin-dynamodb-adapter[sqlite]"
    ) from exc

from casbin_dynamodb_adapter.conditions import Equals
from casbin_dynamodb_adapter.exceptions import StoreError
from casbin_dynamodb_adapter.stores.base import (
    DeleteRequest,
    Page,
    PutRequest,
    Store,
    TraversalRequest,
    WriteRequest,
)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS policy_records (
    tbl  TEXT NOT NULL,
    key  TEXT NOT NULL,
    item TEXT NOT NULL,
    PRIMARY KEY (tbl, key)
)
"""

_UPSERT = "INSERT OR REPLACE INTO policy_records (tbl, key, item) VALUES (?, ?, ?)"
_DELETE = "DELETE FROM policy_records WHERE tbl = ? AND key = ?"


class SQLiteStore(Store):
    """Persistent store backed by a single SQLite file.

    Records are kept as JSON documents; conditions are evaluated with
    ``json_extract``.  Pages are ordered by primary key and the last key
    of a full page is the continuation token.

    Parameters:
        db_path:        Path to the SQLite database file.  Use ``":memory:"``
                        for an in-memory database (useful for testing).
        hash_key:       Primary key attribute of every record.
        page_size:      Rows returned per ``query``/``scan`` page.
        max_batch_size: Largest accepted ``batch_write``.
    """

    def __init__(
        self,
        db_path: str = "policy_store.db",
        *,
        hash_key: str = "id",
        page_size: int = 100,
        max_batch_size: int = 25,
    ) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        self.hash_key = hash_key
        self.page_size = page_size
        self.max_batch_size = max_batch_size

    async def _connect(self) -> aiosqlite.Connection:
        if self._db is None:
            self._db = await aiosqlite.connect(self._db_path)
            await self._db.execute(_CREATE_TABLE)
            await self._db.commit()
        return self._db

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    # ── Store protocol ───────────────────────────────────────

    async def query(self, table: str, request: TraversalRequest, start_key: Any = None) -> Page:
        if request.key_condition is None:
            raise StoreError("query", "a key condition is required")
        return await self._select(table, [request.key_condition, *request.filter.conditions], start_key)

    async def scan(self, table: str, request: TraversalRequest, start_key: Any = None) -> Page:
        return await self._select(table, list(request.filter.conditions), start_key)

    async def put(self, table: str, item: dict[str, Any]) -> None:
        db = await self._connect()
        await db.execute(_UPSERT, (table, self._key_value("put", item), json.dumps(item)))
        await db.commit()

    async def delete(self, table: str, key: dict[str, Any]) -> None:
        db = await self._connect()
        await db.execute(_DELETE, (table, self._key_value("delete", key)))
        await db.commit()

    async def batch_write(self, table: str, requests: list[WriteRequest]) -> list[WriteRequest]:
        if len(requests) > self.max_batch_size:
            raise StoreError(
                "batch_write",
                f"{len(requests)} requests exceed the limit of {self.max_batch_size}",
            )
        db = await self._connect()
        for request in requests:
            if isinstance(request, PutRequest):
                key = self._key_value("batch_write", request.item)
                await db.execute(_UPSERT, (table, key, json.dumps(request.item)))
            elif isinstance(request, DeleteRequest):
                await db.execute(_DELETE, (table, self._key_value("batch_write", request.key)))
        await db.commit()
        return []

    # ── helpers ──────────────────────────────────────────────

    def _key_value(self, operation: str, item: dict[str, Any]) -> str:
        try:
            return str(item[self.hash_key])
        except KeyError:
            raise StoreError(operation, f"missing key attribute '{self.hash_key}'") from None

    async def _select(self, table: str, conditions: list[Equals], start_key: Any) -> Page:
        db = await self._connect()
        sql = "SELECT key, item FROM policy_records WHERE tbl = ?"
        params: list[Any] = [table]
        if start_key is not None:
            sql += " AND key > ?"
            params.append(start_key)
        for condition in conditions:
            sql += " AND json_extract(item, ?) = ?"
            params.extend([f'$."{condition.field}"', condition.value])
        sql += " ORDER BY key LIMIT ?"
        params.append(self.page_size)

        cursor = await db.execute(sql, params)
        rows = await cursor.fetchall()
        return Page(
            items=[json.loads(row[1]) for row in rows],
            last_key=rows[-1][0] if len(rows) == self.page_size else None,
        )
