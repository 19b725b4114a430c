"""InMemoryStore — zero-config, dict-backed storage for development and testing."""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from casbin_dynamodb_adapter.exceptions import StoreError
from casbin_dynamodb_adapter.stores.base import (
    DeleteRequest,
    Page,
    PutRequest,
    Store,
    TraversalRequest,
    WriteRequest,
)


class InMemoryStore(Store):
    """In-memory store using nested dicts.  Data is lost on process exit.

    Mimics the limits of a real key-value service so pagination and
    batching paths get exercised: reads return at most ``page_size``
    evaluated items per page (the filter is applied after the limit, as
    DynamoDB does), and ``batch_write`` rejects more than
    ``max_batch_size`` requests.

    Parameters:
        hash_key:       Primary key attribute of every table.
        page_size:      Items evaluated per ``query``/``scan`` page.
        max_batch_size: Largest accepted ``batch_write``.
    """

    def __init__(self, hash_key: str = "id", page_size: int = 100, max_batch_size: int = 25) -> None:
        self.hash_key = hash_key
        self.page_size = page_size
        self.max_batch_size = max_batch_size
        self._data: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)

    def items(self, table: str) -> list[dict[str, Any]]:
        """Return a snapshot of every record in *table*."""
        return [dict(item) for item in self._data[table].values()]

    async def query(self, table: str, request: TraversalRequest, start_key: Any = None) -> Page:
        if request.key_condition is None:
            raise StoreError("query", "a key condition is required")
        candidates = [
            item for item in self._data[table].values() if request.key_condition.matches(item)
        ]
        return self._page(candidates, request, start_key)

    async def scan(self, table: str, request: TraversalRequest, start_key: Any = None) -> Page:
        return self._page(list(self._data[table].values()), request, start_key)

    async def put(self, table: str, item: dict[str, Any]) -> None:
        self._data[table][self._key_value("put", item)] = dict(item)

    async def delete(self, table: str, key: dict[str, Any]) -> None:
        self._data[table].pop(self._key_value("delete", key), None)

    async def batch_write(self, table: str, requests: list[WriteRequest]) -> list[WriteRequest]:
        if len(requests) > self.max_batch_size:
            raise StoreError(
                "batch_write",
                f"{len(requests)} requests exceed the limit of {self.max_batch_size}",
            )
        for request in requests:
            if isinstance(request, PutRequest):
                await self.put(table, request.item)
            elif isinstance(request, DeleteRequest):
                await self.delete(table, request.key)
        return []

    # ── helpers ──────────────────────────────────────────────

    def _key_value(self, operation: str, item: dict[str, Any]) -> str:
        try:
            return str(item[self.hash_key])
        except KeyError:
            raise StoreError(operation, f"missing key attribute '{self.hash_key}'") from None

    def _page(
        self, candidates: list[dict[str, Any]], request: TraversalRequest, start_key: Any
    ) -> Page:
        offset = int(start_key or 0)
        evaluated = candidates[offset : offset + self.page_size]
        end = offset + len(evaluated)
        return Page(
            items=[dict(item) for item in evaluated if request.filter.matches(item)],
            last_key=end if end < len(candidates) else None,
        )
