"""Store protocol — paginated, batch-limited key-value persistence for policy records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Union

from casbin_dynamodb_adapter.conditions import Equals, Predicate


@dataclass(frozen=True)
class TraversalRequest:
    """What to read from a table.

    Attributes:
        index_name:    Secondary index to read from, or ``None`` for the table.
        key_condition: Partition equality; when set the store runs a query,
                       otherwise a full scan.
        filter:        Extra conditions applied store-side to every record.
    """

    index_name: str | None = None
    key_condition: Equals | None = None
    filter: Predicate = field(default_factory=Predicate)

    def with_filter(self, predicate: Predicate) -> TraversalRequest:
        return TraversalRequest(self.index_name, self.key_condition, predicate)


@dataclass
class Page:
    """One page of results.  ``last_key`` is the continuation token (``None`` on the last page)."""

    items: list[dict[str, Any]]
    last_key: Any = None


@dataclass(frozen=True)
class PutRequest:
    item: dict[str, Any]


@dataclass(frozen=True)
class DeleteRequest:
    key: dict[str, Any]


WriteRequest = Union[PutRequest, DeleteRequest]


class Store(ABC):
    """Abstract base for all storage backends.

    Records are flat ``dict[str, Any]`` items addressed by a single
    primary-key attribute.  Like a namespace, the *table* is passed on
    every call so one store instance can serve several adapters.

    Reads are paginated: ``query``/``scan`` return one :class:`Page` and
    the caller re-issues the call with ``start_key=page.last_key`` until
    it is ``None``.  ``batch_write`` accepts at most ``max_batch_size``
    requests and returns the ones it did not apply.
    """

    max_batch_size: int = 25

    @abstractmethod
    async def query(
        self, table: str, request: TraversalRequest, start_key: Any = None
    ) -> Page:
        """Return one page of records matching ``request.key_condition`` and ``request.filter``."""
        ...

    @abstractmethod
    async def scan(self, table: str, request: TraversalRequest, start_key: Any = None) -> Page:
        """Return one page of all records matching ``request.filter``."""
        ...

    @abstractmethod
    async def put(self, table: str, item: dict[str, Any]) -> None:
        """Create or overwrite a record."""
        ...

    @abstractmethod
    async def delete(self, table: str, key: dict[str, Any]) -> None:
        """Delete a record.  No-op if the key does not exist."""
        ...

    @abstractmethod
    async def batch_write(
        self, table: str, requests: list[WriteRequest]
    ) -> list[WriteRequest]:
        """Apply up to ``max_batch_size`` puts/deletes; return the unprocessed ones."""
        ...

    async def close(self) -> None:
        """Release backend resources.  The default does nothing."""
