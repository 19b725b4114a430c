"""Storage backends for policy records.

``SQLiteStore`` lives in :mod:`casbin_dynamodb_adapter.stores.sqlite` and
needs the optional ``aiosqlite`` dependency.
"""

from casbin_dynamodb_adapter.stores.base import (
    DeleteRequest,
    Page,
    PutRequest,
    Store,
    TraversalRequest,
    WriteRequest,
)
from casbin_dynamodb_adapter.stores.dynamodb import DynamoDBStore
from casbin_dynamodb_adapter.stores.memory import InMemoryStore

__all__ = [
    "DeleteRequest",
    "DynamoDBStore",
    "InMemoryStore",
    "Page",
    "PutRequest",
    "Store",
    "TraversalRequest",
    "WriteRequest",
]
