"""casbin_dynamodb_adapter — Casbin policy storage for DynamoDB-style key-value stores.

Policies are kept one record per rule, keyed by a hash of the rule's
content.  Reads follow pagination to the end; bulk writes are chunked to
the store's batch limit and unprocessed items are retried with backoff.
"""

from casbin.persist.adapters.filtered_file_adapter import Filter

from casbin_dynamodb_adapter.adapter import DynamoDBAdapter, FilteredDynamoDBAdapter, LoadMode
from casbin_dynamodb_adapter.batch import BatchWriter
from casbin_dynamodb_adapter.codec import RecordCodec
from casbin_dynamodb_adapter.conditions import Equals, Predicate, build_filter_predicate
from casbin_dynamodb_adapter.config import AdapterConfig, IndexConfig
from casbin_dynamodb_adapter.exceptions import (
    AdapterError,
    BatchRetryExceededError,
    InvalidConfigurationError,
    PolicyStateError,
    StoreError,
    StoreUnavailableError,
)
from casbin_dynamodb_adapter.result import BatchResult
from casbin_dynamodb_adapter.traversal import traverse

__all__ = [
    "AdapterConfig",
    "AdapterError",
    "BatchResult",
    "BatchRetryExceededError",
    "BatchWriter",
    "DynamoDBAdapter",
    "Equals",
    "Filter",
    "FilteredDynamoDBAdapter",
    "IndexConfig",
    "InvalidConfigurationError",
    "LoadMode",
    "PolicyStateError",
    "Predicate",
    "RecordCodec",
    "StoreError",
    "StoreUnavailableError",
    "build_filter_predicate",
    "traverse",
]
