"""DynamoDBStore — Amazon DynamoDB backend built on the boto3 resource API."""

from __future__ import annotations

import asyncio
import functools
import logging
import operator
from collections.abc import Callable
from typing import Any

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from casbin_dynamodb_adapter.exceptions import StoreError, StoreUnavailableError
from casbin_dynamodb_adapter.stores.base import (
    DeleteRequest,
    Page,
    PutRequest,
    Store,
    TraversalRequest,
    WriteRequest,
)

logger = logging.getLogger(__name__)

# DynamoDB BatchWriteItem accepts at most 25 put/delete requests per call
MAX_BATCH_SIZE = 25

_UNAVAILABLE_CODES = frozenset(
    {
        "InternalServerError",
        "ProvisionedThroughputExceededException",
        "RequestLimitExceeded",
        "ServiceUnavailable",
        "ThrottlingException",
    }
)


class DynamoDBStore(Store):
    """Store backed by DynamoDB tables.

    boto3 is synchronous, so every call runs in a worker thread via
    :func:`asyncio.to_thread`; the event loop is never blocked.  Items
    use the resource API's native Python types (strings for policy
    records).  Client errors are translated into :class:`StoreError`;
    throttling and transport failures into :class:`StoreUnavailableError`.

    Parameters:
        resource:  A ``boto3.resource("dynamodb")``.  Created from the
                   default session when omitted.
        page_size: Optional ``Limit`` for each query/scan page.  ``None``
                   lets DynamoDB use its 1 MB page size.
    """

    max_batch_size = MAX_BATCH_SIZE

    def __init__(self, resource: Any | None = None, page_size: int | None = None) -> None:
        self._resource = resource or boto3.resource("dynamodb")
        self.page_size = page_size
        self._tables: dict[str, Any] = {}

    def _table(self, name: str) -> Any:
        if name not in self._tables:
            self._tables[name] = self._resource.Table(name)
        return self._tables[name]

    async def _call(self, operation: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, **kwargs)
        except ClientError as err:
            code = err.response.get("Error", {}).get("Code", "")
            logger.error("DynamoDB %s failed: error=%s", operation, code)
            if code in _UNAVAILABLE_CODES:
                raise StoreUnavailableError(operation, str(err)) from err
            raise StoreError(operation, str(err)) from err
        except BotoCoreError as err:
            logger.error("DynamoDB %s failed: %s", operation, err)
            raise StoreUnavailableError(operation, str(err)) from err

    # ── Store protocol ───────────────────────────────────────

    async def query(self, table: str, request: TraversalRequest, start_key: Any = None) -> Page:
        if request.key_condition is None:
            raise StoreError("query", "a key condition is required")
        params = self._read_params(request, start_key)
        params["KeyConditionExpression"] = Key(request.key_condition.field).eq(
            request.key_condition.value
        )
        response = await self._call("query", self._table(table).query, **params)
        return Page(response.get("Items", []), response.get("LastEvaluatedKey"))

    async def scan(self, table: str, request: TraversalRequest, start_key: Any = None) -> Page:
        params = self._read_params(request, start_key)
        response = await self._call("scan", self._table(table).scan, **params)
        return Page(response.get("Items", []), response.get("LastEvaluatedKey"))

    async def put(self, table: str, item: dict[str, Any]) -> None:
        await self._call("put", self._table(table).put_item, Item=item)

    async def delete(self, table: str, key: dict[str, Any]) -> None:
        await self._call("delete", self._table(table).delete_item, Key=key)

    async def batch_write(self, table: str, requests: list[WriteRequest]) -> list[WriteRequest]:
        items = [_to_wire(r) for r in requests]
        response = await self._call(
            "batch_write",
            self._resource.meta.client.batch_write_item,
            RequestItems={table: items},
        )
        unprocessed = response.get("UnprocessedItems", {}).get(table, [])
        return [_from_wire(entry) for entry in unprocessed]

    # ── helpers ──────────────────────────────────────────────

    def _read_params(self, request: TraversalRequest, start_key: Any) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if request.index_name:
            params["IndexName"] = request.index_name
        if request.filter:
            params["FilterExpression"] = functools.reduce(
                operator.and_, (Attr(c.field).eq(c.value) for c in request.filter.conditions)
            )
        if start_key is not None:
            params["ExclusiveStartKey"] = start_key
        if self.page_size:
            params["Limit"] = self.page_size
        return params


def _to_wire(request: WriteRequest) -> dict[str, Any]:
    if isinstance(request, PutRequest):
        return {"PutRequest": {"Item": request.item}}
    return {"DeleteRequest": {"Key": request.key}}


def _from_wire(entry: dict[str, Any]) -> WriteRequest:
    if "PutRequest" in entry:
        return PutRequest(entry["PutRequest"]["Item"])
    return DeleteRequest(entry["DeleteRequest"]["Key"])
