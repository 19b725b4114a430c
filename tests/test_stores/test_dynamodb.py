"""Tests for DynamoDBStore against a moto-mocked DynamoDB."""

import boto3
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from moto import mock_aws

from casbin_dynamodb_adapter import (
    DynamoDBAdapter,
    Equals,
    FilteredDynamoDBAdapter,
    Filter,
    StoreError,
    StoreUnavailableError,
    build_filter_predicate,
    traverse,
)
from casbin_dynamodb_adapter.stores import DeleteRequest, DynamoDBStore, PutRequest, TraversalRequest

TABLE = "casbin_rules"
INDEX = {"name": "tenant-index", "hash_key": "tenant", "hash_value": "acme"}


@pytest.fixture
def aws_credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def resource(aws_credentials):
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        dynamodb.create_table(
            TableName=TABLE,
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            AttributeDefinitions=[
                {"AttributeName": "id", "AttributeType": "S"},
                {"AttributeName": "tenant", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": "tenant-index",
                    "KeySchema": [{"AttributeName": "tenant", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        yield dynamodb


@pytest.fixture
def store(resource):
    return DynamoDBStore(resource, page_size=2)


# ── store protocol ───────────────────────────────────────────


async def test_put_and_scan(store):
    await store.put(TABLE, {"id": "a", "pType": "p", "v0": "alice"})
    page = await store.scan(TABLE, TraversalRequest())
    assert page.items == [{"id": "a", "pType": "p", "v0": "alice"}]


async def test_scan_is_paginated(store):
    for i in range(5):
        await store.put(TABLE, {"id": f"k{i}", "pType": "p"})

    first = await store.scan(TABLE, TraversalRequest())
    assert len(first.items) == 2
    assert first.last_key is not None

    items = await traverse(store, TABLE, TraversalRequest())
    assert sorted(i["id"] for i in items) == [f"k{i}" for i in range(5)]


async def test_scan_filter(store):
    await store.put(TABLE, {"id": "1", "pType": "p", "v0": "alice", "v1": "data1"})
    await store.put(TABLE, {"id": "2", "pType": "p", "v0": "bob", "v1": "data2"})
    await store.put(TABLE, {"id": "3", "pType": "g", "v0": "carol", "v1": "data1"})

    request = TraversalRequest(filter=build_filter_predicate("p", 1, "data1"))
    items = await traverse(store, TABLE, request)

    assert [i["id"] for i in items] == ["1"]


async def test_query_index(store):
    await store.put(TABLE, {"id": "1", "pType": "p", "tenant": "acme"})
    await store.put(TABLE, {"id": "2", "pType": "p", "tenant": "globex"})
    await store.put(TABLE, {"id": "3", "pType": "g", "tenant": "acme"})

    request = TraversalRequest(index_name="tenant-index", key_condition=Equals("tenant", "acme"))
    items = await traverse(store, TABLE, request)
    assert sorted(i["id"] for i in items) == ["1", "3"]

    filtered = await traverse(store, TABLE, request.with_filter(build_filter_predicate("g", 0)))
    assert [i["id"] for i in filtered] == ["3"]


async def test_delete(store):
    await store.put(TABLE, {"id": "a"})
    await store.delete(TABLE, {"id": "a"})
    assert await traverse(store, TABLE, TraversalRequest()) == []


async def test_batch_write(store):
    await store.put(TABLE, {"id": "old"})
    unprocessed = await store.batch_write(
        TABLE, [PutRequest({"id": "a"}), PutRequest({"id": "b"}), DeleteRequest({"id": "old"})]
    )
    assert unprocessed == []
    items = await traverse(store, TABLE, TraversalRequest())
    assert sorted(i["id"] for i in items) == ["a", "b"]


async def test_client_error_becomes_store_error(store):
    with pytest.raises(StoreError) as exc_info:
        await store.scan("missing_table", TraversalRequest())
    assert exc_info.value.operation == "scan"
    assert not isinstance(exc_info.value, StoreUnavailableError)


class FailingTable:
    def __init__(self, error):
        self.error = error

    def scan(self, **kwargs):
        raise self.error

    def put_item(self, **kwargs):
        raise self.error


class FailingResource:
    def __init__(self, error):
        self.error = error

    def Table(self, name):  # noqa: N802
        return FailingTable(self.error)


@pytest.mark.parametrize(
    "code", ["ThrottlingException", "ProvisionedThroughputExceededException", "InternalServerError"]
)
async def test_throttling_becomes_store_unavailable(code):
    error = ClientError({"Error": {"Code": code, "Message": "slow down"}}, "Scan")
    store = DynamoDBStore(FailingResource(error))

    with pytest.raises(StoreUnavailableError) as exc_info:
        await store.scan(TABLE, TraversalRequest())

    assert exc_info.value.operation == "scan"
    assert exc_info.value.__cause__ is error


async def test_transport_error_becomes_store_unavailable():
    error = EndpointConnectionError(endpoint_url="https://dynamodb.us-east-1.amazonaws.com")
    store = DynamoDBStore(FailingResource(error))

    with pytest.raises(StoreUnavailableError) as exc_info:
        await store.put(TABLE, {"id": "a"})

    assert exc_info.value.operation == "put"
    assert exc_info.value.__cause__ is error


async def test_unavailable_error_is_a_store_error():
    error = ClientError({"Error": {"Code": "ThrottlingException", "Message": "slow down"}}, "Scan")
    store = DynamoDBStore(FailingResource(error))

    with pytest.raises(StoreError):
        await store.scan(TABLE, TraversalRequest())


# ── adapter end to end ───────────────────────────────────────


async def test_adapter_end_to_end(store, model):
    adapter = DynamoDBAdapter(store, table_name=TABLE, hash_key="id")
    rules = [[f"user{i}", "data1" if i % 2 else "data2", "read"] for i in range(30)]
    await adapter.add_policies("p", "p", rules)
    await adapter.add_policy("g", "g", ["user1", "admin"])

    await adapter.remove_filtered_policy("p", "p", 1, "data1")
    await adapter.remove_policy("p", "p", ["user0", "data2", "read"])
    await adapter.load_policy(model)

    assert sorted(model.get_policy("p", "p")) == sorted(
        r for r in rules if r[1] == "data2" and r[0] != "user0"
    )
    assert model.get_policy("g", "g") == [["user1", "admin"]]


async def test_adapter_with_index(store, model):
    acme = FilteredDynamoDBAdapter(store, table_name=TABLE, hash_key="id", index=INDEX)
    globex = DynamoDBAdapter(
        store, table_name=TABLE, hash_key="id", index={**INDEX, "hash_value": "globex"}
    )
    await acme.add_policies("p", "p", [["alice", "data1", "read"], ["bob", "data1", "write"]])
    await globex.add_policy("p", "p", ["alice", "data1", "read"])

    alice_only = Filter()
    alice_only.P = ["alice"]
    await acme.load_filtered_policy(model, alice_only)

    assert model.get_policy("p", "p") == [["alice", "data1", "read"]]
    assert acme.is_filtered()

    items = await traverse(store, TABLE, TraversalRequest())
    assert sorted(i["tenant"] for i in items) == ["acme", "acme", "globex"]


def test_new_adapter_uses_dynamodb_store(resource):
    adapter = DynamoDBAdapter.new_adapter(TABLE, hash_key="id", resource=resource)
    assert isinstance(adapter.store, DynamoDBStore)
    assert adapter.store.max_batch_size == 25
