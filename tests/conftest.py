"""Shared test fixtures."""

import pytest
from casbin.model import Model

from casbin_dynamodb_adapter import DynamoDBAdapter, FilteredDynamoDBAdapter
from casbin_dynamodb_adapter.stores import InMemoryStore

TABLE = "casbin_rules"

RBAC_MODEL = """
[request_definition]
r = sub, obj, act

[policy_definition]
p = sub, obj, act

[role_definition]
g = _, _

[policy_effect]
e = some(where (p.eft == allow))

[matchers]
m = g(r.sub, p.sub) && r.obj == p.obj && r.act == p.act
"""


class FakeSleeper:
    def __init__(self):
        self.delays: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper():
    return FakeSleeper()


@pytest.fixture
def store():
    return InMemoryStore(hash_key="id", page_size=2)


@pytest.fixture
def adapter(store, sleeper):
    return DynamoDBAdapter(store, table_name=TABLE, hash_key="id", sleeper=sleeper)


@pytest.fixture
def filtered_adapter(store, sleeper):
    return FilteredDynamoDBAdapter(store, table_name=TABLE, hash_key="id", sleeper=sleeper)


@pytest.fixture
def model():
    m = Model()
    m.load_model_from_text(RBAC_MODEL)
    return m
