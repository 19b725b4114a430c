"""
casbin_dynamodb_adapter — Hello World

Policies live in the store, one record per rule. The enforcer loads
them, and every add/remove through the enforcer is written back.
Swap InMemoryStore for DynamoDBStore to run against a real table.
"""

import asyncio

import casbin
from casbin.model import Model

from casbin_dynamodb_adapter import DynamoDBAdapter
from casbin_dynamodb_adapter.stores import InMemoryStore

MODEL = """
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


async def main():
    # ──────────────────────────────────────
    #  1. Create the adapter
    # ──────────────────────────────────────
    store = InMemoryStore(hash_key="id", page_size=2)
    adapter = DynamoDBAdapter(store, table_name="casbin_rules", hash_key="id")

    model = Model()
    model.load_model_from_text(MODEL)
    enforcer = casbin.AsyncEnforcer(model, adapter)

    # ──────────────────────────────────────
    #  2. Write rules through the enforcer
    # ──────────────────────────────────────
    await enforcer.add_policy("alice", "data1", "read")
    await enforcer.add_policy("data2_admin", "data2", "write")
    await enforcer.add_grouping_policy("bob", "data2_admin")

    print(f"Records in store: {len(store.items('casbin_rules'))}")

    # ──────────────────────────────────────
    #  3. Reload from the store and enforce
    # ──────────────────────────────────────
    await enforcer.load_policy()

    print(f"  alice read data1:  {enforcer.enforce('alice', 'data1', 'read')}")
    print(f"  bob write data2:   {enforcer.enforce('bob', 'data2', 'write')}")
    print(f"  alice write data2: {enforcer.enforce('alice', 'data2', 'write')}")

    # ──────────────────────────────────────
    #  4. Partial removal
    # ──────────────────────────────────────
    await enforcer.remove_filtered_policy(1, "data2")
    await enforcer.load_policy()

    print(f"  bob write data2 after removal: {enforcer.enforce('bob', 'data2', 'write')}")


if __name__ == "__main__":
    asyncio.run(main())
