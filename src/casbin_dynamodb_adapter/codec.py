"""RecordCodec — policy rule <-> flat stored record, with content-derived keys."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from casbin_dynamodb_adapter.config import IndexConfig

PTYPE_FIELD = "pType"
VALUE_FIELDS = ("v0", "v1", "v2", "v3", "v4", "v5")


class RecordCodec:
    """Encodes Casbin rules into records and renders records back into policy lines.

    A record is a flat ``dict[str, str]`` whose keys are written in a fixed
    order, because the identity hash is computed over its serialisation:

    1. ``pType``
    2. ``v0`` .. ``v5``, only the fields the rule actually has
    3. the index partition attribute, when an index is configured
    4. the identity attribute (``hash_key``), added last

    The identity is the hex MD5 digest of the compact JSON form of steps
    1-3.  This matches what the Node.js adapter writes, so both can share
    a table.  An empty string is a value like any other and is stored:
    ``["a", "b"]`` and ``["a", "b", ""]`` are different records with
    different identities.  Only fields past the end of the rule are left out.

    Parameters:
        hash_key: Name of the identity (primary key) attribute.
        index:    Optional index whose partition value is stamped on every record.
    """

    def __init__(self, hash_key: str, index: IndexConfig | None = None) -> None:
        self.hash_key = hash_key
        self.index = index

    def encode(self, ptype: str, rule: Sequence[str]) -> dict[str, str]:
        record: dict[str, str] = {PTYPE_FIELD: ptype}
        for name, value in zip(VALUE_FIELDS, rule):
            if value is not None:
                record[name] = value
        if self.index is not None:
            record[self.index.hash_key] = self.index.hash_value
        record[self.hash_key] = _digest(record)
        return record

    def identity(self, ptype: str, rule: Sequence[str]) -> str:
        return self.encode(ptype, rule)[self.hash_key]

    def key(self, ptype: str, rule: Sequence[str]) -> dict[str, str]:
        """Return the primary key that addresses the record of this rule."""
        return {self.hash_key: self.identity(ptype, rule)}

    def key_of(self, record: Mapping[str, str]) -> dict[str, str]:
        """Return the primary key of a record read back from the store."""
        return {self.hash_key: record[self.hash_key]}

    @staticmethod
    def decode(record: Mapping[str, str]) -> str:
        """Render *record* as a Casbin policy line (``"p, alice, data1, read"``).

        Trailing empty or missing fields are dropped; an empty field followed
        by a non-empty one is rendered empty so positions survive the round trip.
        """
        values = [record.get(name) or "" for name in VALUE_FIELDS]
        while values and not values[-1]:
            values.pop()
        return ", ".join([record[PTYPE_FIELD], *values])


def _digest(record: Mapping[str, str]) -> str:
    payload = json.dumps(record, separators=(",", ":"), ensure_ascii=False)
    return hashlib.md5(payload.encode("utf-8"), usedforsecurity=False).hexdigest()
