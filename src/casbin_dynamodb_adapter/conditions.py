"""Declarative equality conditions and the positional filter builder.

Conditions are plain data.  Each store backend renders them into its own
query language (boto3 condition objects, SQL, or in-process evaluation),
so nothing here knows about any particular expression syntax.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from casbin_dynamodb_adapter.codec import PTYPE_FIELD, VALUE_FIELDS


@dataclass(frozen=True)
class Equals:
    """``field == value``."""

    field: str
    value: str

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) == self.value


@dataclass(frozen=True)
class Predicate:
    """Conjunction of :class:`Equals` conditions.  An empty predicate matches everything."""

    conditions: tuple[Equals, ...] = ()

    @classmethod
    def of(cls, conditions: Iterable[Equals]) -> Predicate:
        return cls(tuple(conditions))

    def matches(self, record: Mapping[str, Any]) -> bool:
        return all(c.matches(record) for c in self.conditions)

    def fields(self) -> list[str]:
        return [c.field for c in self.conditions]

    def __bool__(self) -> bool:
        return bool(self.conditions)

    def __len__(self) -> int:
        return len(self.conditions)


def build_filter_predicate(ptype: str, field_index: int, *field_values: str) -> Predicate:
    """Build the predicate selecting every record of *ptype* that matches the given fields.

    ``field_values[0]`` constrains slot ``v{field_index}``, the next value the
    following slot, and so on.  Empty values (and slots outside the supplied
    range) stay unconstrained.

    Example:
        >>> build_filter_predicate("p", 1, "data1")
        Predicate(conditions=(Equals(field='pType', value='p'), Equals(field='v1', value='data1')))
    """
    conditions = [Equals(PTYPE_FIELD, ptype)]
    for slot, name in enumerate(VALUE_FIELDS):
        offset = slot - field_index
        if 0 <= offset < len(field_values) and field_values[offset]:
            conditions.append(Equals(name, field_values[offset]))
    return Predicate.of(conditions)
