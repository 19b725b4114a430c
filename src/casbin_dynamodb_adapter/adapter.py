"""DynamoDBAdapter — Casbin policy persistence on a paginated, batch-limited key-value store."""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from casbin import persist
from casbin.persist.adapters.asyncio import AsyncAdapter, AsyncFilteredAdapter
from casbin.persist.adapters.filtered_file_adapter import filter_line

from casbin_dynamodb_adapter.batch import BatchWriter
from casbin_dynamodb_adapter.codec import RecordCodec
from casbin_dynamodb_adapter.conditions import Equals, build_filter_predicate
from casbin_dynamodb_adapter.config import AdapterConfig, IndexConfig
from casbin_dynamodb_adapter.exceptions import InvalidConfigurationError, PolicyStateError
from casbin_dynamodb_adapter.stores.base import DeleteRequest, PutRequest, TraversalRequest
from casbin_dynamodb_adapter.stores.dynamodb import DynamoDBStore
from casbin_dynamodb_adapter.traversal import traverse

if TYPE_CHECKING:
    from casbin_dynamodb_adapter._internal.backoff import Sleeper
    from casbin_dynamodb_adapter.result import BatchResult
    from casbin_dynamodb_adapter.stores.base import Store

logger = logging.getLogger(__name__)

_RULE_SECTIONS = ("p", "g")


class DynamoDBAdapter(AsyncAdapter):
    """Async Casbin adapter that keeps one record per policy rule.

    Every rule is stored as a flat record whose primary key is a hash of
    its content (see :class:`RecordCodec`), so removing a rule only needs
    the rule itself.  Bulk writes go through :class:`BatchWriter` and reads
    through :func:`traverse`, which absorb the store's batch and page limits.

    When an ``index`` is configured, every record is stamped with the
    index partition value and all reads become queries on that partition,
    which lets several policy sets share one table.

    Parameters:
        store:            Backend implementing :class:`Store`.
        table_name:       Table holding the policy records.
        hash_key:         Primary key attribute of the table.
        index:            Optional :class:`IndexConfig` (or equivalent dict).
        max_retries:      Resubmissions allowed for unprocessed batch items.
        retry_base_delay: First retry delay in seconds; doubles per attempt.
        retry_max_delay:  Cap for the retry delay.
        sleeper:          Injectable sleeper for testing.

    Raises:
        InvalidConfigurationError: If the store is missing or any name is empty.

    Example:
        >>> adapter = DynamoDBAdapter.new_adapter("casbin_rules", hash_key="id")
        >>> enforcer = casbin.AsyncEnforcer("model.conf", adapter)
        >>> await enforcer.load_policy()
    """

    def __init__(
        self,
        store: Store,
        *,
        table_name: str,
        hash_key: str,
        index: IndexConfig | dict[str, str] | None = None,
        max_retries: int = 5,
        retry_base_delay: float = 0.05,
        retry_max_delay: float = 1.0,
        sleeper: Sleeper | None = None,
    ) -> None:
        if store is None:
            raise InvalidConfigurationError("A store is required")
        self.config = AdapterConfig.build(
            table_name=table_name,
            hash_key=hash_key,
            index=index,
            max_retries=max_retries,
            retry_base_delay=retry_base_delay,
            retry_max_delay=retry_max_delay,
        )
        self._store = store
        self._codec = RecordCodec(self.config.hash_key, self.config.index)
        self._writer = BatchWriter(
            store,
            self.config.table_name,
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
            max_delay=self.config.retry_max_delay,
            sleeper=sleeper,
        )
        index_config = self.config.index
        if index_config is not None:
            self._read_request = TraversalRequest(
                index_name=index_config.name,
                key_condition=Equals(index_config.hash_key, index_config.hash_value),
            )
        else:
            self._read_request = TraversalRequest()

    @classmethod
    def new_adapter(
        cls,
        table_name: str,
        *,
        hash_key: str,
        resource: Any | None = None,
        **options: Any,
    ) -> DynamoDBAdapter:
        """Build an adapter on a :class:`DynamoDBStore` for *table_name*."""
        return cls(DynamoDBStore(resource), table_name=table_name, hash_key=hash_key, **options)

    @property
    def store(self) -> Store:
        return self._store

    @property
    def codec(self) -> RecordCodec:
        return self._codec

    # ── loading ──────────────────────────────────────────────

    async def _read_all(self) -> list[dict[str, Any]]:
        return await traverse(self._store, self.config.table_name, self._read_request)

    async def load_policy(self, model: Any) -> None:
        """Load every stored rule into *model*."""
        records = await self._read_all()
        for record in records:
            persist.load_policy_line(self._codec.decode(record), model)
        logger.info("Loaded %d policy rule(s) from %s", len(records), self.config.table_name)

    # ── saving ───────────────────────────────────────────────

    async def save_policy(self, model: Any) -> bool:
        """Write every ``p`` and ``g`` rule held by *model*, one put per rule.

        Records already in the table but absent from the model are left
        untouched.
        """
        count = 0
        for sec in _RULE_SECTIONS:
            for ptype, assertion in model.model.get(sec, {}).items():
                for rule in assertion.policy:
                    await self._store.put(self.config.table_name, self._codec.encode(ptype, rule))
                    count += 1
        logger.info("Saved %d policy rule(s) to %s", count, self.config.table_name)
        return True

    async def add_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:
        await self._store.put(self.config.table_name, self._codec.encode(ptype, rule))
        return True

    async def add_policies(self, sec: str, ptype: str, rules: Sequence[Sequence[str]]) -> bool:
        await self._apply([PutRequest(self._codec.encode(ptype, rule)) for rule in rules])
        return True

    # ── removal ──────────────────────────────────────────────

    async def remove_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:
        await self._store.delete(self.config.table_name, self._codec.key(ptype, rule))
        return True

    async def remove_policies(self, sec: str, ptype: str, rules: Sequence[Sequence[str]]) -> bool:
        await self._apply([DeleteRequest(self._codec.key(ptype, rule)) for rule in rules])
        return True

    async def remove_filtered_policy(
        self, sec: str, ptype: str, field_index: int, *field_values: str
    ) -> bool:
        """Remove every *ptype* rule whose fields from *field_index* on match *field_values*.

        Empty values act as wildcards, so ``("p", "p", 1, "data1")`` removes
        all ``p`` rules whose second field is ``data1``.
        """
        predicate = build_filter_predicate(ptype, field_index, *field_values)
        request = self._read_request.with_filter(predicate)
        records = await traverse(self._store, self.config.table_name, request)
        await self._apply([DeleteRequest(self._codec.key_of(record)) for record in records])
        logger.info(
            "Removed %d %s rule(s) matching %s", len(records), ptype, predicate.fields()[1:]
        )
        return True

    async def _apply(self, requests: list[PutRequest | DeleteRequest]) -> BatchResult:
        # a single batch may not address the same key twice
        unique: dict[str, PutRequest | DeleteRequest] = {}
        for request in requests:
            target = request.item if isinstance(request, PutRequest) else request.key
            unique.setdefault(target[self.config.hash_key], request)
        return await self._writer.apply(list(unique.values()))


class LoadMode(enum.Enum):
    """What the engine's in-memory model currently reflects."""

    UNFILTERED = "unfiltered"
    FILTERED = "filtered"


class FilteredDynamoDBAdapter(DynamoDBAdapter, AsyncFilteredAdapter):
    """:class:`DynamoDBAdapter` that can also load a filtered subset of rules.

    After :meth:`load_filtered_policy` the model is only a partial view of
    the table, so :meth:`save_policy` refuses to run until the next full
    :meth:`load_policy`.

    The load mode is plain instance state: do not run loads and saves on
    one instance from several tasks at once without external locking.
    """

    def __init__(self, store: Store, **options: Any) -> None:
        super().__init__(store, **options)
        self.mode = LoadMode.UNFILTERED

    async def load_policy(self, model: Any) -> None:
        self.mode = LoadMode.UNFILTERED
        await super().load_policy(model)

    async def load_filtered_policy(self, model: Any, filter: Any) -> None:
        """Load only the rules that pass *filter* (``None`` loads everything)."""
        if filter is None:
            await self.load_policy(model)
            return

        records = await self._read_all()
        loaded = 0
        for record in records:
            line = self._codec.decode(record)
            if not line or filter_line(line, [filter.P, filter.G]):
                continue
            persist.load_policy_line(line, model)
            loaded += 1

        self.mode = LoadMode.FILTERED
        logger.info("Loaded %d of %d policy rule(s) through a filter", loaded, len(records))

    # sync on purpose: the enforcer calls it without awaiting
    def is_filtered(self) -> bool:
        return self.mode is LoadMode.FILTERED

    async def save_policy(self, model: Any) -> bool:
        if self.mode is LoadMode.FILTERED:
            raise PolicyStateError("Cannot save a filtered policy; load the full policy first")
        return await super().save_policy(model)
