"""Paginated traversal — read every record behind a query or scan."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from casbin_dynamodb_adapter.stores.base import Store, TraversalRequest

logger = logging.getLogger(__name__)


async def traverse(store: Store, table: str, request: TraversalRequest) -> list[dict[str, Any]]:
    """Return all records matching *request*, following continuation tokens.

    Runs a query when the request carries a partition condition and a scan
    otherwise.  Pages are fetched one after another until the store stops
    returning a continuation token.  Any store failure propagates and the
    records collected so far are dropped.
    """
    read = store.query if request.key_condition is not None else store.scan
    items: list[dict[str, Any]] = []
    pages = 0
    start_key: Any = None

    while True:
        page = await read(table, request, start_key)
        pages += 1
        items.extend(page.items)
        start_key = page.last_key
        if start_key is None:
            break

    logger.debug("Read %d record(s) from %s in %d page(s)", len(items), table, pages)
    return items
