"""BatchWriter — chunked batch writes with bounded retry of unprocessed items."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from casbin_dynamodb_adapter._internal.backoff import AsyncioSleeper, Sleeper, backoff_delay
from casbin_dynamodb_adapter.exceptions import BatchRetryExceededError
from casbin_dynamodb_adapter.result import BatchResult

if TYPE_CHECKING:
    from casbin_dynamodb_adapter.stores.base import Store, WriteRequest

logger = logging.getLogger(__name__)


def chunked(requests: Sequence[WriteRequest], size: int) -> list[list[WriteRequest]]:
    if size <= 0:
        raise ValueError("size must be > 0")
    return [list(requests[i : i + size]) for i in range(0, len(requests), size)]


class BatchWriter:
    """Applies put/delete requests in store-sized chunks, in order.

    Each chunk is one ``batch_write`` call.  Items the store reports as
    unprocessed are resubmitted before moving on to the next chunk, with
    a doubling delay between attempts.  After ``max_retries``
    resubmissions of the same chunk a :class:`BatchRetryExceededError`
    is raised and later chunks are not attempted.

    Parameters:
        store:       Target store; its ``max_batch_size`` sets the chunk size.
        table:       Table the requests apply to.
        max_retries: Resubmissions allowed per chunk.
        base_delay:  Delay before the first resubmission, in seconds.
        max_delay:   Upper bound for the delay.
        sleeper:     Injectable sleeper for testing.
    """

    def __init__(
        self,
        store: Store,
        table: str,
        *,
        max_retries: int = 5,
        base_delay: float = 0.05,
        max_delay: float = 1.0,
        sleeper: Sleeper | None = None,
    ) -> None:
        self._store = store
        self._table = table
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleeper = sleeper or AsyncioSleeper()

    async def apply(self, requests: Sequence[WriteRequest]) -> BatchResult:
        if not requests:
            return BatchResult.empty()

        chunks = chunked(requests, self._store.max_batch_size)
        calls = 0
        retries = 0

        for number, chunk in enumerate(chunks, start=1):
            pending = chunk
            attempts = 0
            while pending:
                pending = await self._store.batch_write(self._table, pending)
                calls += 1
                if not pending:
                    break
                if attempts >= self.max_retries:
                    raise BatchRetryExceededError(len(pending), attempts)
                attempts += 1
                retries += 1
                delay = backoff_delay(attempts, self.base_delay, self.max_delay)
                logger.warning(
                    "Retrying %d unprocessed item(s) of chunk %d/%d in %.2fs (attempt %d/%d)",
                    len(pending),
                    number,
                    len(chunks),
                    delay,
                    attempts,
                    self.max_retries,
                )
                await self._sleeper.sleep(delay)
            logger.debug("Applied chunk %d/%d (%d item(s))", number, len(chunks), len(chunk))

        return BatchResult(requests=len(requests), chunks=len(chunks), calls=calls, retries=retries)
