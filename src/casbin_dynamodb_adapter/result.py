"""BatchResult — the outcome of a chunked batch write."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BatchResult:
    """Immutable summary returned by :meth:`BatchWriter.apply`.

    A result is only returned when every request was applied; failures
    are raised instead.

    Attributes:
        requests: Number of put/delete requests submitted.
        chunks:   Number of chunks the requests were split into.
        calls:    Total ``batch_write`` calls, resubmissions included.
        retries:  Resubmissions of unprocessed items.
    """

    requests: int = 0
    chunks: int = 0
    calls: int = 0
    retries: int = 0

    @staticmethod
    def empty() -> BatchResult:
        return BatchResult()
