"""Custom exceptions for the casbin_dynamodb_adapter package."""

from __future__ import annotations


class AdapterError(Exception):
    """Base exception for all adapter errors."""


class InvalidConfigurationError(AdapterError):
    """Raised when the adapter is constructed with an unusable configuration."""


class PolicyStateError(AdapterError):
    """Raised when an operation is not allowed in the adapter's current mode."""


class StoreError(AdapterError):
    """Raised when a store operation fails."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        msg = f"Store error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class StoreUnavailableError(StoreError):
    """Raised when the backing store cannot be reached or rejects the request."""


class BatchRetryExceededError(StoreError):
    """Raised when a batch write still has unprocessed items after the last retry."""

    def __init__(self, unprocessed_count: int, attempts: int) -> None:
        self.unprocessed_count = unprocessed_count
        self.attempts = attempts
        super().__init__(
            "batch_write",
            f"{unprocessed_count} item(s) still unprocessed after {attempts} retries",
        )
