"""Validated, immutable adapter configuration.

These Pydantic models are built once by the adapter constructor and
never mutated afterwards.  Validation failures surface as
:class:`~casbin_dynamodb_adapter.exceptions.InvalidConfigurationError`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from casbin_dynamodb_adapter.exceptions import InvalidConfigurationError


class IndexConfig(BaseModel):
    """Secondary index that scopes every policy record to one partition.

    Attributes:
        name: Index name passed to the store's query call
        hash_key: Partition attribute written on every record
        hash_value: Fixed partition value shared by all records of this adapter
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    hash_key: str = Field(min_length=1)
    hash_value: str = Field(min_length=1)


class AdapterConfig(BaseModel):
    """Complete adapter configuration.

    Attributes:
        table_name: Table holding the policy records
        hash_key: Primary key attribute; holds the record's identity hash
        index: Optional secondary index descriptor
        max_retries: Resubmissions allowed for unprocessed batch items
        retry_base_delay: Delay in seconds before the first resubmission
        retry_max_delay: Upper bound for the doubling retry delay
    """

    model_config = ConfigDict(frozen=True)

    table_name: str = Field(min_length=1)
    hash_key: str = Field(min_length=1)
    index: IndexConfig | None = None
    max_retries: int = Field(default=5, ge=0)
    retry_base_delay: float = Field(default=0.05, ge=0)
    retry_max_delay: float = Field(default=1.0, ge=0)

    @classmethod
    def build(cls, **options: Any) -> AdapterConfig:
        """Validate *options*, raising ``InvalidConfigurationError`` on failure."""
        try:
            return cls.model_validate(options)
        except ValidationError as e:
            raise InvalidConfigurationError(f"Invalid adapter configuration: {e}") from e
