"""
Canonical user schema for the aggregator.

Every source, whatever its native field names, is normalized into the
User model below. Writers depend on USER_FIELDS for column order.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Value written for an optional attribute that no source key provided
NULL_SENTINEL = "NULL"

USER_FIELDS: tuple[str, ...] = ("first_name", "last_name", "email", "source_id")


class OutputFormat(str, Enum):
    """Supported output file formats."""

    JSON = "json"
    CSV = "csv"

    @classmethod
    def parse(cls, value: str) -> "OutputFormat":
        """
        Parse a user-supplied format name.

        Matching ignores case and surrounding whitespace.

        Raises:
            ValueError: If the value names no supported format
        """
        normalized = (value or "").strip().lower()
        for fmt in cls:
            if fmt.value == normalized:
                return fmt
        choices = ", ".join(f.value for f in cls)
        raise ValueError(f"Invalid format {value!r}, expected one of: {choices}")

    @property
    def extension(self) -> str:
        return self.value


class User(BaseModel):
    """
    One normalized user record.

    Created once per accepted raw item and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    first_name: str = Field(..., description="Given name")
    last_name: str = Field(..., description="Family name")
    email: str = Field(
        default=NULL_SENTINEL,
        description="Email address, or NULL when the source has none",
    )
    source_id: str = Field(
        ...,
        description="Record id from the source, or the source URL when absent",
    )

    def to_row(self) -> dict[str, str]:
        """Flat dict in USER_FIELDS order."""
        data = self.model_dump()
        return {name: data[name] for name in USER_FIELDS}


@dataclass
class SourceResult:
    """Outcome of fetching a single source."""

    url: str
    payload: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
