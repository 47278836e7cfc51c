"""Data ingestion module - HTTP fetching, schemas, and field normalization."""

from user_aggregator.ingestion.schemas import (
    NULL_SENTINEL,
    USER_FIELDS,
    OutputFormat,
    SourceResult,
    User,
)

__all__ = [
    "NULL_SENTINEL",
    "USER_FIELDS",
    "OutputFormat",
    "SourceResult",
    "User",
]
