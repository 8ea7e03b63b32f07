"""Value model for schema-less documents."""

from pyeasydb.models.values import (
    SERVER_TIMESTAMP,
    SERVER_TIMESTAMP_WIRE,
    ServerTimestamp,
    ValueKind,
    is_server_timestamp,
    kind_of,
    normalize_document,
    normalize_value,
    values_equal,
)

__all__ = [
    "SERVER_TIMESTAMP",
    "SERVER_TIMESTAMP_WIRE",
    "ServerTimestamp",
    "ValueKind",
    "is_server_timestamp",
    "kind_of",
    "normalize_document",
    "normalize_value",
    "values_equal",
]
