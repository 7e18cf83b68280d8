"""Names of table operations, the operation record and isolation levels."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import IllegalArgumentError


class OperationName(str, Enum):
    """Name of an operation that produced a commit."""

    WRITE = "WRITE"
    STREAMING_UPDATE = "STREAMING_UPDATE"
    DELETE = "DELETE"
    TRUNCATE = "TRUNCATE"
    CONVERT = "CONVERT"
    MERGE = "MERGE"
    UPDATE = "UPDATE"
    CREATE_TABLE = "CREATE_TABLE"
    REPLACE_TABLE = "REPLACE_TABLE"
    SET_TABLE_PROPERTIES = "SET_TABLE_PROPERTIES"
    UNSET_TABLE_PROPERTIES = "UNSET_TABLE_PROPERTIES"
    ADD_COLUMNS = "ADD_COLUMNS"
    CHANGE_COLUMN = "CHANGE_COLUMN"
    REPLACE_COLUMNS = "REPLACE_COLUMNS"
    UPGRADE_PROTOCOL = "UPGRADE_PROTOCOL"
    UPGRADE_SCHEMA = "UPGRADE_SCHEMA"
    MANUAL_UPDATE = "MANUAL_UPDATE"

    def __str__(self) -> str:
        return self.value


def parse_name(name: str) -> OperationName:
    """The operation name spelled ``name``; raises for unknown names."""
    try:
        return OperationName(name)
    except ValueError:
        raise IllegalArgumentError(f"{name} is not a valid Name") from None


@dataclass
class Operation:
    """An operation performed on a table, recorded with its commit."""

    name: OperationName
    parameters: dict[str, str] = field(default_factory=dict)
    user_parameters: dict[str, str] | None = None
    user_metadata: str | None = None


class IsolationLevel(Enum):
    """Isolation level a transaction is checked against."""

    SERIALIZABLE = "Serializable"
    SNAPSHOT_ISOLATION = "SnapshotIsolation"

    def __str__(self) -> str:
        return self.value