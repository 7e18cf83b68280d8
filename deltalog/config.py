"""Store configuration and table properties read from the table metadata."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Generic, TypeVar

from .actions import Metadata
from .errors import IllegalArgumentError

T = TypeVar("T")

_UNIT_DELTAS: dict[str, Callable[[float], timedelta]] = {
    "nanosecond": lambda n: timedelta(microseconds=n / 1000),
    "microsecond": lambda n: timedelta(microseconds=n),
    "millisecond": lambda n: timedelta(milliseconds=n),
    "second": lambda n: timedelta(seconds=n),
    "hour": lambda n: timedelta(hours=n),
    "day": lambda n: timedelta(days=n),
    "week": lambda n: timedelta(weeks=n),
}
_NUMBER = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)\Z")
_INTEGER = re.compile(r"[+-]?\d+\Z")


@dataclass
class Config:
    """Settings of the log store."""

    store_type: str = ""


@dataclass(frozen=True)
class TableConfig(Generic[T]):
    """A table property with its default and its parser."""

    key: str
    default_value: str
    from_string: Callable[[str], T]

    def from_metadata(self, metadata: Metadata) -> T:
        """The property's value in ``metadata``, or its default."""
        configuration = metadata.configuration or {}
        return self.from_string(configuration.get(self.key, self.default_value))


def parse_duration(text: str) -> timedelta:
    """Parse ``interval <number> <unit>``; the unit may be singular or plural."""
    parts = text.lower().split()
    if len(parts) != 3:
        raise IllegalArgumentError(f"can't parse duration from string {text}")
    if parts[0] != "interval":
        raise IllegalArgumentError(
            f"this is not a valid duration starting with {parts[0]}"
        )
    number, unit = parts[1], parts[2]
    to_delta = _UNIT_DELTAS.get(unit) or (
        _UNIT_DELTAS.get(unit[:-1]) if unit.endswith("s") else None
    )
    if to_delta is None:
        raise IllegalArgumentError(f"unknown unit {unit} in duration {text}")
    if not _NUMBER.match(number):
        raise IllegalArgumentError(f"invalid duration {text}")
    value = float(number) if any(c in number for c in ".") else int(number)
    return to_delta(value)


def _parse_int(text: str) -> int:
    return int(text) if _INTEGER.match(text) else 0


def _parse_bool(text: str) -> bool:
    return text.lower() == "true"


LOG_RETENTION: TableConfig[timedelta] = TableConfig(
    "logRetentionDuration", "interval 30 days", parse_duration
)
TOMBSTONE_RETENTION: TableConfig[timedelta] = TableConfig(
    "deletedFileRetentionDuration", "interval 1 week", parse_duration
)
CHECKPOINT_INTERVAL: TableConfig[int] = TableConfig("checkpointInterval", "10", _parse_int)
ENABLE_EXPIRED_LOG_CLEANUP: TableConfig[bool] = TableConfig(
    "enableExpiredLogCleanup", "true", _parse_bool
)
IS_APPEND_ONLY: TableConfig[bool] = TableConfig("appendOnly", "false", _parse_bool)


def merge_global_table_configurations(
    confs: Iterable[tuple[str, str]], table_conf: Mapping[str, str]
) -> dict[str, str]:
    """Table properties with global settings added for keys the table lacks."""
    merged = dict(table_conf)
    for key, value in confs:
        merged.setdefault(key, value)
    return merged