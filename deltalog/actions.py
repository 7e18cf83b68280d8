"""Actions recorded in the transaction log and their JSON form.

Every commit file holds one JSON object per line.  Each object wraps exactly
one action under a key such as ``add`` or ``metaData``.  Encoding leaves out
fields that hold their zero value, except for optional fields, which are left
out only when they are absent (``None``).
"""

from __future__ import annotations

import copy as _copy
import json
import time
import uuid
from collections.abc import Iterable
from dataclasses import MISSING, dataclass, field, fields, replace
from typing import Any, ClassVar, TypeVar
from urllib.parse import SplitResult, urlsplit

from .errors import IllegalArgumentError, JsonUnmarshalError, assertion_failed

READER_VERSION = 1
WRITER_VERSION = 2
MIN_READER_VERSION_PROP = "delta.minReaderVersion"
MIN_WRITER_VERSION_PROP = "delta.minWriterVersion"

_INT64_MIN, _INT64_MAX = -(1 << 63), (1 << 63) - 1
_INT32_MIN, _INT32_MAX = -(1 << 31), (1 << 31) - 1
_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)

A = TypeVar("A", bound="Action")


def _field(json_name: str, kind: Any, *, optional: bool = False,
           default: Any = None, default_factory: Any = MISSING) -> Any:
    meta = {"json": json_name, "kind": kind, "optional": optional}
    if default_factory is not MISSING:
        return field(default_factory=default_factory, metadata=meta)
    return field(default=default, metadata=meta)


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


def _encode(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        kind = f.metadata["kind"]
        name = f.metadata["json"]
        if isinstance(kind, type):
            out[name] = _encode(value)
            continue
        if not f.metadata["optional"] and not value:
            continue
        if kind == "map":
            value = dict(sorted(value.items()))
        elif kind == "list":
            value = list(value)
        out[name] = value
    return out


def _dumps(data: dict[str, Any]) -> str:
    text = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    for raw, escaped in _HTML_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def _decode_int(raw: Any, key: str, low: int, high: int) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise JsonUnmarshalError(f"cannot decode {raw!r} into integer field {key}")
    if not low <= raw <= high:
        raise JsonUnmarshalError(f"value {raw} overflows integer field {key}")
    return raw


def _decode_str_or_null(raw: Any, key: str) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise JsonUnmarshalError(f"cannot decode {raw!r} into string element of {key}")
    return raw


def _decode_value(kind: Any, raw: Any, key: str) -> Any:
    if isinstance(kind, type):
        return _decode(kind, raw, key)
    if kind == "str":
        if not isinstance(raw, str):
            raise JsonUnmarshalError(f"cannot decode {raw!r} into string field {key}")
        return raw
    if kind == "bool":
        if not isinstance(raw, bool):
            raise JsonUnmarshalError(f"cannot decode {raw!r} into boolean field {key}")
        return raw
    if kind == "int":
        return _decode_int(raw, key, _INT64_MIN, _INT64_MAX)
    if kind == "int32":
        return _decode_int(raw, key, _INT32_MIN, _INT32_MAX)
    if kind == "map":
        if not isinstance(raw, dict):
            raise JsonUnmarshalError(f"cannot decode {raw!r} into map field {key}")
        return {k: _decode_str_or_null(v, key) for k, v in raw.items()}
    if kind == "list":
        if not isinstance(raw, list):
            raise JsonUnmarshalError(f"cannot decode {raw!r} into list field {key}")
        return [_decode_str_or_null(v, key) for v in raw]
    raise JsonUnmarshalError(f"unknown field kind {kind!r} for {key}")


def _decode(cls: type, data: Any, where: str) -> Any:
    if not isinstance(data, dict):
        raise JsonUnmarshalError(f"cannot decode {data!r} into object {where}")
    by_name = {f.metadata["json"]: f for f in fields(cls)}
    folded = {name.casefold(): f for name, f in by_name.items()}
    values: dict[str, Any] = {}
    for key, raw in data.items():
        f = by_name.get(key) or folded.get(key.casefold())
        if f is None:
            continue
        if raw is None:
            values.pop(f.name, None)
            continue
        values[f.name] = _decode_value(f.metadata["kind"], raw, key)
    return cls(**values)


class Action:
    """An entry of the transaction log."""

    _single_field: ClassVar[str]

    def wrap(self) -> SingleAction:
        """The envelope holding this action alone."""
        return SingleAction(**{self._single_field: self})

    def to_json(self) -> str:
        """The log line for this action."""
        return _dumps(self.wrap().to_dict())


class FileAction(Action):
    """An action that refers to a data file."""

    path: str
    data_change: bool

    def path_as_uri(self) -> SplitResult:
        try:
            return urlsplit(self.path)
        except ValueError as exc:
            raise IllegalArgumentError(f"invalid path {self.path}: {exc}") from exc


@dataclass
class SetTransaction(Action):
    _single_field: ClassVar[str] = "txn"

    app_id: str = _field("appId", "str", default="")
    version: int = _field("version", "int", default=0)
    last_updated: int | None = _field("lastUpdated", "int", optional=True)


@dataclass
class AddFile(FileAction):
    _single_field: ClassVar[str] = "add"

    path: str = _field("path", "str", default="")
    data_change: bool = _field("dataChange", "bool", default=False)
    partition_values: dict[str, str] | None = _field("partitionValues", "map")
    size: int = _field("size", "int", default=0)
    modification_time: int = _field("modificationTime", "int", default=0)
    stats: str = _field("stats", "str", default="")
    tags: dict[str, str] | None = _field("tags", "map")

    def remove(self, timestamp: int | None = None,
               data_change: bool | None = None) -> RemoveFile:
        """A RemoveFile for this file, deleted now unless a timestamp is given."""
        return RemoveFile(
            path=self.path,
            deletion_timestamp=_now_millis() if timestamp is None else timestamp,
            data_change=True if data_change is None else data_change,
        )

    def copy(self, data_change: bool, path: str) -> AddFile:
        """A deep copy with a new path and data change flag."""
        return replace(_copy.deepcopy(self), path=path, data_change=data_change)


@dataclass
class AddCDCFile(FileAction):
    _single_field: ClassVar[str] = "cdc"

    path: str = _field("path", "str", default="")
    data_change: bool = _field("dataChange", "bool", default=False)
    partition_values: dict[str, str] | None = _field("partitionValues", "map")
    size: int = _field("size", "int", default=0)
    tags: dict[str, str] | None = _field("tags", "map")


@dataclass
class RemoveFile(FileAction):
    _single_field: ClassVar[str] = "remove"

    path: str = _field("path", "str", default="")
    data_change: bool = _field("dataChange", "bool", default=False)
    deletion_timestamp: int | None = _field("deletionTimestamp", "int", optional=True)
    extended_file_metadata: bool = _field("extendedFileMetadata", "bool", default=False)
    partition_values: dict[str, str] | None = _field("partitionValues", "map")
    size: int | None = _field("size", "int", optional=True)
    tags: dict[str, str] | None = _field("tags", "map")

    def deletion_time(self) -> int:
        """Deletion timestamp in milliseconds, 0 when unknown."""
        return 0 if self.deletion_timestamp is None else self.deletion_timestamp

    def copy(self, data_change: bool, path: str) -> RemoveFile:
        """A deep copy with a new path and data change flag."""
        return replace(_copy.deepcopy(self), path=path, data_change=data_change)


@dataclass
class Format:
    provider: str = _field("provider", "str", default="")
    options: dict[str, str] | None = _field("options", "map")


@dataclass
class JobInfo:
    job_id: str = _field("jobId", "str", default="")
    job_name: str = _field("jobName", "str", default="")
    run_id: str = _field("runId", "str", default="")
    job_owner_id: str = _field("jobOwnerId", "str", default="")
    trigger_type: str = _field("triggerType", "str", default="")


@dataclass
class NotebookInfo:
    notebook_id: str = _field("notebookId", "str", default="")


@dataclass
class Metadata(Action):
    _single_field: ClassVar[str] = "meta_data"

    id: str = _field("id", "str", default="")
    name: str = _field("name", "str", default="")
    description: str = _field("description", "str", default="")
    format: Format = _field("format", Format, default_factory=Format)
    schema_string: str = _field("schemaString", "str", default="")
    partition_columns: list[str] | None = _field("partitionColumns", "list")
    configuration: dict[str, str] | None = _field("configuration", "map")
    created_time: int | None = _field("createdTime", "int", optional=True)


@dataclass
class Protocol(Action):
    _single_field: ClassVar[str] = "protocol"

    min_reader_version: int = _field("minReaderVersion", "int32", default=0)
    min_writer_version: int = _field("minWriterVersion", "int32", default=0)


@dataclass
class CommitInfo(Action):
    _single_field: ClassVar[str] = "commit_info"

    version: int | None = _field("version", "int", optional=True)
    timestamp: int = _field("timestamp", "int", default=0)
    user_id: str | None = _field("userId", "str", optional=True)
    user_name: str | None = _field("userName", "str", optional=True)
    operation: str = _field("operation", "str", default="")
    operation_parameters: dict[str, str] | None = _field("operationParameters", "map")
    job: JobInfo | None = _field("job", JobInfo, optional=True)
    notebook: NotebookInfo | None = _field("notebook", NotebookInfo, optional=True)
    cluster_id: str | None = _field("clusterId", "str", optional=True)
    read_version: int | None = _field("readVersion", "int", optional=True)
    isolation_level: str | None = _field("isolationLevel", "str", optional=True)
    is_blind_append: bool | None = _field("isBlindAppend", "bool", optional=True)
    operation_metrics: dict[str, str] | None = _field("operationMetrics", "map")
    user_metadata: str | None = _field("userMetadata", "str", optional=True)
    engine_info: str | None = _field("engineInfo", "str", optional=True)

    def with_timestamp(self, timestamp: int) -> CommitInfo:
        return replace(_copy.deepcopy(self), timestamp=timestamp)

    def copy(self, version: int) -> CommitInfo:
        return replace(_copy.deepcopy(self), version=version)


@dataclass
class SingleAction:
    """Envelope of one log line; at most one field is normally set."""

    txn: SetTransaction | None = _field("txn", SetTransaction, optional=True)
    add: AddFile | None = _field("add", AddFile, optional=True)
    remove: RemoveFile | None = _field("remove", RemoveFile, optional=True)
    meta_data: Metadata | None = _field("metaData", Metadata, optional=True)
    protocol: Protocol | None = _field("protocol", Protocol, optional=True)
    cdc: AddCDCFile | None = _field("cdc", AddCDCFile, optional=True)
    commit_info: CommitInfo | None = _field("commitInfo", CommitInfo, optional=True)

    def unwrap(self) -> Action | None:
        """The wrapped action, or None when the envelope is empty."""
        for candidate in (self.add, self.remove, self.meta_data, self.txn,
                          self.protocol, self.cdc, self.commit_info):
            if candidate is not None:
                return candidate
        return None

    def to_dict(self) -> dict[str, Any]:
        """The JSON object of this envelope."""
        return _encode(self)


def from_json(text: str | bytes) -> Action | None:
    """Decode one log line; None when the line holds no action."""
    try:
        data = json.loads(text)
    except (ValueError, TypeError) as exc:
        raise JsonUnmarshalError(str(exc)) from exc
    if data is None:
        return None
    return _decode(SingleAction, data, "action").unwrap()


def check_metadata_protocol_properties(metadata: Metadata, protocol: Protocol | None) -> None:
    """Reject table properties that set protocol versions."""
    configuration = metadata.configuration or {}
    if MIN_READER_VERSION_PROP in configuration:
        raise assertion_failed(
            "should not have the protocol version MinReaderVersion as part of the table properties"
        )
    if MIN_WRITER_VERSION_PROP in configuration:
        raise assertion_failed(
            "should not have the protocol version MinWriterVersion as part of the table properties"
        )


def collect(actions: Iterable[Action], kind: type[A]) -> list[A]:
    """All actions of the given kind, in order."""
    return [a for a in actions if isinstance(a, kind)]


def collect_first(actions: Iterable[Action], kind: type[A]) -> A | None:
    """The first action of the given kind, or None."""
    return next((a for a in actions if isinstance(a, kind)), None)


def to_json_lines(actions: Iterable[Action]) -> list[str]:
    return [a.to_json() for a in actions]


def default_metadata() -> Metadata:
    return Metadata(
        id=str(uuid.uuid4()),
        format=Format(provider="parquet", options={}),
        configuration={},
        created_time=_now_millis(),
    )


def default_protocol() -> Protocol:
    return Protocol(min_reader_version=1, min_writer_version=2)


def job_info_from_context(context: dict[str, str]) -> JobInfo | None:
    if "jobId" not in context:
        return None
    return JobInfo(
        job_id=context["jobId"],
        job_name=context.get("jobName", ""),
        run_id=context.get("runId", ""),
        job_owner_id=context.get("jobOwnerId", ""),
        trigger_type=context.get("jobTriggerType", ""),
    )


def notebook_info_from_context(context: dict[str, str]) -> NotebookInfo | None:
    if "notebookId" not in context:
        return None
    return NotebookInfo(notebook_id=context["notebookId"])