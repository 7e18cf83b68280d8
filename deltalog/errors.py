"""Exceptions raised by the transaction log, and factories for common failures.

The factory functions build an exception carrying the standard message; the
caller raises it.
"""

from __future__ import annotations

from collections.abc import Iterable


class DeltaError(Exception):
    """Base class of every error raised by this package."""


class IllegalStateError(DeltaError):
    """The log or an object is in a state that does not allow the operation."""


class IllegalArgumentError(DeltaError, ValueError):
    """An argument has a value that is not accepted."""


class UnexpectedFileTypeError(DeltaError):
    """A file in the log directory is neither a delta nor a checkpoint file."""


class NullPointerError(DeltaError):
    """A value that must be present was missing."""


class ClassCastError(DeltaError, TypeError):
    """A value could not be read as the requested type."""


class DeltaAssertionError(DeltaError):
    """An internal consistency check failed."""


class UnsupportedOperationError(DeltaError):
    """The operation is not supported."""


class DeltaStandaloneError(DeltaError):
    """A query failed, usually because the query itself is invalid."""


class FileAlreadyExistsError(DeltaError):
    """A file that was to be created already exists."""


class LogFileNotFoundError(DeltaError):
    """A file of the log could not be found."""


class ConcurrentModificationError(DeltaError):
    """A concurrent commit conflicts with the current transaction."""


class ConcurrentTransactionError(ConcurrentModificationError):
    """Concurrent transactions both tried to update the same idempotent transaction."""


class JsonUnmarshalError(DeltaError):
    """A JSON document could not be decoded."""


class JsonMarshalError(DeltaError):
    """A value could not be encoded as JSON."""


class InvalidProtocolVersionError(DeltaError):
    """The table requires a protocol version this client does not support."""

    def __init__(self, message: str = "invalid protocol version") -> None:
        super().__init__(message)


def _format_list(values: Iterable[object]) -> str:
    return "[" + " ".join(str(v) for v in values) + "]"


def action_not_found(action: str, version: int) -> IllegalStateError:
    return IllegalStateError(
        f"The {action} of your Delta table couldn't be recovered while Reconstructing "
        f"version: {version}. Did you manually delete files in the _delta_log directory?"
    )


def unsupported_file_system(msg: str) -> IllegalArgumentError:
    return IllegalArgumentError(msg)


def metadata_changed() -> ConcurrentModificationError:
    return ConcurrentModificationError("metadata changed")


def protocol_changed(msg: str) -> ConcurrentModificationError:
    return ConcurrentModificationError(msg)


def illegal_state(msg: str) -> IllegalStateError:
    return IllegalStateError(msg)


def max_commit_retries_exceeded(msg: str) -> IllegalStateError:
    return IllegalStateError(msg)


def metadata_absent() -> IllegalStateError:
    return IllegalStateError(
        "Couldn't find Metadata while committing the first version of the Delta table."
    )


def add_file_partitioning_mismatch() -> IllegalStateError:
    return IllegalStateError(
        "The AddFile contains partitioning schema different from the table's "
        "partitioning schema"
    )


def modify_append_only_table() -> UnsupportedOperationError:
    return UnsupportedOperationError(
        "This table is configured to only allow appends. If you would like to permit "
        "updates or deletes, use 'ALTER TABLE <table_name> SET TBLPROPERTIES "
        "(appendOnly=false)'."
    )


def schema_change(old_schema: str, new_schema: str) -> IllegalArgumentError:
    return IllegalArgumentError(
        "Detected incompatible schema change:\n"
        f"old schema: {old_schema}\n\n"
        f"new schema: {new_schema}"
    )


def non_partition_column_absent() -> DeltaStandaloneError:
    return DeltaStandaloneError(
        "Data written into Delta needs to contain at least one non-partitioned column"
    )


def partition_columns_not_found(part_cols: Iterable[str], schema: str) -> DeltaStandaloneError:
    return DeltaStandaloneError(
        f"Partition columns {_format_list(part_cols)} not found in schema {schema}"
    )


def assertion_failed(msg: str) -> DeltaAssertionError:
    return DeltaAssertionError(msg)


def invalid_partition_column(cause: object) -> DeltaStandaloneError:
    error = DeltaStandaloneError(
        'Found partition columns having invalid character(s) among " ,;{}()\\n\\t=". '
        f"Please change the name to your partition columns. {cause}"
    )
    if isinstance(cause, BaseException):
        error.__cause__ = cause
    return error


def nested_not_null_constraint(parent: str, nested: str, nest_type: str) -> DeltaStandaloneError:
    return DeltaStandaloneError(
        f"The {nest_type} type of the field {parent} contains a NOT NULL constraint. "
        "Delta does not support NOT NULL constraints nested within arrays or maps. "
        f"Parsed {nest_type} type:\n {nested}"
    )


def field_type_mismatch(field_name: str, actual_type: str, desired_type: str) -> ClassCastError:
    return ClassCastError(
        f"The data type of field {field_name} is {actual_type}, "
        f"Cannot cast it to {desired_type}"
    )


def empty_directory(path: str) -> LogFileNotFoundError:
    return LogFileNotFoundError(f"no files found in the log dir {path}")


def unexpected_file_type(path: str) -> UnexpectedFileTypeError:
    return UnexpectedFileTypeError(path)


def delta_version_not_continuous(versions: Iterable[int]) -> IllegalStateError:
    return IllegalStateError(f"Versions ({_format_list(versions)}) are not contiguous")


def no_first_delta_file() -> IllegalArgumentError:
    return IllegalArgumentError("did not get the first delta to compute snapshot")


def no_last_delta_file() -> IllegalArgumentError:
    return IllegalArgumentError("did not get the last delta to compute snapshot")


def missing_part_file(version: int) -> IllegalStateError:
    return IllegalStateError(
        f"Couldn't find all part files of the checkpoint version: {version}"
    )


def no_reproducible_history_found(path: str) -> DeltaStandaloneError:
    return DeltaStandaloneError(f"no reproducible commit found in {path}")


def no_history_found(path: str) -> DeltaStandaloneError:
    return DeltaStandaloneError(f"no commit found in {path}")


def version_not_exist(user_version: int, earliest: int, latest: int) -> DeltaStandaloneError:
    return DeltaStandaloneError(
        f"Cannot time travel Delta table to version {user_version}, "
        f"Available versions [{earliest}, {latest}]"
    )


def timestamp_earlier_than_table_first_commit(
    user_timestamp: int, commit_ts: int
) -> IllegalArgumentError:
    return IllegalArgumentError(
        f"The provided timestamp {user_timestamp} is before the earliest version available "
        f"to this table ({commit_ts}). Please use a timestamp greater than or equal to "
        f"{commit_ts}."
    )


def timestamp_later_than_table_last_commit(
    user_timestamp: int, commit_ts: int
) -> IllegalArgumentError:
    return IllegalArgumentError(
        f"The provided timestamp {user_timestamp} is after the latest version available "
        f"to this table ({commit_ts}). Please use a timestamp less than or equal to "
        f"{commit_ts}."
    )


def concurrent_delete_delete(file: str) -> ConcurrentModificationError:
    return ConcurrentModificationError(
        "This transaction attempted to delete one or more files that were deleted "
        f"(for example {file}) by a concurrent update. Please try the operation again."
    )


def concurrent_delete_read(file: str) -> ConcurrentModificationError:
    return ConcurrentModificationError(
        "This transaction attempted to read one or more files that were deleted "
        f"(for example {file}) by a concurrent update. Please try the operation again."
    )


def concurrent_append(partition: str) -> ConcurrentModificationError:
    return ConcurrentModificationError(
        f"Files were added to {partition} by a concurrent update. "
        "Please try the operation again."
    )


def concurrent_transaction() -> ConcurrentTransactionError:
    return ConcurrentTransactionError(
        "This error occurs when multiple streaming queries are using the same checkpoint "
        "to write into this table. Did you run multiple instances of the same streaming "
        "query at the same time?"
    )


def file_already_exists(file: str) -> FileAlreadyExistsError:
    return FileAlreadyExistsError(file)


def null_value_found_for_primitive_types(name: str) -> NullPointerError:
    return NullPointerError(
        f"Read a null value for field {name} which is a primitive type."
    )


def null_value_found_for_non_null_schema_field(name: str, schema: str) -> NullPointerError:
    return NullPointerError(
        f"Read a null value for field {name} which is a non-null type. yet schema "
        f"indicates that this field can't be null. Schema: {schema}"
    )


def file_not_found(msg: str) -> LogFileNotFoundError:
    return LogFileNotFoundError(msg)