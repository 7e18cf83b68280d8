"""Replay of log actions into table state, and ordered reading of log files."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from .actions import (
    Action,
    AddFile,
    Metadata,
    Protocol,
    RemoveFile,
    SetTransaction,
    from_json,
)
from .errors import IllegalStateError, UnexpectedFileTypeError
from .log_segment import LogStore, _opened
from .paths import canonicalize


class InMemoryLogReplay:
    """Table state built by applying the actions of consecutive versions."""

    def __init__(self, min_file_retention_timestamp: int, storage_type: str) -> None:
        self.min_file_retention_timestamp = min_file_retention_timestamp
        self.storage_type = storage_type
        self.current_protocol: Protocol | None = None
        self.current_metadata: Metadata | None = None
        self.current_version = -1
        self.size_in_bytes = 0
        self.num_metadata = 0
        self.num_protocol = 0
        self._transactions: dict[str, SetTransaction] = {}
        self._active_files: dict[str, AddFile] = {}
        self._tombstones: dict[str, RemoveFile] = {}

    def set_transactions(self) -> list[SetTransaction]:
        """The latest transaction of every application."""
        return list(self._transactions.values())

    def active_files(self) -> list[AddFile]:
        """Files added and not removed since."""
        return list(self._active_files.values())

    def tombstones(self) -> list[RemoveFile]:
        """Removed files whose deletion is newer than the retention limit."""
        return [
            remove
            for remove in self._tombstones.values()
            if remove.deletion_time() > self.min_file_retention_timestamp
        ]

    def append(self, version: int, actions: Iterable[Action | None]) -> None:
        """Apply the actions of ``version``, which must follow the current version."""
        if self.current_version != -1 and version != self.current_version + 1:
            raise IllegalStateError(
                f"attempted to replay version {version}, but state is at "
                f"{self.current_version}"
            )
        self.current_version = version

        with _opened(actions) as items:
            for item in items:
                self._apply(item)

    def _apply(self, item: Action | None) -> None:
        if isinstance(item, SetTransaction):
            self._transactions[item.app_id] = item
        elif isinstance(item, Metadata):
            self.current_metadata = item
            self.num_metadata += 1
        elif isinstance(item, Protocol):
            self.current_protocol = item
            self.num_protocol += 1
        elif isinstance(item, AddFile):
            path = canonicalize(item.path, self.storage_type)
            added = item.copy(False, path)
            self._active_files[path] = added
            self._tombstones.pop(path, None)
            self.size_in_bytes += added.size
        elif isinstance(item, RemoveFile):
            path = canonicalize(item.path, self.storage_type)
            removed = item.copy(False, path)
            previous = self._active_files.pop(path, None)
            if previous is not None:
                self.size_in_bytes -= previous.size
            self._tombstones[path] = removed


@dataclass(frozen=True)
class ReplayItem:
    """An action read from the log and whether it came from a checkpoint."""

    action: Action | None
    from_checkpoint: bool


class CheckpointReader(ABC):
    """Reads the actions stored in a checkpoint file."""

    @abstractmethod
    def read(self, path: str) -> Iterator[Action]:
        """The actions of the checkpoint file at ``path``."""


class MemoryOptimizedLogReplay:
    """Streams the actions of a set of log files, newest file first."""

    def __init__(
        self,
        files: Sequence[str],
        log_store: LogStore,
        checkpoint_reader: CheckpointReader | None = None,
    ) -> None:
        self.files = list(files)
        self.log_store = log_store
        self.checkpoint_reader = checkpoint_reader

    def reverse_iter(self) -> Iterator[ReplayItem]:
        """Actions of the files in descending file name order, each file read in order."""
        for path in sorted(self.files, reverse=True):
            yield from self._read_file(path)

    def _read_file(self, path: str) -> Iterator[ReplayItem]:
        if path.endswith(".json"):
            with _opened(self.log_store.read(path)) as lines:
                for line in lines:
                    yield ReplayItem(from_json(line), False)
        elif path.endswith(".parquet"):
            if self.checkpoint_reader is None:
                raise IllegalStateError(f"no checkpoint reader to read {path}")
            with _opened(self.checkpoint_reader.read(path)) as actions:
                for action in actions:
                    yield ReplayItem(action, True)
        else:
            raise UnexpectedFileTypeError(f"unexpected log file path: {path}")