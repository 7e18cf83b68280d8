"""Files of the log directory, the store that holds them, and log segments."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FileMeta:
    """A file in the log store: its path, size and modification time in milliseconds."""

    path: str
    size: int = 0
    modification_time: int = 0


class LogStore(ABC):
    """Storage of the files of one transaction log directory."""

    @abstractmethod
    def root(self) -> str:
        """The log directory, ending with a slash or empty."""

    @abstractmethod
    def read(self, path: str) -> Iterator[str]:
        """The lines of the file at ``path``.

        Raises LogFileNotFoundError when the file does not exist.
        """

    @abstractmethod
    def list_from(self, path: str) -> Iterator[FileMeta]:
        """Files of the directory of ``path`` whose names sort at or after it, in order."""

    @abstractmethod
    def write(self, path: str, lines: Iterable[str], overwrite: bool = False) -> None:
        """Write ``lines`` to ``path``; raises FileAlreadyExistsError unless overwriting."""


@contextmanager
def _opened(items: Iterable[T]) -> Iterator[Iterator[T]]:
    """Iterate ``items`` and close the iterator afterwards when it can be closed."""
    iterator = iter(items)
    try:
        yield iterator
    finally:
        close = getattr(iterator, "close", None)
        if close is not None:
            close()


@dataclass(eq=False)
class LogSegment:
    """The delta and checkpoint files that make up one version of a table."""

    log_path: str
    version: int
    deltas: list[FileMeta] = field(default_factory=list)
    checkpoints: list[FileMeta] = field(default_factory=list)
    checkpoint_version: int | None = None
    last_commit_timestamp: int = 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LogSegment):
            return NotImplemented
        return (
            self.log_path == other.log_path
            and self.version == other.version
            and self.last_commit_timestamp // 1000 == other.last_commit_timestamp // 1000
            and (self.checkpoint_version or 0) == (other.checkpoint_version or 0)
            and list(self.deltas) == list(other.deltas)
            and list(self.checkpoints) == list(other.checkpoints)
        )

    __hash__ = None  # type: ignore[assignment]


def empty_log_segment(log_path: str) -> LogSegment:
    """The segment of a table that has no commits yet."""
    return LogSegment(log_path=log_path, version=-1)