"""Helpers for streams of log lines."""

from __future__ import annotations

import io
from collections.abc import Callable, Iterable, Iterator
from typing import IO, Any, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def lines_from(stream: IO[Any]) -> Iterator[str]:
    """Yield the lines of ``stream`` without line endings, then close it.

    Both ``\\n`` and ``\\r\\n`` endings are removed.  The stream is closed when
    the generator is exhausted or closed.
    """
    try:
        for raw in stream:
            line = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
            if line.endswith("\n"):
                line = line[:-1]
            if line.endswith("\r"):
                line = line[:-1]
            yield line
    finally:
        stream.close()


class LineStream(io.RawIOBase):
    """A readable binary stream over an iterable of lines."""

    def __init__(self, lines: Iterable[str | bytes], append_newline: bool = False) -> None:
        super().__init__()
        self._source = lines
        self._lines = iter(lines)
        self._append_newline = append_newline
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        view = memoryview(buffer).cast("B")
        while not self._pending:
            try:
                line = next(self._lines)
            except StopIteration:
                return 0
            data = line if isinstance(line, bytes) else line.encode("utf-8")
            if self._append_newline:
                data += b"\n"
            self._pending = data
        count = min(len(view), len(self._pending))
        view[:count] = self._pending[:count]
        self._pending = self._pending[count:]
        return count

    def close(self) -> None:
        if self.closed:
            return
        try:
            closer = getattr(self._lines, "close", None) or getattr(self._source, "close", None)
            if closer is not None:
                closer()
        finally:
            super().close()


def as_reader(lines: Iterable[str | bytes], append_newline: bool = False) -> LineStream:
    """A binary stream holding the given lines, each followed by a newline if asked."""
    return LineStream(lines, append_newline)


def map_all(items: Iterable[T], mapper: Callable[[T], R]) -> list[R]:
    """Apply ``mapper`` to every item and collect the results."""
    return [mapper(item) for item in items]