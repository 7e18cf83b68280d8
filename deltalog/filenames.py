"""Names of the files in a Delta transaction log directory."""

from __future__ import annotations

import re

from .errors import unexpected_file_type

_CHECKPOINT_FILE_PATTERN = re.compile(r"\d+\.checkpoint(\.\d+\.\d+)?\.parquet")
_DELTA_FILE_PATTERN = re.compile(r"\d+\.json")
_INTEGER = re.compile(r"[+-]?[0-9]+\Z")


def _base(path: str) -> str:
    """Last element of a slash separated path, ignoring trailing slashes."""
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _parse_int(text: str, bits: int = 64) -> int:
    """Parse a decimal integer, giving 0 on bad input and clamping to the bit width."""
    if not _INTEGER.match(text):
        return 0
    limit = 1 << (bits - 1)
    return max(-limit, min(limit - 1, int(text)))


def delta_file(path: str, version: int) -> str:
    """Path of the delta file for ``version`` under the log directory ``path``."""
    return f"{path}{version:020d}.json"


def checkpoint_version(path: str) -> int:
    """Version encoded in a checkpoint file name, or 0 if there is none."""
    return _parse_int(_base(path).split(".")[0])


def is_checkpoint_file(path: str) -> bool:
    return _CHECKPOINT_FILE_PATTERN.search(_base(path)) is not None


def delta_version(path: str) -> int:
    """Version encoded in a delta file name, or 0 if there is none."""
    name = _base(path)
    if name.endswith(".json"):
        name = name[: -len(".json")]
    return _parse_int(name)


def is_delta_file(path: str) -> bool:
    return _DELTA_FILE_PATTERN.search(_base(path)) is not None


def get_file_version(path: str) -> int:
    """Version of a checkpoint or delta file; raises for any other file."""
    if is_checkpoint_file(path):
        return checkpoint_version(path)
    if is_delta_file(path):
        return delta_version(path)
    raise unexpected_file_type(path)


def num_checkpoint_parts(path: str) -> int | None:
    """Number of parts of a multi-part checkpoint, or None for a single file."""
    segments = _base(path).split(".")
    if len(segments) != 5:
        return None
    return _parse_int(segments[3], bits=32)


def checkpoint_prefix(path: str, version: int) -> str:
    return f"{path}{version:020d}.checkpoint"


def checkpoint_file_singular(directory: str, version: int) -> str:
    return f"{directory}{version:020d}.checkpoint.parquet"


def checkpoint_file_with_parts(directory: str, version: int, num_parts: int) -> list[str]:
    return [
        f"{directory}{version:020d}.checkpoint.{part:010d}.{num_parts:010d}.parquet"
        for part in range(1, num_parts + 1)
    ]