"""Checkpoints of the transaction log and the ``_last_checkpoint`` file."""

from __future__ import annotations

import functools
import json
import logging
import time
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .errors import JsonUnmarshalError, LogFileNotFoundError
from .filenames import (
    checkpoint_file_singular,
    checkpoint_file_with_parts,
    checkpoint_prefix,
    checkpoint_version,
    is_checkpoint_file,
    num_checkpoint_parts,
)
from .log_segment import LogStore, _opened

LAST_CHECKPOINT_PATH = "_last_checkpoint"

_ATTEMPTS = 3
_RETRY_DELAY_SECONDS = 1.0
_LISTING_WINDOW = 1000

_log = logging.getLogger(__name__)


@dataclass
class CheckpointMetaData:
    """Content of the ``_last_checkpoint`` file."""

    version: int = 0
    size: int = 0
    parts: int | None = None

    def to_json(self) -> str:
        data: dict[str, Any] = {}
        if self.version:
            data["version"] = self.version
        if self.size:
            data["size"] = self.size
        if self.parts is not None:
            data["parts"] = self.parts
        return json.dumps(data, separators=(",", ":"))

    @staticmethod
    def from_json(text: str | bytes) -> CheckpointMetaData:
        try:
            data = json.loads(text)
        except (ValueError, TypeError) as exc:
            raise JsonUnmarshalError(str(exc)) from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise JsonUnmarshalError(f"cannot decode {data!r} into checkpoint metadata")

        def read_int(key: str) -> int | None:
            raw = data.get(key)
            if raw is None:
                return None
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise JsonUnmarshalError(f"cannot decode {raw!r} into integer field {key}")
            return raw

        return CheckpointMetaData(
            version=read_int("version") or 0,
            size=read_int("size") or 0,
            parts=read_int("parts"),
        )


def _parts_or_one(parts: int | None) -> int:
    return 1 if parts is None else parts


@dataclass(frozen=True)
class CheckpointInstance:
    """A checkpoint version, single-file (``num_parts`` None) or in parts."""

    version: int
    num_parts: int | None = None

    def compare(self, other: CheckpointInstance) -> int:
        """Negative, zero or positive as this checkpoint sorts before, with or after ``other``."""
        if self.version == other.version:
            return _parts_or_one(self.num_parts) - _parts_or_one(other.num_parts)
        return -1 if self.version < other.version else 1

    def is_earlier_than(self, other: CheckpointInstance) -> bool:
        if other.compare(MAX_INSTANCE) == 0:
            return True
        if self.num_parts is None:
            return self.version <= other.version
        return self.version < other.version or (
            self.version == other.version
            and self.num_parts < _parts_or_one(other.num_parts)
        )

    def is_not_later_than(self, other: CheckpointInstance) -> bool:
        if other.compare(MAX_INSTANCE) == 0:
            return True
        return self.version <= other.version

    def corresponding_files(self, directory: str) -> list[str]:
        """Paths of the files of this checkpoint under ``directory``."""
        if self.num_parts is None:
            return [checkpoint_file_singular(directory, self.version)]
        return checkpoint_file_with_parts(directory, self.version, self.num_parts)


MAX_INSTANCE = CheckpointInstance(version=-1, num_parts=None)


def from_path(path: str) -> CheckpointInstance:
    """The checkpoint a checkpoint file belongs to."""
    return CheckpointInstance(checkpoint_version(path), num_checkpoint_parts(path))


def from_metadata(metadata: CheckpointMetaData) -> CheckpointInstance:
    return CheckpointInstance(metadata.version, metadata.parts)


def last_checkpoint(store: LogStore) -> CheckpointMetaData | None:
    """The latest checkpoint of the log, or None when there is none."""
    return load_metadata_from_file(store)


def load_metadata_from_file(store: LogStore) -> CheckpointMetaData | None:
    """Read ``_last_checkpoint``; after repeated failures, search the listing instead."""
    for attempt in range(_ATTEMPTS):
        if attempt:
            time.sleep(_RETRY_DELAY_SECONDS)
        try:
            with _opened(store.read(LAST_CHECKPOINT_PATH)) as lines:
                line = next(lines, None)
        except LogFileNotFoundError:
            return None
        except Exception as exc:
            _log.warning("failed to read last checkpoint, trying again: %s", exc)
            continue
        if line is None:
            _log.warning("last checkpoint file is empty, trying again")
            continue
        try:
            return CheckpointMetaData.from_json(line)
        except JsonUnmarshalError:
            _log.warning("failed to decode last checkpoint, trying again")
            continue

    # A partial file, e.g. from a non-atomic overwrite: recover from the listing.
    found = find_last_complete_checkpoint(store, MAX_INSTANCE)
    if found is None:
        return None
    return CheckpointMetaData(version=found.version, size=-1, parts=found.num_parts)


def find_last_complete_checkpoint(
    store: LogStore, cv: CheckpointInstance
) -> CheckpointInstance | None:
    """The latest complete checkpoint not later than ``cv``, searching backwards."""
    cur = max(cv.version, 0)
    while cur >= 0:
        checkpoints: list[CheckpointInstance] = []
        start = checkpoint_prefix(store.root(), max(0, cur - _LISTING_WINDOW))
        with _opened(store.list_from(start)) as files:
            for meta in files:
                if not is_checkpoint_file(meta.path):
                    continue
                candidate = from_path(meta.path)
                if cur == 0 or candidate.version <= cur or candidate.is_earlier_than(cv):
                    checkpoints.append(candidate)
                else:
                    break
        latest = latest_complete_checkpoint(checkpoints, cv)
        if latest is not None:
            return latest
        cur -= _LISTING_WINDOW
    return None


def latest_complete_checkpoint(
    instances: Iterable[CheckpointInstance], not_later_than: CheckpointInstance
) -> CheckpointInstance | None:
    """The latest checkpoint all of whose parts are among ``instances``."""
    counts: Counter[tuple[int, int, bool]] = Counter(
        (i.version, _parts_or_one(i.num_parts), i.num_parts is not None)
        for i in instances
        if i.is_not_later_than(not_later_than)
    )
    complete = [
        CheckpointInstance(version, parts if has_parts else None)
        for (version, parts, has_parts), count in counts.items()
        if parts == count
    ]
    if not complete:
        return None
    complete.sort(key=functools.cmp_to_key(lambda a, b: a.compare(b)))
    return complete[-1]