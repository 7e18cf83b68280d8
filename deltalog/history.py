"""Commit history of a table: commit info, earliest versions and time travel."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, replace

from .actions import CommitInfo, from_json
from .errors import (
    no_history_found,
    no_reproducible_history_found,
    timestamp_earlier_than_table_first_commit,
    timestamp_later_than_table_last_commit,
    version_not_exist,
)
from .filenames import (
    checkpoint_version,
    delta_file,
    delta_version,
    is_checkpoint_file,
    is_delta_file,
    num_checkpoint_parts,
)
from .log_segment import LogStore, _opened


@dataclass(frozen=True)
class Commit:
    """A commit version and the time in milliseconds its file was written."""

    version: int
    timestamp: int

    def with_timestamp(self, timestamp: int) -> Commit:
        return replace(self, timestamp=timestamp)


class HistoryManager:
    """Answers questions about the commits recorded in a log store."""

    def __init__(self, log_store: LogStore) -> None:
        self.log_store = log_store

    def commit_info(self, version: int) -> CommitInfo:
        """The commit info of ``version``, with its version set."""
        path = delta_file(self.log_store.root(), version)
        found: CommitInfo | None = None
        with _opened(self.log_store.read(path)) as lines:
            for line in lines:
                action = from_json(line)
                if isinstance(action, CommitInfo):
                    found = action
                    break
        if found is None:
            return CommitInfo(version=version)
        return found.copy(version)

    def check_version_exists(self, version: int, latest_version: int) -> None:
        """Raise unless ``version`` can be reconstructed."""
        earliest = self.earliest_reproducible_commit_version()
        if version < earliest or version > latest_version:
            raise version_not_exist(version, earliest, latest_version)

    def active_commit_at_time(
        self,
        timestamp: int,
        latest_version: int,
        can_return_last_commit: bool,
        must_be_recreatable: bool,
        can_return_earliest_commit: bool,
    ) -> Commit:
        """The last commit at or before ``timestamp``, subject to the given permissions."""
        if must_be_recreatable:
            earliest = self.earliest_reproducible_commit_version()
        else:
            earliest = self.earliest_delta_file()

        commits = self.commits(earliest, latest_version + 1)
        if not commits:
            raise no_history_found(self.log_store.root())
        commit = self.last_commit_before_timestamp(commits, timestamp) or commits[0]

        if commit.timestamp > timestamp and not can_return_earliest_commit:
            raise timestamp_earlier_than_table_first_commit(timestamp, commit.timestamp)
        if (
            commit.timestamp < timestamp
            and commit.version == latest_version
            and not can_return_last_commit
        ):
            raise timestamp_later_than_table_last_commit(timestamp, commit.timestamp)
        return commit

    def earliest_delta_file(self) -> int:
        """Version of the first delta file in the log."""
        root = self.log_store.root()
        with _opened(self.log_store.list_from(delta_file(root, 0))) as files:
            for meta in files:
                if is_delta_file(meta.path):
                    return delta_version(meta.path)
        raise no_history_found(root)

    def earliest_reproducible_commit_version(self) -> int:
        """The earliest version whose state can be rebuilt from the log."""
        root = self.log_store.root()
        part_counts: Counter[tuple[int, int]] = Counter()
        smallest_delta: int | None = None
        last_complete: int | None = None

        with _opened(self.log_store.list_from(delta_file(root, 0))) as files:
            for meta in files:
                path = meta.path
                if is_delta_file(path):
                    version = delta_version(path)
                    if version == 0:
                        return version
                    smallest_delta = version if smallest_delta is None else min(
                        version, smallest_delta
                    )
                    if last_complete is not None and last_complete >= smallest_delta:
                        return last_complete
                elif is_checkpoint_file(path):
                    cp_version = checkpoint_version(path)
                    parts = num_checkpoint_parts(path)
                    if parts is None:
                        last_complete = cp_version
                    else:
                        key = (cp_version, parts)
                        if parts == part_counts[key] + 1:
                            last_complete = cp_version
                        part_counts[key] += 1

        if smallest_delta is not None and last_complete is not None and (
            last_complete >= smallest_delta
        ):
            return last_complete
        if smallest_delta is not None:
            raise no_reproducible_history_found(root)
        raise no_history_found(root)

    def last_commit_before_timestamp(
        self, commits: Sequence[Commit], time_in_millis: int
    ) -> Commit | None:
        """The last of ``commits`` made at or before ``time_in_millis``."""
        return next((c for c in reversed(commits) if c.timestamp <= time_in_millis), None)

    def commits(self, start: int, end: int) -> list[Commit]:
        """Commits with versions from ``start`` up to but excluding ``end``."""
        result: list[Commit] = []
        root = self.log_store.root()
        with _opened(self.log_store.list_from(delta_file(root, start))) as files:
            for meta in files:
                if not is_delta_file(meta.path):
                    continue
                commit = Commit(delta_version(meta.path), meta.modification_time)
                if commit.version >= end:
                    break
                result.append(commit)
        return result