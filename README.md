# deltalog

A pure-Python library for Delta Lake transaction logs. It models the actions
written to a `_delta_log` directory and works out table state and history from
the files in that directory. It needs nothing outside the standard library.

## Modules

- `deltalog.actions`: the log actions `AddFile`, `RemoveFile`, `AddCDCFile`,
  `Metadata`, `Protocol`, `SetTransaction` and `CommitInfo`, and the
  `SingleAction` envelope that wraps one of them. `from_json` decodes one log
  line, `Action.to_json` and `to_json_lines` encode actions, and `collect` /
  `collect_first` pick actions of a given type. `default_metadata` and
  `default_protocol` give the starting values of a new table.
- `deltalog.filenames`: builds and parses names of delta and checkpoint files,
  such as `delta_file`, `delta_version`, `is_checkpoint_file`,
  `num_checkpoint_parts` and `checkpoint_file_with_parts`.
- `deltalog.paths`: `convert_to_blob_url` turns a `file`, `azblob`, `gs` or
  `s3` location into a bucket URL; `relative` and `canonicalize` handle file
  paths for those schemes; `qualified` supports `file` locations only.
- `deltalog.log_segment`: `FileMeta`, the abstract `LogStore` interface
  (`root`, `read`, `list_from`, `write`) and `LogSegment`.
- `deltalog.checkpoint`: `CheckpointInstance` and `CheckpointMetaData`;
  `last_checkpoint` reads `_last_checkpoint` (retrying, then falling back to
  the directory listing) and `find_last_complete_checkpoint` finds the latest
  checkpoint whose parts are all present.
- `deltalog.history`: `HistoryManager` gives the commit info of a version, the
  earliest delta file, the earliest reproducible version and the commit active
  at a timestamp.
- `deltalog.replay`: `InMemoryLogReplay` applies actions version by version to
  get active files, tombstones and transactions; `MemoryOptimizedLogReplay`
  streams the actions of log files from newest to oldest.
- `deltalog.config`: `Config`, `TableConfig` and table properties such as
  `LOG_RETENTION`, `TOMBSTONE_RETENTION` and `CHECKPOINT_INTERVAL`;
  `parse_duration` reads values like `interval 1 week`.
- `deltalog.operations`: `OperationName`, `parse_name`, `Operation` and
  `IsolationLevel`.
- `deltalog.iterators`, `deltalog.clock`, `deltalog.lazy`: line stream
  helpers, `SystemClock`, and a compute-once `Lazy` value.
- `deltalog.errors`: every failure raised by the package is a subclass of
  `DeltaError`.

## Installing

```
pip install deltalog
```

## Examples

Decoding a log line and naming log files:

```python
from deltalog import actions, filenames

line = '{"add": {"path": "part-0.parquet", "size": 10, "dataChange": true}}'
add = actions.from_json(line)
print(add.path, add.size)          # part-0.parquet 10

print(filenames.delta_file("/table/_delta_log/", 3))
# /table/_delta_log/00000000000000000003.json
```

Replaying actions into table state:

```python
from deltalog.actions import AddFile
from deltalog.replay import InMemoryLogReplay

replay = InMemoryLogReplay(min_file_retention_timestamp=0, storage_type="file")
replay.append(0, [AddFile(path="/data/a.parquet", size=5)])
print([f.path for f in replay.active_files()])   # ['file:///data/a.parquet']
print(replay.size_in_bytes)                       # 5
```

Storage is reached only through `LogStore`. A minimal in-memory store is
enough to use the checkpoint and history functions:

```python
from deltalog.errors import LogFileNotFoundError, file_already_exists
from deltalog.history import HistoryManager
from deltalog.log_segment import FileMeta, LogStore


class MemoryStore(LogStore):
    def __init__(self):
        self.files = {}

    def root(self):
        return ""

    def read(self, path):
        if path not in self.files:
            raise LogFileNotFoundError(path)
        return iter(self.files[path])

    def list_from(self, path):
        return (FileMeta(p) for p in sorted(self.files) if p >= path)

    def write(self, path, lines, overwrite=False):
        if path in self.files and not overwrite:
            raise file_already_exists(path)
        self.files[path] = list(lines)


store = MemoryStore()
store.write("00000000000000000000.json", ['{"commitInfo":{"operation":"WRITE"}}'])
info = HistoryManager(store).commit_info(0)
print(info.version, info.operation)   # 0 WRITE
```

## What it does not do

- It ships no `LogStore` implementation: there is no built-in access to local
  directories or to cloud buckets. Callers supply the store.
- It does not read or write Parquet checkpoint files. `CheckpointReader` is an
  abstract interface; replaying a `.parquet` file needs an implementation of it.
- It does not build snapshots, start or commit transactions, or check commits
  for conflicts. The concurrency errors in `deltalog.errors` exist, but nothing
  in the package raises them on its own.
- It has no command-line interface.

## Running the tests

```
pip install -e ".[test]"
pytest
```