import json

import pytest

from deltalog.actions import (
    AddCDCFile,
    AddFile,
    CommitInfo,
    Format,
    JobInfo,
    Metadata,
    NotebookInfo,
    Protocol,
    RemoveFile,
    SetTransaction,
    SingleAction,
    check_metadata_protocol_properties,
    collect,
    collect_first,
    default_metadata,
    default_protocol,
    from_json,
    job_info_from_context,
    notebook_info_from_context,
    to_json_lines,
)
from deltalog.errors import DeltaAssertionError, IllegalArgumentError, JsonUnmarshalError


def _metadata(created: int) -> Metadata:
    return Metadata(
        id="1",
        name="2",
        description="3",
        format=Format(provider="4", options={"5": "5"}),
        schema_string="6",
        partition_columns=["7"],
        configuration={"8": "8"},
        created_time=created,
    )


def test_metadata_equal():
    first, second = _metadata(1), _metadata(1)
    assert first == second
    assert first.to_json() == second.to_json()
    decoded = json.loads(first.to_json())["metaData"]
    assert decoded["createdTime"] == 1
    assert decoded["format"] == {"provider": "4", "options": {"5": "5"}}


def test_metadata_differs_on_created_time():
    first, second = _metadata(1), _metadata(2)
    assert first == _metadata(1)
    assert not first == second


def test_add_file_json_omits_zero_values():
    add = AddFile(path="a", data_change=True, size=1)
    assert add.to_json() == '{"add":{"path":"a","dataChange":true,"size":1}}'


def test_empty_metadata_keeps_format():
    assert Metadata().to_json() == '{"metaData":{"format":{}}}'


def test_optional_zero_values_are_kept():
    info = CommitInfo(version=0, is_blind_append=False)
    assert info.to_json() == '{"commitInfo":{"version":0,"isBlindAppend":false}}'


def test_map_keys_are_sorted_and_html_escaped():
    add = AddFile(path="<a&b>", partition_values={"z": "1", "a": "2"})
    assert add.to_json() == (
        '{"add":{"path":"\\u003ca\\u0026b\\u003e","partitionValues":{"a":"2","z":"1"}}}'
    )
    assert from_json(add.to_json()) == add


@pytest.mark.parametrize(
    "action",
    [
        SetTransaction(app_id="app", version=3, last_updated=10),
        AddFile(path="p", data_change=True, partition_values={"k": "v"}, size=5,
                modification_time=7, stats="{}", tags={"t": "x"}),
        RemoveFile(path="p", data_change=True, deletion_timestamp=0,
                   extended_file_metadata=True, size=0),
        Metadata(id="id", format=Format(provider="parquet", options={}),
                 partition_columns=["a"], configuration={"c": "d"}, created_time=4),
        Protocol(min_reader_version=1, min_writer_version=2),
        AddCDCFile(path="c", size=2),
        CommitInfo(version=1, timestamp=5, operation="WRITE",
                   job=JobInfo(job_id="j"), notebook=NotebookInfo(notebook_id="n"),
                   read_version=-1, isolation_level="default", user_metadata="foo"),
    ],
)
def test_round_trip(action):
    decoded = from_json(action.to_json())
    assert type(decoded) is type(action)
    assert decoded.to_json() == action.to_json()


def test_from_json_reads_commit_info():
    line = json.dumps({"commitInfo": {
        "timestamp": 1540415658000, "userId": "user_0", "operation": "WRITE",
        "operationParameters": {"test": "test"},
        "job": {"jobId": "job_id_0", "jobName": "job_name_0", "runId": "run_id_0",
                "jobOwnerId": "job_owner_0", "triggerType": "trigger_type_0"},
        "notebook": {"notebookId": "notebook_id_0"},
        "readVersion": -1, "isBlindAppend": True,
    }})
    info = from_json(line)
    assert info.timestamp == 1540415658000
    assert info.user_id == "user_0"
    assert info.operation_parameters == {"test": "test"}
    assert info.job == JobInfo("job_id_0", "job_name_0", "run_id_0", "job_owner_0", "trigger_type_0")
    assert info.notebook == NotebookInfo("notebook_id_0")
    assert info.read_version == -1
    assert info.is_blind_append is True
    assert info.version is None


def test_unwrap_prefers_add():
    single = SingleAction(commit_info=CommitInfo(), add=AddFile(path="x"))
    assert single.unwrap() == AddFile(path="x")
    assert SingleAction().unwrap() is None


def test_from_json_null_and_empty():
    assert from_json("null") is None
    assert from_json("{}") is None


def test_from_json_matches_keys_case_insensitively():
    assert from_json('{"ADD":{"PATH":"p"}}') == AddFile(path="p")


def test_from_json_null_map_values_become_empty():
    action = from_json('{"add":{"path":"p","partitionValues":{"a":null}}}')
    assert action.partition_values == {"a": ""}


@pytest.mark.parametrize(
    "line",
    [
        "not json",
        "[1]",
        '{"add":{"path":1}}',
        '{"add":{"size":1.5}}',
        '{"add":{"dataChange":"yes"}}',
        '{"protocol":{"minReaderVersion":4294967296}}',
        '{"add":"x"}',
    ],
)
def test_from_json_rejects_bad_input(line):
    with pytest.raises(JsonUnmarshalError):
        from_json(line)


def test_wrap_places_action():
    remove = RemoveFile(path="r")
    assert remove.wrap() == SingleAction(remove=remove)
    assert SetTransaction(app_id="a").wrap().to_dict() == {"txn": {"appId": "a"}}


def test_add_file_remove():
    remove = AddFile(path="p").remove(timestamp=42, data_change=False)
    assert remove == RemoveFile(path="p", deletion_timestamp=42, data_change=False)


def test_add_file_remove_defaults():
    remove = AddFile(path="p").remove()
    assert remove.data_change is True
    assert remove.deletion_time() > 0


def test_add_file_copy_is_deep():
    original = AddFile(path="a", data_change=True, partition_values={"k": "v"})
    copied = original.copy(False, "b")
    copied.partition_values["k"] = "changed"
    assert original.partition_values == {"k": "v"}
    assert (copied.path, copied.data_change) == ("b", False)


def test_remove_file_copy_and_deletion_time():
    remove = RemoveFile(path="a", tags={"t": "1"})
    copied = remove.copy(True, "file:///a")
    assert copied.path == "file:///a"
    assert copied.data_change is True
    assert copied.tags == {"t": "1"}
    assert remove.deletion_time() == 0
    assert RemoveFile(deletion_timestamp=9).deletion_time() == 9


def test_commit_info_copies():
    info = CommitInfo(timestamp=1, operation_parameters={"a": "b"})
    stamped = info.with_timestamp(5)
    versioned = info.copy(3)
    assert (stamped.timestamp, info.timestamp) == (5, 1)
    assert versioned.version == 3
    assert info.version is None


def test_path_as_uri():
    uri = AddFile(path="file:///a/b").path_as_uri()
    assert (uri.scheme, uri.path) == ("file", "/a/b")
    with pytest.raises(IllegalArgumentError):
        AddFile(path="http://[bad").path_as_uri()


def test_collect_and_collect_first():
    actions = [CommitInfo(), AddFile(path="1"), RemoveFile(path="2"), AddFile(path="3")]
    assert collect(actions, AddFile) == [AddFile(path="1"), AddFile(path="3")]
    assert [a.path for a in collect(actions, (AddFile, RemoveFile))] == ["1", "2", "3"]
    assert collect_first(actions, RemoveFile) == RemoveFile(path="2")
    assert collect_first(actions, Protocol) is None


def test_to_json_lines():
    lines = to_json_lines([Protocol(1, 2), SetTransaction(app_id="x")])
    assert lines == [
        '{"protocol":{"minReaderVersion":1,"minWriterVersion":2}}',
        '{"txn":{"appId":"x"}}',
    ]


@pytest.mark.parametrize("prop", ["delta.minReaderVersion", "delta.minWriterVersion"])
def test_check_metadata_protocol_properties(prop):
    with pytest.raises(DeltaAssertionError):
        check_metadata_protocol_properties(Metadata(configuration={prop: "1"}), default_protocol())


def test_check_metadata_protocol_properties_accepts_other_keys():
    metadata = Metadata(configuration={"appendOnly": "true"})
    assert check_metadata_protocol_properties(metadata, None) is None
    assert metadata.configuration == {"appendOnly": "true"}


def test_defaults():
    assert default_protocol() == Protocol(min_reader_version=1, min_writer_version=2)
    meta = default_metadata()
    assert meta.format == Format(provider="parquet", options={})
    assert meta.configuration == {}
    assert len(meta.id) == 36
    assert meta.created_time > 0
    assert default_metadata().id != meta.id


def test_info_from_context():
    job = job_info_from_context({"jobId": "1", "jobName": "n", "jobTriggerType": "t"})
    assert job == JobInfo(job_id="1", job_name="n", trigger_type="t")
    assert job_info_from_context({"jobName": "n"}) is None
    assert notebook_info_from_context({"notebookId": "nb"}) == NotebookInfo("nb")
    assert notebook_info_from_context({}) is None