import pytest

from deltalog import errors, paths


@pytest.mark.parametrize(
    "urlstr, want",
    [
        ("file:///path/to/", "file:///path/to/?create_dir=true&metadata=skip"),
        ("azblob://bucket/path/to/", "azblob://bucket?prefix=path/to/"),
        ("gs://bucket/path/to/", "gs://bucket?prefix=path/to/"),
    ],
    ids=["file path", "azblob path", "gs path"],
)
def test_convert_to_blob_url(urlstr, want):
    assert paths.convert_to_blob_url(urlstr) == want


def test_convert_bucket_without_prefix():
    assert paths.convert_to_blob_url("gs://bucket") == "gs://bucket"


def test_convert_s3_reads_environment(monkeypatch):
    monkeypatch.setenv("AWS_ENDPOINT_URL", "http://localhost:4566")
    monkeypatch.delenv("AWS_DISABLE_SSL", raising=False)
    monkeypatch.delenv("AWS_S3_FORCE_PATH_STYLE", raising=False)
    assert (
        paths.convert_to_blob_url("s3://golden/path/")
        == "s3://golden?endpoint=http://localhost:4566&prefix=path/"
    )


def test_convert_rejects_query_parameters():
    with pytest.raises(errors.IllegalArgumentError):
        paths.convert_to_blob_url("file:///path/to/?a=b")


def test_convert_rejects_unknown_scheme():
    with pytest.raises(errors.IllegalArgumentError):
        paths.convert_to_blob_url("ftp://host/path/")


@pytest.mark.parametrize(
    "base, path, want",
    [
        ("file:///a", "b.json", "file:///a/b.json"),
        ("file:///a", "b/c.json", "file:///a/b/c.json"),
    ],
)
def test_qualified(base, path, want):
    assert paths.qualified(base, path) == want


def test_qualified_keeps_absolute_path():
    assert paths.qualified("file:///a", "/x/y") == "/x/y"


def test_qualified_rejects_other_schemes():
    with pytest.raises(errors.IllegalArgumentError):
        paths.qualified("gs://bucket/a", "b.json")


@pytest.mark.parametrize(
    "base, path, want",
    [
        ("file:///a", "a/b/c", "a/b/c"),
        ("file:///a", "file:///a/b/c", "b/c"),
        ("file:///a", "file:///b/c", "file:///b/c"),
    ],
)
def test_relative(base, path, want):
    assert paths.relative(base, path) == want


def test_relative_without_scheme():
    assert paths.relative("/a", "/a/b/c") == "b/c"


@pytest.mark.parametrize("scheme", ["azblob", "gs", "s3"])
def test_relative_keeps_bucket_paths(scheme):
    path = f"{scheme}://bucket/x/y"
    assert paths.relative(f"{scheme}://bucket", path) == path


def test_relative_rejects_unknown_scheme():
    with pytest.raises(errors.IllegalArgumentError):
        paths.relative("ftp://host/a", "b")


@pytest.mark.parametrize(
    "path, scheme, want",
    [
        ("file:///a/b/c", "file", "file:///a/b/c"),
        ("/a/b/c", "file", "file:///a/b/c"),
        ("file:/a/b/c", "file", "file:///a/b/c"),
        ("./a/b/c", "file", "./a/b/c"),
    ],
    ids=[
        "local file path with schema",
        "local file path without schema",
        "local file path with non-standard schema",
        "local file relative path",
    ],
)
def test_canonicalize(path, scheme, want):
    assert paths.canonicalize(path, scheme) == want


@pytest.mark.parametrize("scheme", ["azblob", "gs", "s3"])
def test_canonicalize_bucket_paths_unchanged(scheme):
    assert paths.canonicalize("/a/b", scheme) == "/a/b"


def test_canonicalize_rejects_unknown_scheme():
    with pytest.raises(errors.IllegalArgumentError):
        paths.canonicalize("/a/b", "hdfs")


def test_canonicalize_is_idempotent():
    once = paths.canonicalize("/a/b/c", "file")
    assert paths.canonicalize(once, "file") == once