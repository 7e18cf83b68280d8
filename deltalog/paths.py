"""Conversion of table locations to blob URLs and resolution of file paths."""

from __future__ import annotations

import os
import posixpath
from urllib.parse import SplitResult, unquote_plus, urlencode, urlsplit

from .errors import IllegalArgumentError, unsupported_file_system

_BUCKET_SCHEMES = ("azblob", "gs", "s3")
_S3_ENVIRONMENT = (
    ("AWS_ENDPOINT_URL", "endpoint"),
    ("AWS_DISABLE_SSL", "disableSSL"),
    ("AWS_S3_FORCE_PATH_STYLE", "s3ForcePathStyle"),
)


def _split(url: str) -> SplitResult:
    try:
        return urlsplit(url)
    except ValueError as exc:
        raise IllegalArgumentError(f"invalid url {url}: {exc}") from exc


def _has_query_params(query: str) -> bool:
    return any(segment and ";" not in segment for segment in query.split("&"))


def _build(scheme: str, netloc: str, path: str, query: str, fragment: str) -> str:
    result = f"{scheme}:" if scheme else ""
    if netloc or path:
        if path and netloc and not path.startswith("/"):
            path = "/" + path
        result += "//" + netloc + path
    if query:
        result += "?" + query
    if fragment:
        result += "#" + fragment
    return result


def convert_to_blob_url(urlstr: str) -> str:
    """Turn a table location into the URL of the bucket holding it.

    Local paths get directory creation and metadata skipping switched on;
    bucket schemes move the path below the bucket into a ``prefix`` parameter.
    """
    parts = _split(urlstr)
    scheme = parts.scheme
    if _has_query_params(parts.query) and scheme != "s3":
        raise IllegalArgumentError("path url cannot have query parameters!")

    if scheme == "file":
        query = urlencode(sorted({"metadata": "skip", "create_dir": "true"}.items()))
        return _build(scheme, parts.netloc, parts.path, query, parts.fragment)

    if scheme in _BUCKET_SCHEMES:
        bucket, found, prefix = parts.path.partition("/")
        params: dict[str, str] = {}
        if found:
            params["prefix"] = prefix
        if scheme == "s3":
            for variable, key in _S3_ENVIRONMENT:
                value = os.environ.get(variable)
                if value is not None:
                    params[key] = value
        query = unquote_plus(urlencode(sorted(params.items())))
        return _build(scheme, parts.netloc, bucket, query, parts.fragment)

    raise IllegalArgumentError(f"not supported scheme {scheme}")


def qualified(base: str, path: str) -> str:
    """Fully qualified form of ``path`` relative to the table location ``base``."""
    scheme = _split(base).scheme
    if scheme == "file":
        return _unix_qualified(base, path)
    raise IllegalArgumentError(f"unsupported scheme {scheme}")


def relative(base: str, path: str) -> str:
    """Form of ``path`` to record in the log of the table at ``base``."""
    scheme = _split(base).scheme
    if scheme == "file" or (not scheme and base.startswith("/")):
        return _unix_relative(base, path)
    if scheme in _BUCKET_SCHEMES:
        return path
    raise IllegalArgumentError(f"unsupported scheme {scheme}")


def _unix_qualified(base: str, path: str) -> str:
    if posixpath.isabs(path):
        return path
    joined = posixpath.normpath(posixpath.join(base, path))
    return joined.replace("file:", "file://", 1)


def _strip_file_scheme(text: str) -> str:
    return text[len("file://"):] if text.startswith("file://") else text


def _unix_relative(base: str, path: str) -> str:
    base = _strip_file_scheme(base)
    path = _strip_file_scheme(path)
    if not posixpath.isabs(path):
        return path
    if not posixpath.isabs(base):
        raise IllegalArgumentError(f"can't make {path} relative to {base}")
    rel = posixpath.relpath(path, base)
    if rel.startswith("../"):
        return "file://" + path
    return rel


def canonicalize(path: str, scheme: str) -> str:
    """Canonical form of a file path for the given storage scheme."""
    if scheme == "file":
        return _unix_canonicalize(path)
    if scheme in _BUCKET_SCHEMES:
        return path
    raise unsupported_file_system(f"unsupported schema to canonicalize: {scheme}")


def _unix_canonicalize(path: str) -> str:
    if path.startswith("file:///"):
        return path
    if path.startswith("file:/"):
        return "file:///" + path[len("file:/"):]
    if posixpath.isabs(path):
        return "file://" + path
    return path