"""URL construction for the Riak HTTP interface."""

from __future__ import annotations

from riakhttp.indexes import url_encode
from riakhttp.types import IndexEntry, IndexRange, ServerInfo


def bucket_url(server: ServerInfo, bucket: str) -> str:
    return f"{server.base_url}/buckets/{url_encode(bucket)}"


def key_url(server: ServerInfo, bucket: str, key: str, *, return_body: bool | None = None) -> str:
    url = f"{bucket_url(server, bucket)}/keys/{url_encode(key)}"
    if return_body is not None:
        url += f"?returnbody={'true' if return_body else 'false'}"
    return url


def index_url(server: ServerInfo, bucket: str, index: IndexEntry) -> str:
    value = url_encode(str(index.value))
    return f"{bucket_url(server, bucket)}/index/{url_encode(index.full_name)}/{value}"


def index_range_url(server: ServerInfo, bucket: str, index_range: IndexRange) -> str:
    start = url_encode(str(index_range.start))
    end = url_encode(str(index_range.end))
    name = url_encode(index_range.full_name)
    return f"{bucket_url(server, bucket)}/index/{name}/{start}/{end}"


def bucket_properties_url(server: ServerInfo, bucket: str) -> str:
    return f"{bucket_url(server, bucket)}/props"
