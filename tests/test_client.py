"""End-to-end client tests against a scripted in-memory transport."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from pydantic import BaseModel

from riakhttp import (
    BucketProperties,
    CallbackResolver,
    ConflictResolutionFailed,
    IndexEntry,
    IndexRange,
    InvalidParametersError,
    OperationFailedError,
    RiakClient,
    RiakConfig,
    SerializationError,
    UnsupportedMediaTypeError,
    Value,
)
from riakhttp.transport import ClientIdentity, Request, Response, find_header
from tests.conftest import (
    BASE,
    FakeTransport,
    multipart_response,
    part_headers,
    value_response,
)

pytestmark = pytest.mark.asyncio

EARLY = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
LATE = datetime(2024, 3, 2, 12, 0, tzinfo=timezone.utc)


class Track(BaseModel):
    number: int
    title: str


class Album(BaseModel):
    title: str
    artist: str
    released_in: int
    tracks: list[Track]


# -- fetch --


async def test_fetch_returns_value(client, transport: FakeTransport):
    transport.on("GET", "/buckets/albums/keys/abbey-road", value_response(b"hello", etag="e1"))
    value = await client.fetch("albums", "abbey-road")
    assert value is not None
    assert value.data == b"hello"
    assert value.etag == "e1"


async def test_fetch_missing_key_returns_none(client, transport: FakeTransport):
    transport.on("GET", "/buckets/albums/keys/nope", Response(404))
    assert await client.fetch("albums", "nope") is None


async def test_fetch_bad_request_raises(client, transport: FakeTransport):
    transport.on("GET", "/buckets/albums/keys/k", Response(400))
    with pytest.raises(InvalidParametersError):
        await client.fetch("albums", "k")


async def test_fetch_unexpected_status_raises(client, transport: FakeTransport):
    transport.on("GET", "/buckets/albums/keys/k", Response(503))
    with pytest.raises(OperationFailedError) as exc_info:
        await client.fetch("albums", "k")
    assert exc_info.value.status == 503
    assert "'k'" in str(exc_info.value)
    assert "'albums'" in str(exc_info.value)


async def test_keys_and_buckets_are_url_encoded(client, transport: FakeTransport):
    transport.on("GET", "/buckets/my%20bucket/keys/a%2Fb", Response(404))
    assert await client.fetch("my bucket", "a/b") is None
    assert transport.requests[0].url == f"{BASE}/buckets/my%20bucket/keys/a%2Fb"


async def test_every_request_accepts_multipart(client, transport: FakeTransport):
    transport.on("GET", "/buckets/b/keys/k", Response(404))
    await client.fetch("b", "k")
    request = transport.requests[0]
    assert find_header(request.headers, "Accept") == "*/*, multipart/mixed"
    assert find_header(request.headers, "X-Riak-ClientId") is None


async def test_client_id_header_when_enabled(transport: FakeTransport):
    client = RiakClient(
        RiakConfig(url=BASE, add_client_id_header=True),
        transport=transport,
        identity=ClientIdentity("client-42"),
    )
    transport.on("GET", "/buckets/b/keys/k", Response(404))
    transport.on("DELETE", "/buckets/b/keys/k", Response(204))
    await client.fetch("b", "k")
    await client.delete("b", "k")
    assert [find_header(r.headers, "X-Riak-ClientId") for r in transport.requests] == [
        "client-42",
        "client-42",
    ]


# -- conflicts --


def _siblings_response() -> Response:
    return multipart_response(
        [
            (b"old", part_headers(etag="e1", last_modified=EARLY)),
            (b"new", part_headers(etag="e2", last_modified=LATE)),
            (b"broken", part_headers(etag=None)),
        ],
        vclock="vc-siblings",
    )


async def test_fetch_conflict_resolves_and_stores_winner(client, transport: FakeTransport):
    transport.on("GET", "/buckets/b/keys/k", _siblings_response())
    transport.on(
        "PUT",
        "/buckets/b/keys/k",
        value_response(b"new", vclock="vc-resolved", etag="e3", last_modified=LATE),
    )

    value = await client.fetch("b", "k")

    assert value is not None
    assert value.data == b"new"
    assert value.vector_clock == "vc-resolved"
    (put,) = transport.sent("PUT")
    assert put.url == f"{BASE}/buckets/b/keys/k?returnbody=true"
    assert put.body == b"new"
    assert find_header(put.headers, "X-Riak-Vclock") == "vc-siblings"


async def test_fetch_conflict_uses_caller_strategy(client, transport: FakeTransport):
    transport.on("GET", "/buckets/b/keys/k", _siblings_response())
    transport.handle(
        "PUT",
        "/buckets/b/keys/k",
        lambda req: value_response(req.body or b"", vclock="vc-2", etag="e9"),
    )
    seen: list[int] = []

    def oldest(values: frozenset[Value]) -> Value:
        seen.append(len(values))
        return min(values, key=lambda v: v.last_modified)

    value = await client.fetch("b", "k", CallbackResolver(oldest))
    assert seen == [2]
    assert value is not None and value.data == b"old"


async def test_unparseable_conflict_raises(client, transport: FakeTransport):
    transport.on(
        "GET",
        "/buckets/b/keys/k",
        Response(300, headers=[("Content-Type", "multipart/mixed")], body=b"junk"),
    )
    with pytest.raises(ConflictResolutionFailed):
        await client.fetch("b", "k")
    assert transport.sent("PUT") == []


async def test_store_conflict_is_resolved(client, transport: FakeTransport):
    transport.on(
        "PUT",
        "/buckets/b/keys/k",
        _siblings_response(),
        value_response(b"new", vclock="vc-resolved", etag="e3"),
    )
    value = await client.store("b", "k", Value.create("mine"))
    assert value is not None and value.data == b"new"
    first, second = transport.sent("PUT")
    assert first.url.endswith("?returnbody=false")
    assert second.url.endswith("?returnbody=true")


# -- store --


async def test_store_sends_body_and_headers(client, transport: FakeTransport):
    transport.on("PUT", "/buckets/b/keys/k", Response(204))
    value = Value(
        data=b'{"x": 1}',
        vector_clock="vc1",
        etag="e1",
        indexes=frozenset({IndexEntry.int_("year", 1969), IndexEntry.bin("artist", "The Beatles")}),
    ).with_data(b'{"x": 2}')

    assert await client.store("b", "k", value) is None

    (put,) = transport.sent("PUT")
    assert put.url == f"{BASE}/buckets/b/keys/k?returnbody=false"
    assert put.body == b'{"x": 2}'
    assert find_header(put.headers, "Content-Type") == "application/octet-stream"
    assert find_header(put.headers, "X-Riak-Vclock") == "vc1"
    assert find_header(put.headers, "ETag") == "e1"
    assert find_header(put.headers, "x-riak-index-year_int") == "1969"
    assert find_header(put.headers, "x-riak-index-artist_bin") == "The%20Beatles"


async def test_store_new_value_omits_causality_headers(client, transport: FakeTransport):
    transport.on("PUT", "/buckets/b/keys/k", Response(204))
    await client.store("b", "k", Value.create("fresh"))
    (put,) = transport.sent("PUT")
    assert find_header(put.headers, "X-Riak-Vclock") is None
    assert find_header(put.headers, "ETag") is None
    assert find_header(put.headers, "Content-Type") == "text/plain; charset=utf-8"


async def test_store_with_return_body(client, transport: FakeTransport):
    transport.on("PUT", "/buckets/b/keys/k", value_response(b"fresh", etag="e7"))
    value = await client.store("b", "k", Value.create("fresh"), return_body=True)
    assert value is not None and value.etag == "e7"
    assert transport.requests[0].url.endswith("?returnbody=true")


async def test_store_bad_request_raises(client, transport: FakeTransport):
    transport.on("PUT", "/buckets/b/keys/k", Response(400))
    with pytest.raises(InvalidParametersError):
        await client.store("b", "k", Value.create("x"))


# -- delete --


@pytest.mark.parametrize("status", [204, 404])
async def test_delete_is_idempotent(client, transport: FakeTransport, status):
    transport.on("DELETE", "/buckets/b/keys/k", Response(status))
    await client.delete("b", "k")


async def test_delete_bad_request_raises(client, transport: FakeTransport):
    transport.on("DELETE", "/buckets/b/keys/k", Response(400))
    with pytest.raises(InvalidParametersError):
        await client.delete("b", "k")


async def test_delete_unexpected_status_raises(client, transport: FakeTransport):
    transport.on("DELETE", "/buckets/b/keys/k", Response(500))
    with pytest.raises(OperationFailedError):
        await client.delete("b", "k")


# -- secondary indexes --


def _keys(*keys: str) -> Response:
    return Response(200, body=json.dumps({"keys": list(keys)}).encode())


async def test_fetch_by_index_skips_vanished_keys(client, transport: FakeTransport):
    transport.on("GET", "/buckets/b/index/artist_bin/Queen", _keys("a", "b", "c"))
    transport.on("GET", "/buckets/b/keys/a", value_response(b"A", etag="ea"))
    transport.on("GET", "/buckets/b/keys/b", Response(404))
    transport.on("GET", "/buckets/b/keys/c", value_response(b"C", etag="ec"))

    values = await client.fetch_by_index("b", IndexEntry.bin("artist", "Queen"))

    assert len(values) == 2
    assert {v.data for v in values} == {b"A", b"C"}


async def test_fetch_by_index_empty_issues_no_fetch(client, transport: FakeTransport):
    transport.on("GET", "/buckets/b/index/year_int/1969", _keys())
    assert await client.fetch_by_index("b", IndexEntry.int_("year", 1969)) == []
    assert len(transport.requests) == 1


async def test_fetch_by_index_range(client, transport: FakeTransport):
    transport.on("GET", "/buckets/b/index/year_int/1960/1969", _keys("a"))
    transport.on("GET", "/buckets/b/keys/a", value_response(b"A"))
    values = await client.fetch_by_index("b", IndexRange.of("year", 1960, 1969))
    assert [v.data for v in values] == [b"A"]


async def test_fetch_by_index_resolves_conflicting_keys(client, transport: FakeTransport):
    transport.on("GET", "/buckets/b/index/year_int/1969", _keys("k"))
    transport.on("GET", "/buckets/b/keys/k", _siblings_response())
    transport.on("PUT", "/buckets/b/keys/k", value_response(b"new", etag="e3"))
    values = await client.fetch_by_index("b", IndexEntry.int_("year", 1969))
    assert [v.data for v in values] == [b"new"]


async def test_fetch_by_index_bad_request_raises(client, transport: FakeTransport):
    transport.on("GET", "/buckets/b/index/year_int/1969", Response(400))
    with pytest.raises(InvalidParametersError) as exc_info:
        await client.fetch_by_index("b", IndexEntry.int_("year", 1969))
    assert "year_int" in str(exc_info.value)


# -- bucket properties --


async def test_get_bucket_properties(client, transport: FakeTransport):
    body = json.dumps({"props": {"n_val": 3, "allow_mult": True, "young_vclock": 20}}).encode()
    transport.on("GET", "/buckets/b/props", Response(200, body=body))
    props = await client.get_bucket_properties("b")
    assert props.n_val == 3
    assert props.allow_mult is True
    assert props.model_extra == {"young_vclock": 20}


async def test_get_bucket_properties_unparseable(client, transport: FakeTransport):
    transport.on("GET", "/buckets/b/props", Response(200, body=b"<html>"))
    with pytest.raises(OperationFailedError):
        await client.get_bucket_properties("b")


async def test_set_bucket_properties_sends_only_given_fields(client, transport: FakeTransport):
    transport.on("PUT", "/buckets/b/props", Response(204))
    await client.set_bucket_properties("b", {"allow_mult": True, "big_vclock": 50})
    (put,) = transport.sent("PUT")
    assert find_header(put.headers, "Content-Type") == "application/json"
    assert json.loads(put.body or b"") == {"props": {"allow_mult": True, "big_vclock": 50}}


async def test_set_bucket_properties_model(client, transport: FakeTransport):
    transport.on("PUT", "/buckets/b/props", Response(204))
    await client.set_bucket_properties("b", BucketProperties(n_val=5))
    (put,) = transport.sent("PUT")
    assert json.loads(put.body or b"") == {"props": {"n_val": 5}}


@pytest.mark.parametrize(
    "status, error", [(400, InvalidParametersError), (415, UnsupportedMediaTypeError)]
)
async def test_set_bucket_properties_errors(client, transport: FakeTransport, status, error):
    transport.on("PUT", "/buckets/b/props", Response(status))
    with pytest.raises(error):
        await client.set_bucket_properties("b", {"n_val": 3})


async def test_set_bucket_properties_rejects_invalid_payload(client, transport: FakeTransport):
    with pytest.raises(InvalidParametersError) as exc_info:
        await client.set_bucket_properties("b", {"n_val": "abc"})
    assert exc_info.value.operation == "set_bucket_properties"
    assert "n_val" in str(exc_info.value)
    assert transport.requests == []


# -- Bucket wrapper --


async def test_bucket_stores_and_loads_models(client, transport: FakeTransport):
    stored: dict[str, Request] = {}

    def _put(request: Request) -> Response:
        stored["request"] = request
        return value_response(
            request.body or b"", content_type="application/json", etag="e1"
        )

    transport.handle("PUT", "/buckets/albums/keys/abbey-road", _put)
    albums = client.bucket("albums")
    album = Album(
        title="Abbey Road",
        artist="The Beatles",
        released_in=1969,
        tracks=[Track(number=1, title="Come Together")],
    )

    value = await albums.store(
        "abbey-road",
        album,
        return_body=True,
        indexes=[IndexEntry.int_("year", 1969)],
    )

    assert value is not None
    assert value.as_model(Album) == album
    request = stored["request"]
    assert find_header(request.headers, "Content-Type") == "application/json; charset=utf-8"
    assert find_header(request.headers, "x-riak-index-year_int") == "1969"


async def test_bucket_store_unserializable_object(client, transport: FakeTransport):
    class Opaque:
        pass

    with pytest.raises(SerializationError):
        await client.bucket("b").store("k", Opaque())
    assert transport.requests == []


async def test_bucket_index_helpers(client, transport: FakeTransport):
    transport.on("GET", "/buckets/albums/index/artist_bin/Queen", _keys())
    transport.on("GET", "/buckets/albums/index/year_int/1970/1979", _keys())
    albums = client.bucket("albums")
    assert await albums.fetch_by_index("artist", "Queen") == []
    assert await albums.fetch_by_index_range("year", 1970, 1979) == []


async def test_client_context_manager_closes_transport(transport: FakeTransport):
    async with RiakClient(RiakConfig(url=BASE), transport=transport) as client:
        assert client.server.base_url == BASE
    assert transport.closed
