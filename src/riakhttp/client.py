"""Async Riak HTTP client: fetch, store, delete, index lookups, bucket properties."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError as PydanticValidationError

from riakhttp.classify import (
    Conflict,
    Done,
    Failure,
    Found,
    KeyList,
    NoValue,
    Operation,
    Outcome,
    Properties,
    classify,
)
from riakhttp.codec import CONTENT_TYPE_HEADER, encode_value
from riakhttp.config import RiakConfig
from riakhttp.conflicts import resolve_conflict
from riakhttp.errors import InvalidParametersError, OperationFailedError
from riakhttp.index_query import fetch_all
from riakhttp.resolvers import DEFAULT_RESOLVER, ConflictResolver
from riakhttp.transport import (
    ClientIdentity,
    Headers,
    HttpxTransport,
    Request,
    Response,
    Transport,
    default_headers,
)
from riakhttp.types import (
    JSON_MEDIA_TYPE,
    BucketProperties,
    IndexEntry,
    IndexRange,
    ServerInfo,
    Value,
)
from riakhttp.urls import bucket_properties_url, index_range_url, index_url, key_url

logger = logging.getLogger(__name__)


def _unexpected(operation: Operation, outcome: Outcome, subject: str) -> OperationFailedError:
    return OperationFailedError(
        operation.value, f"{subject} produced an unexpected outcome: {outcome!r}"
    )


class RiakClient:
    """Client for one Riak node's HTTP interface.

    Use as an async context manager, or call ``close()`` when done::

        async with RiakClient(RiakConfig(url="http://localhost:8098")) as client:
            albums = client.bucket("albums")
            await albums.store("abbey-road", Album(...))
    """

    def __init__(
        self,
        config: RiakConfig | None = None,
        *,
        transport: Transport | None = None,
        identity: ClientIdentity | None = None,
    ) -> None:
        self.config = config or RiakConfig()
        self.server = ServerInfo.from_url(self.config.url)
        self.identity = identity or ClientIdentity.generate()
        self._transport = transport or HttpxTransport(self.config)
        self._default_headers = default_headers(self.config, self.identity)

    async def __aenter__(self) -> RiakClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._transport.aclose()

    def bucket(self, name: str, resolver: ConflictResolver | None = None) -> Bucket:
        return Bucket(self, name, resolver or DEFAULT_RESOLVER)

    # -- Request execution --

    async def _execute(
        self,
        method: str,
        url: str,
        *,
        headers: Headers | None = None,
        body: bytes | None = None,
    ) -> Response:
        request = Request(
            method=method,
            url=url,
            headers=self._default_headers + list(headers or []),
            body=body,
        )
        return await self._transport.execute(request)

    # -- Key/value operations --

    async def fetch(
        self,
        bucket: str,
        key: str,
        resolver: ConflictResolver | None = None,
        *,
        server: ServerInfo | None = None,
    ) -> Value | None:
        """Fetch the value stored under ``key``; None when the key does not exist."""
        return await self._fetch(server or self.server, bucket, key, resolver or DEFAULT_RESOLVER)

    async def _fetch(
        self, server: ServerInfo, bucket: str, key: str, resolver: ConflictResolver
    ) -> Value | None:
        subject = f"Fetch for key '{key}' in bucket '{bucket}'"
        response = await self._execute("GET", key_url(server, bucket, key))
        outcome = classify(Operation.FETCH, response, subject=subject)
        if isinstance(outcome, Found):
            return outcome.value
        if isinstance(outcome, NoValue):
            return None
        if isinstance(outcome, Conflict):
            return await resolve_conflict(
                server,
                bucket,
                key,
                outcome,
                resolver,
                store=self._store,
                strict=self.config.strict_conflicts,
            )
        if isinstance(outcome, Failure):
            raise outcome.to_exception()
        raise _unexpected(Operation.FETCH, outcome, subject)

    async def store(
        self,
        bucket: str,
        key: str,
        value: Value,
        *,
        return_body: bool = False,
        resolver: ConflictResolver | None = None,
        server: ServerInfo | None = None,
    ) -> Value | None:
        """Store ``value`` under ``key``.

        Returns the stored version when ``return_body`` is set (or when a
        sibling conflict had to be resolved), otherwise None.
        """
        return await self._store(
            server or self.server, bucket, key, value, return_body, resolver or DEFAULT_RESOLVER
        )

    async def _store(
        self,
        server: ServerInfo,
        bucket: str,
        key: str,
        value: Value,
        return_body: bool,
        resolver: ConflictResolver,
    ) -> Value | None:
        subject = f"Store of value for key '{key}' in bucket '{bucket}'"
        body, content_type, headers = encode_value(value)
        response = await self._execute(
            "PUT",
            key_url(server, bucket, key, return_body=return_body),
            headers=[(CONTENT_TYPE_HEADER, content_type)] + headers,
            body=body,
        )
        outcome = classify(Operation.STORE, response, subject=subject)
        if isinstance(outcome, Found):
            return outcome.value
        if isinstance(outcome, NoValue):
            return None
        if isinstance(outcome, Conflict):
            return await resolve_conflict(
                server,
                bucket,
                key,
                outcome,
                resolver,
                store=self._store,
                strict=self.config.strict_conflicts,
            )
        if isinstance(outcome, Failure):
            raise outcome.to_exception()
        raise _unexpected(Operation.STORE, outcome, subject)

    async def delete(self, bucket: str, key: str, *, server: ServerInfo | None = None) -> None:
        """Delete ``key``. Deleting a key that does not exist succeeds."""
        subject = f"Delete for key '{key}' in bucket '{bucket}'"
        response = await self._execute("DELETE", key_url(server or self.server, bucket, key))
        outcome = classify(Operation.DELETE, response, subject=subject)
        if isinstance(outcome, Failure):
            raise outcome.to_exception()
        if not isinstance(outcome, Done):
            raise _unexpected(Operation.DELETE, outcome, subject)

    # -- Secondary index operations --

    async def fetch_by_index(
        self,
        bucket: str,
        index: IndexEntry | IndexRange,
        resolver: ConflictResolver | None = None,
        *,
        server: ServerInfo | None = None,
    ) -> list[Value]:
        """Fetch every value whose index matches ``index`` (an exact value or a range)."""
        target = server or self.server
        chosen = resolver or DEFAULT_RESOLVER
        if isinstance(index, IndexRange):
            url = index_range_url(target, bucket, index)
            subject = (
                f"Fetch for index '{index.full_name}' with range '{index.start}' to "
                f"'{index.end}' in bucket '{bucket}'"
            )
        else:
            url = index_url(target, bucket, index)
            subject = (
                f"Fetch for index '{index.full_name}' with value '{index.value}' "
                f"in bucket '{bucket}'"
            )
        response = await self._execute("GET", url)
        outcome = classify(Operation.FETCH_BY_INDEX, response, subject=subject)
        if isinstance(outcome, Failure):
            raise outcome.to_exception()
        if not isinstance(outcome, KeyList):
            raise _unexpected(Operation.FETCH_BY_INDEX, outcome, subject)
        logger.debug("%s matched %d key(s)", subject, len(outcome.keys))

        async def _fetch_key(key: str) -> Value | None:
            return await self._fetch(target, bucket, key, chosen)

        return await fetch_all(outcome.keys, _fetch_key, limit=self.config.max_concurrent_fetches)

    # -- Bucket properties --

    async def get_bucket_properties(
        self, bucket: str, *, server: ServerInfo | None = None
    ) -> BucketProperties:
        subject = f"Fetching properties of bucket '{bucket}'"
        response = await self._execute("GET", bucket_properties_url(server or self.server, bucket))
        outcome = classify(Operation.GET_BUCKET_PROPERTIES, response, subject=subject)
        if isinstance(outcome, Failure):
            raise outcome.to_exception()
        if not isinstance(outcome, Properties):
            raise _unexpected(Operation.GET_BUCKET_PROPERTIES, outcome, subject)
        return outcome.properties

    async def set_bucket_properties(
        self,
        bucket: str,
        properties: BucketProperties | Mapping[str, Any],
        *,
        server: ServerInfo | None = None,
    ) -> None:
        """Update the given bucket properties; properties not mentioned are left alone."""
        subject = f"Setting properties of bucket '{bucket}'"
        if not isinstance(properties, BucketProperties):
            try:
                properties = BucketProperties.model_validate(dict(properties))
            except PydanticValidationError as e:
                raise InvalidParametersError(
                    Operation.SET_BUCKET_PROPERTIES.value,
                    f"{subject} failed because the properties are invalid: {e}",
                ) from e
        body = json.dumps({"props": properties.model_dump(exclude_none=True)}).encode("utf-8")
        response = await self._execute(
            "PUT",
            bucket_properties_url(server or self.server, bucket),
            headers=[(CONTENT_TYPE_HEADER, JSON_MEDIA_TYPE)],
            body=body,
        )
        outcome = classify(Operation.SET_BUCKET_PROPERTIES, response, subject=subject)
        if isinstance(outcome, Failure):
            raise outcome.to_exception()
        if not isinstance(outcome, Done):
            raise _unexpected(Operation.SET_BUCKET_PROPERTIES, outcome, subject)


class Bucket:
    """A bucket bound to a client and a conflict resolution strategy."""

    def __init__(self, client: RiakClient, name: str, resolver: ConflictResolver) -> None:
        self.client = client
        self.name = name
        self.resolver = resolver

    def __repr__(self) -> str:
        return f"Bucket(name={self.name!r}, resolver={self.resolver!r})"

    async def fetch(self, key: str) -> Value | None:
        return await self.client.fetch(self.name, key, self.resolver)

    async def fetch_by_index(self, name: str, value: int | str) -> list[Value]:
        return await self.client.fetch_by_index(self.name, IndexEntry.of(name, value), self.resolver)

    async def fetch_by_index_range(
        self, name: str, start: int | str, end: int | str
    ) -> list[Value]:
        return await self.client.fetch_by_index(
            self.name, IndexRange.of(name, start, end), self.resolver
        )

    async def store(
        self,
        key: str,
        value: Any,
        *,
        return_body: bool = False,
        indexes: Iterable[IndexEntry] = (),
    ) -> Value | None:
        """Store a Value, bytes, str or JSON-serializable object under ``key``."""
        if isinstance(value, Value):
            to_store = value.with_indexes(value.indexes | frozenset(indexes))
        elif isinstance(value, (bytes, str)):
            to_store = Value.create(value, indexes=indexes)
        else:
            to_store = Value.from_model(value, indexes=indexes)
        return await self.client.store(
            self.name, key, to_store, return_body=return_body, resolver=self.resolver
        )

    async def delete(self, key: str) -> None:
        await self.client.delete(self.name, key)

    async def properties(self) -> BucketProperties:
        return await self.client.get_bucket_properties(self.name)

    async def set_properties(self, properties: BucketProperties | Mapping[str, Any]) -> None:
        await self.client.set_bucket_properties(self.name, properties)
