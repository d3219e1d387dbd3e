"""Shared test fixtures for riakhttp tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import pytest

from riakhttp import RiakClient, RiakConfig
from riakhttp.codec import format_http_date
from riakhttp.indexes import encode_index
from riakhttp.transport import ClientIdentity, Headers, Request, Response
from riakhttp.types import IndexEntry

BASE = "http://riak.test:8098"

Handler = Callable[[Request], Response]


class FakeTransport:
    """In-memory transport: routes requests to handlers and records them."""

    def __init__(self) -> None:
        self.requests: list[Request] = []
        self.routes: dict[tuple[str, str], list[Response] | Handler] = {}
        self.closed = False

    def on(self, method: str, path: str, *responses: Response) -> None:
        """Answer ``method path`` with ``responses`` in order (the last one repeats)."""
        self.routes[(method, BASE + path)] = list(responses)

    def handle(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, BASE + path)] = handler

    def sent(self, method: str | None = None) -> list[Request]:
        return [r for r in self.requests if method is None or r.method == method]

    async def execute(self, request: Request) -> Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url))
        if route is None:
            route = self.routes.get((request.method, request.url.split("?")[0]))
        if route is None:
            return Response(status=599)
        if callable(route):
            return route(request)
        if len(route) > 1:
            return route.pop(0)
        return route[0]

    async def aclose(self) -> None:
        self.closed = True


def value_headers(
    *,
    vclock: str | None = "a85hYGBgzGDKBVIcR4M2cgczH7HPYEpkzGNlsP2VeYYvCwA=",
    etag: str | None = '"etag-1"',
    last_modified: datetime | None = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
    content_type: str = "text/plain; charset=utf-8",
    indexes: tuple[IndexEntry, ...] = (),
) -> Headers:
    headers: Headers = [("Content-Type", content_type)]
    if vclock is not None:
        headers.append(("X-Riak-Vclock", vclock))
    if etag is not None:
        headers.append(("ETag", etag))
    if last_modified is not None:
        headers.append(("Last-Modified", format_http_date(last_modified)))
    headers.extend(encode_index(entry) for entry in indexes)
    return headers


def value_response(body: bytes = b"hello", status: int = 200, **kwargs) -> Response:
    return Response(status=status, headers=value_headers(**kwargs), body=body)


def multipart_response(
    parts: list[tuple[bytes, Headers]],
    *,
    vclock: str | None = "a85hYGBgzGDKBVIcR4M2cgczH7HPYEpkzGNlsP2VeYYvCwA=",
    boundary: str = "YinLMzyUR9feB17okMytgKsylvh",
) -> Response:
    """Build a 300 Multiple Choices response the way Riak formats siblings."""
    chunks: list[bytes] = [b"\r\n"]
    for body, headers in parts:
        chunks.append(f"--{boundary}\r\n".encode())
        for name, value in headers:
            chunks.append(f"{name}: {value}\r\n".encode())
        chunks.append(b"\r\n")
        chunks.append(body + b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode())
    headers: Headers = [("Content-Type", f"multipart/mixed; boundary={boundary}")]
    if vclock is not None:
        headers.append(("X-Riak-Vclock", vclock))
    return Response(status=300, headers=headers, body=b"".join(chunks))


def part_headers(
    *,
    etag: str | None,
    last_modified: datetime | None = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
    content_type: str = "text/plain; charset=utf-8",
    indexes: tuple[IndexEntry, ...] = (),
) -> Headers:
    return value_headers(
        vclock=None,
        etag=etag,
        last_modified=last_modified,
        content_type=content_type,
        indexes=indexes,
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport) -> RiakClient:
    return RiakClient(
        RiakConfig(url=BASE),
        transport=transport,
        identity=ClientIdentity("test-client"),
    )
