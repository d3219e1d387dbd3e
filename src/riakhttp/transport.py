"""Request/response records and the HTTP transport used to talk to Riak."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import httpx

from riakhttp.config import RiakConfig
from riakhttp.errors import TransportError

logger = logging.getLogger(__name__)

CLIENT_ID_HEADER = "X-Riak-ClientId"
ACCEPT_MULTIPART = "*/*, multipart/mixed"

Headers = list[tuple[str, str]]


def find_header(headers: Headers, name: str) -> str | None:
    """Return the first value of ``name`` (case-insensitive), or None."""
    wanted = name.lower()
    for key, value in headers:
        if key.lower() == wanted:
            return value
    return None


@dataclass(frozen=True)
class Request:
    method: str
    url: str
    headers: Headers = field(default_factory=list)
    body: bytes | None = None


@dataclass(frozen=True)
class Response:
    """A raw response: status code, ordered header pairs and an optional body."""

    status: int
    headers: Headers = field(default_factory=list)
    body: bytes | None = None

    def header(self, name: str) -> str | None:
        return find_header(self.headers, name)


@dataclass(frozen=True)
class ClientIdentity:
    """Process-wide client id, generated once and shared read-only."""

    client_id: str

    @classmethod
    def generate(cls) -> ClientIdentity:
        return cls(str(uuid.uuid4()))


@runtime_checkable
class Transport(Protocol):
    """Executes one HTTP request against Riak."""

    async def execute(self, request: Request) -> Response: ...

    async def aclose(self) -> None: ...


def default_headers(config: RiakConfig, identity: ClientIdentity) -> Headers:
    """Headers added to every request sent by the client."""
    headers: Headers = [("Accept", ACCEPT_MULTIPART)]
    if config.add_client_id_header:
        headers.append((CLIENT_ID_HEADER, identity.client_id))
    return headers


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        config: RiakConfig,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.request_timeout_s)

    async def execute(self, request: Request) -> Response:
        logger.debug("%s %s", request.method, request.url)
        try:
            resp = await self._client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{request.method} {request.url}", str(e)) from e
        body = resp.content
        logger.debug("%s %s -> %d", request.method, request.url, resp.status_code)
        return Response(
            status=resp.status_code,
            headers=[(k.decode("latin-1"), v.decode("latin-1")) for k, v in resp.headers.raw],
            body=body if body else None,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
