"""Sibling conflict pipeline: parse a 300 response, resolve, store back.

Riak answers a fetch or store on a key with siblings using a
``multipart/mixed`` body. The vector clock is sent once on the envelope and
applies to every part; each part carries its own etag, last-modified,
content type and index headers.
"""

from __future__ import annotations

import logging
from email import policy
from email.errors import MessageDefect, StartBoundaryNotFoundDefect
from email.message import Message
from email.parser import BytesParser
from typing import Awaitable, Callable

from riakhttp.classify import Conflict
from riakhttp.codec import CONTENT_TYPE_HEADER, VCLOCK_HEADER, decode_value
from riakhttp.errors import ConflictResolutionFailed
from riakhttp.resolvers import ConflictResolver
from riakhttp.transport import Headers, find_header
from riakhttp.types import ServerInfo, Value

logger = logging.getLogger(__name__)

StoreFn = Callable[[ServerInfo, str, str, Value, bool, ConflictResolver], Awaitable["Value | None"]]
"""Store callback used to write the resolved value back to Riak."""


def _parse_multipart(body: bytes | None, content_type: str | None) -> list[tuple[bytes, Headers]]:
    if not body:
        raise ConflictResolutionFailed("conflict response has no body")
    if not content_type or not content_type.lower().startswith("multipart/"):
        raise ConflictResolutionFailed(f"unexpected content type {content_type!r}")
    envelope = f"{CONTENT_TYPE_HEADER}: {content_type}\r\n\r\n".encode("latin-1") + body
    message = BytesParser(policy=policy.compat32).parsebytes(envelope)
    if not message.is_multipart() or message.get_boundary() is None:
        raise ConflictResolutionFailed("response body is not a multipart document")
    defects: list[MessageDefect] = list(message.defects)
    if any(isinstance(d, StartBoundaryNotFoundDefect) for d in defects):
        raise ConflictResolutionFailed("multipart boundary not found in response body")

    parts: list[tuple[bytes, Headers]] = []
    for part in message.get_payload():
        assert isinstance(part, Message)
        payload = part.get_payload(decode=True)
        data = payload if isinstance(payload, bytes) else b""
        parts.append((data, [(name, str(value)) for name, value in part.items()]))
    return parts


def conflict_siblings(conflict: Conflict, *, strict: bool = False) -> frozenset[Value]:
    """Decode every sibling of a conflict response.

    Siblings missing an etag or last-modified header are dropped (or, with
    ``strict``, fail the whole resolution). Structurally equal siblings
    collapse into one.
    """
    vclock = find_header(conflict.headers, VCLOCK_HEADER)
    shared: Headers = [(VCLOCK_HEADER, vclock)] if vclock else []
    parts = _parse_multipart(conflict.body, find_header(conflict.headers, CONTENT_TYPE_HEADER))

    values: set[Value] = set()
    for position, (data, part_headers) in enumerate(parts):
        value = decode_value(data, shared + part_headers)
        if value is None:
            if strict:
                raise ConflictResolutionFailed(
                    f"sibling {position} is missing causality metadata"
                )
            logger.warning("Dropping sibling %d with incomplete metadata", position)
            continue
        values.add(value)
    return frozenset(values)


async def resolve_conflict(
    server: ServerInfo,
    bucket: str,
    key: str,
    conflict: Conflict,
    resolver: ConflictResolver,
    *,
    store: StoreFn,
    strict: bool = False,
) -> Value | None:
    """Resolve the siblings of ``bucket/key`` and store the winner back."""
    siblings = conflict_siblings(conflict, strict=strict)
    resolved = resolver.resolve(siblings)
    logger.info(
        "Resolved %d sibling(s) for key '%s' in bucket '%s'", len(siblings), key, bucket
    )
    return await store(server, bucket, key, resolved, True, resolver)
