"""Conversion between Riak HTTP representations and ``Value``."""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime

from riakhttp.indexes import decode_indexes, encode_indexes
from riakhttp.transport import Headers, find_header
from riakhttp.types import ContentType, Value

VCLOCK_HEADER = "X-Riak-Vclock"
ETAG_HEADER = "ETag"
LAST_MODIFIED_HEADER = "Last-Modified"
CONTENT_TYPE_HEADER = "Content-Type"


def parse_http_date(text: str | None) -> datetime | None:
    """Parse an RFC 1123 date into an aware UTC datetime; None if unparseable."""
    if not text:
        return None
    try:
        parsed = parsedate_to_datetime(text.strip())
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_http_date(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def decode_value(body: bytes | None, headers: Headers) -> Value | None:
    """Build a Value from a body and its headers.

    Returns None unless the body, vector clock, etag and last-modified
    headers are all present.
    """
    if not body:
        return None
    vclock = find_header(headers, VCLOCK_HEADER)
    etag = find_header(headers, ETAG_HEADER)
    last_modified = parse_http_date(find_header(headers, LAST_MODIFIED_HEADER))
    if not vclock or not etag or last_modified is None:
        return None
    return Value(
        data=body,
        content_type=ContentType.parse(find_header(headers, CONTENT_TYPE_HEADER)),
        vector_clock=vclock,
        etag=etag,
        last_modified=last_modified,
        indexes=decode_indexes(headers),
    )


def encode_value(value: Value) -> tuple[bytes, str, Headers]:
    """Return ``(body, content type header value, extra request headers)`` for a store."""
    headers: Headers = []
    if value.vector_clock:
        headers.append((VCLOCK_HEADER, value.vector_clock))
    if value.etag:
        headers.append((ETAG_HEADER, value.etag))
    headers.extend(encode_indexes(value.indexes))
    return value.data, value.content_type.header_value(), headers
