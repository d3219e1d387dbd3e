"""Secondary index <-> HTTP header encoding.

Riak carries secondary indexes as one header per index, named
``x-riak-index-<name>_<bin|int>``. Binary (string) index values are
url-encoded, integer values are sent as decimal text. A single header may
hold several comma-separated values.
"""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import quote, unquote

from riakhttp.transport import Headers
from riakhttp.types import IndexEntry, IndexKind

INDEX_HEADER_PREFIX = "x-riak-index-"

_INDEX_HEADER = re.compile(rf"^{re.escape(INDEX_HEADER_PREFIX)}(.+)_(bin|int)$", re.IGNORECASE)


def url_encode(text: str) -> str:
    return quote(text, safe="")


def url_decode(text: str) -> str:
    return unquote(text)


def encode_index(entry: IndexEntry) -> tuple[str, str]:
    """Encode one index entry as a ``(header name, header value)`` pair."""
    name = f"{INDEX_HEADER_PREFIX}{url_encode(entry.name)}_{entry.kind.value}"
    if entry.kind is IndexKind.INT:
        return name, str(entry.value)
    return name, url_encode(str(entry.value))


def encode_indexes(entries: Iterable[IndexEntry]) -> Headers:
    # Sorted so requests are reproducible
    ordered = sorted(entries, key=lambda e: (e.name, e.kind.value, str(e.value)))
    return [encode_index(entry) for entry in ordered]


def decode_indexes(headers: Headers) -> frozenset[IndexEntry]:
    """Collect every index entry found in ``headers``.

    Headers that are not index headers, or whose values do not parse, add
    nothing; decoding never raises.
    """
    entries: set[IndexEntry] = set()
    for header_name, header_value in headers:
        if not header_name.lower().startswith(INDEX_HEADER_PREFIX):
            continue
        entries.update(_decode_index_header(header_name, header_value))
    return frozenset(entries)


def _decode_index_header(header_name: str, header_value: str) -> set[IndexEntry]:
    match = _INDEX_HEADER.match(header_name)
    if match is None:
        return set()
    name = url_decode(match.group(1))
    kind = IndexKind(match.group(2).lower())
    out: set[IndexEntry] = set()
    for raw in header_value.split(","):
        raw = raw.strip()
        if not raw:
            continue
        try:
            if kind is IndexKind.INT:
                out.add(IndexEntry.int_(name, int(raw)))
            else:
                out.add(IndexEntry.bin(name, url_decode(raw)))
        except ValueError:
            continue
    return out
