"""Value, IndexEntry, ContentType and bucket property types for riakhttp."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, TypeVar
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, PydanticSchemaGenerationError, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError

from riakhttp.errors import DeserializationError, SerializationError

T = TypeVar("T")

DEFAULT_MEDIA_TYPE = "application/octet-stream"
JSON_MEDIA_TYPE = "application/json"

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class ContentType:
    """A media type with an optional charset parameter."""

    media_type: str = DEFAULT_MEDIA_TYPE
    charset: str | None = None

    @classmethod
    def parse(cls, header_value: str | None) -> ContentType:
        """Parse a Content-Type header value; missing values become octet-stream."""
        if not header_value or not header_value.strip():
            return cls()
        parts = [p.strip() for p in header_value.split(";")]
        media_type = parts[0].lower() or DEFAULT_MEDIA_TYPE
        charset: str | None = None
        for param in parts[1:]:
            name, sep, value = param.partition("=")
            if sep and name.strip().lower() == "charset":
                charset = value.strip().strip('"') or None
        return cls(media_type=media_type, charset=charset)

    def header_value(self) -> str:
        if self.charset:
            return f"{self.media_type}; charset={self.charset}"
        return self.media_type

    def __str__(self) -> str:
        return self.header_value()


JSON_CONTENT_TYPE = ContentType(JSON_MEDIA_TYPE, "utf-8")
TEXT_CONTENT_TYPE = ContentType("text/plain", "utf-8")


class IndexKind(str, Enum):
    """The two value kinds a secondary index can carry."""

    INT = "int"
    BIN = "bin"


@dataclass(frozen=True)
class IndexEntry:
    """A secondary index attached to a value: name, kind and one value."""

    name: str
    kind: IndexKind
    value: int | str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Index name must not be empty")
        kind = IndexKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind is IndexKind.INT:
            if isinstance(self.value, bool) or not isinstance(self.value, int):
                raise ValueError(f"Integer index '{self.name}' requires an int value")
            if not INT64_MIN <= self.value <= INT64_MAX:
                raise ValueError(f"Integer index '{self.name}' value is outside the int64 range")
        elif not isinstance(self.value, str) or not self.value:
            raise ValueError(f"Binary index '{self.name}' requires a non-empty str value")

    @classmethod
    def int_(cls, name: str, value: int) -> IndexEntry:
        return cls(name, IndexKind.INT, value)

    @classmethod
    def bin(cls, name: str, value: str) -> IndexEntry:
        return cls(name, IndexKind.BIN, value)

    @classmethod
    def of(cls, name: str, value: int | str) -> IndexEntry:
        """Build an entry whose kind follows the Python type of ``value``."""
        if isinstance(value, str):
            return cls.bin(name, value)
        return cls.int_(name, value)

    @property
    def full_name(self) -> str:
        return f"{self.name}_{self.kind.value}"


@dataclass(frozen=True)
class IndexRange:
    """An inclusive range lookup over one secondary index."""

    name: str
    kind: IndexKind
    start: int | str
    end: int | str

    def __post_init__(self) -> None:
        kind = IndexKind(self.kind)
        object.__setattr__(self, "kind", kind)
        # Validation is shared with IndexEntry
        IndexEntry(self.name, kind, self.start)
        IndexEntry(self.name, kind, self.end)

    @classmethod
    def of(cls, name: str, start: int | str, end: int | str) -> IndexRange:
        if isinstance(start, str) != isinstance(end, str):
            raise ValueError(f"Range bounds for index '{name}' must be of the same kind")
        kind = IndexKind.BIN if isinstance(start, str) else IndexKind.INT
        return cls(name, kind, start, end)

    @property
    def full_name(self) -> str:
        return f"{self.name}_{self.kind.value}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Value:
    """One version of a key, with its causality metadata.

    Values decoded from Riak responses always carry a vector clock, an etag
    and a last-modified timestamp. Values built with ``Value.create`` are
    write-only until Riak returns the stored version.
    """

    data: bytes
    content_type: ContentType = field(default_factory=ContentType)
    vector_clock: str = ""
    etag: str = ""
    last_modified: datetime = field(default_factory=_utcnow)
    indexes: frozenset[IndexEntry] = frozenset()

    @classmethod
    def create(
        cls,
        data: bytes | str,
        *,
        content_type: ContentType | str | None = None,
        indexes: Iterable[IndexEntry] = (),
    ) -> Value:
        """Build a new value to be stored; str data is encoded using the charset."""
        if isinstance(content_type, str):
            ctype = ContentType.parse(content_type)
        elif content_type is None:
            ctype = TEXT_CONTENT_TYPE if isinstance(data, str) else ContentType()
        else:
            ctype = content_type
        if isinstance(data, str):
            data = data.encode(ctype.charset or "utf-8")
        return cls(data=data, content_type=ctype, indexes=frozenset(indexes))

    @classmethod
    def from_model(cls, obj: Any, *, indexes: Iterable[IndexEntry] = ()) -> Value:
        """Serialize a pydantic model (or any JSON-compatible object) as a JSON value."""
        try:
            if isinstance(obj, BaseModel):
                body = obj.model_dump_json().encode("utf-8")
            else:
                body = TypeAdapter(type(obj)).dump_json(obj)
        except (PydanticSchemaGenerationError, PydanticSerializationError) as e:
            raise SerializationError(str(e)) from e
        return cls(data=body, content_type=JSON_CONTENT_TYPE, indexes=frozenset(indexes))

    def as_text(self) -> str:
        """Decode the body using the charset of the content type (UTF-8 by default)."""
        try:
            return self.data.decode(self.content_type.charset or "utf-8")
        except (LookupError, UnicodeDecodeError) as e:
            raise DeserializationError(str(e)) from e

    def as_model(self, model: type[T]) -> T:
        """Validate the JSON body into ``model``."""
        try:
            return TypeAdapter(model).validate_json(self.data)
        except PydanticValidationError as e:
            raise DeserializationError(str(e)) from e

    def with_data(self, data: bytes | str, content_type: ContentType | None = None) -> Value:
        ctype = content_type or self.content_type
        if isinstance(data, str):
            data = data.encode(ctype.charset or "utf-8")
        return replace(self, data=data, content_type=ctype)

    def with_indexes(self, indexes: Iterable[IndexEntry]) -> Value:
        return replace(self, indexes=frozenset(indexes))

    def index_values(self, name: str) -> set[int | str]:
        """All values of the named index attached to this value."""
        return {entry.value for entry in self.indexes if entry.name == name}


@dataclass(frozen=True)
class ServerInfo:
    """Location of a Riak node's HTTP interface."""

    host: str = "127.0.0.1"
    port: int = 8098
    secure: bool = False

    @classmethod
    def from_url(cls, url: str) -> ServerInfo:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"Invalid Riak URL: {url!r}")
        secure = parsed.scheme == "https"
        port = parsed.port or (443 if secure else 8098)
        return cls(host=parsed.hostname, port=port, secure=secure)

    @property
    def base_url(self) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.host}:{self.port}"


class BucketProperties(BaseModel):
    """Bucket properties as reported by Riak; unknown properties are kept."""

    model_config = ConfigDict(extra="allow")

    n_val: int | None = None
    allow_mult: bool | None = None
    last_write_wins: bool | None = None


class IndexQueryResponse(BaseModel):
    """Body of a secondary index lookup: the matching keys."""

    keys: list[str]
