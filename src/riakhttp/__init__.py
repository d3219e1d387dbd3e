"""riakhttp: async Riak HTTP client with sibling resolution and secondary indexes."""

__version__ = "0.1.0"

from riakhttp.client import Bucket, RiakClient
from riakhttp.config import RiakConfig
from riakhttp.errors import (
    ConflictResolutionFailed,
    DeserializationError,
    InvalidParametersError,
    OperationFailedError,
    RiakError,
    SerializationError,
    TransportError,
    UnsupportedMediaTypeError,
)
from riakhttp.resolvers import CallbackResolver, ConflictResolver, LastWriteWins, MergeResolver
from riakhttp.transport import ClientIdentity, HttpxTransport, Request, Response, Transport
from riakhttp.types import (
    BucketProperties,
    ContentType,
    IndexEntry,
    IndexKind,
    IndexRange,
    ServerInfo,
    Value,
)

__all__ = [
    "__version__",
    "RiakClient",
    "Bucket",
    "RiakConfig",
    "Value",
    "ContentType",
    "IndexEntry",
    "IndexKind",
    "IndexRange",
    "ServerInfo",
    "BucketProperties",
    "ConflictResolver",
    "LastWriteWins",
    "CallbackResolver",
    "MergeResolver",
    "Transport",
    "HttpxTransport",
    "Request",
    "Response",
    "ClientIdentity",
    "RiakError",
    "InvalidParametersError",
    "OperationFailedError",
    "UnsupportedMediaTypeError",
    "ConflictResolutionFailed",
    "DeserializationError",
    "SerializationError",
    "TransportError",
]
