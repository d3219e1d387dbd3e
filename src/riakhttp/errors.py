"""Structured error types for riakhttp."""

from __future__ import annotations


class RiakError(Exception):
    """Base error for all riakhttp errors."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(detail)


class InvalidParametersError(RiakError):
    """Raised when Riak rejects a request as malformed (HTTP 400)."""


class OperationFailedError(RiakError):
    """Raised when Riak answers an operation with an unexpected status code."""

    def __init__(self, operation: str, detail: str, *, status: int | None = None) -> None:
        self.status = status
        super().__init__(operation, detail)


class UnsupportedMediaTypeError(OperationFailedError):
    """Raised when Riak refuses the content type of a request body (HTTP 415)."""


class ConflictResolutionFailed(RiakError):
    """Raised when a sibling conflict response cannot be turned into a value."""

    def __init__(self, detail: str) -> None:
        super().__init__("resolve_conflict", f"Conflict resolution failed: {detail}")


class DeserializationError(RiakError):
    """Raised when a value body cannot be converted into the requested type."""

    def __init__(self, detail: str) -> None:
        super().__init__("deserialize", f"Could not deserialize value: {detail}")


class SerializationError(RiakError):
    """Raised when an object cannot be serialized into a value body."""

    def __init__(self, detail: str) -> None:
        super().__init__("serialize", f"Could not serialize value: {detail}")


class TransportError(RiakError):
    """Raised when the HTTP request itself could not be completed."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(operation, f"Transport error during {operation}: {detail}")
