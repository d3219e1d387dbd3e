"""Mapping of (operation, HTTP status) to typed outcomes.

Each Riak operation accepts a small set of status codes. ``classify`` turns
a raw ``Response`` into one of the outcome records below; failures are
returned as ``Failure`` and raised by the caller via ``Failure.to_exception``.
A 300 (Multiple Choices) always means siblings exist for the key.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Union

from pydantic import ValidationError as PydanticValidationError

from riakhttp.codec import decode_value
from riakhttp.errors import (
    InvalidParametersError,
    OperationFailedError,
    RiakError,
    UnsupportedMediaTypeError,
)
from riakhttp.transport import Headers, Response
from riakhttp.types import BucketProperties, IndexQueryResponse, Value

OK = 200
NO_CONTENT = 204
MULTIPLE_CHOICES = 300
BAD_REQUEST = 400
NOT_FOUND = 404
UNSUPPORTED_MEDIA_TYPE = 415


class Operation(str, Enum):
    FETCH = "fetch"
    FETCH_BY_INDEX = "fetch_by_index"
    STORE = "store"
    DELETE = "delete"
    GET_BUCKET_PROPERTIES = "get_bucket_properties"
    SET_BUCKET_PROPERTIES = "set_bucket_properties"


class FailureKind(str, Enum):
    INVALID_PARAMETERS = "invalid_parameters"
    OPERATION_FAILED = "operation_failed"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"


@dataclass(frozen=True)
class Found:
    value: Value


@dataclass(frozen=True)
class NoValue:
    pass


@dataclass(frozen=True)
class Conflict:
    """A sibling response, kept raw until the conflict pipeline parses it."""

    body: bytes | None
    headers: Headers


@dataclass(frozen=True)
class KeyList:
    keys: list[str]


@dataclass(frozen=True)
class Properties:
    properties: BucketProperties


@dataclass(frozen=True)
class Done:
    pass


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    operation: Operation
    message: str
    status: int | None = None

    def to_exception(self) -> RiakError:
        if self.kind is FailureKind.INVALID_PARAMETERS:
            return InvalidParametersError(self.operation.value, self.message)
        if self.kind is FailureKind.UNSUPPORTED_MEDIA_TYPE:
            return UnsupportedMediaTypeError(
                self.operation.value, self.message, status=self.status
            )
        return OperationFailedError(self.operation.value, self.message, status=self.status)


Outcome = Union[Found, NoValue, Conflict, KeyList, Properties, Done, Failure]

NO_VALUE = NoValue()
DONE = Done()


def classify(operation: Operation, response: Response, *, subject: str) -> Outcome:
    """Classify ``response`` for ``operation``.

    ``subject`` describes what was operated on (bucket, key, index) and is
    used to build failure messages.
    """
    status = response.status
    if operation is Operation.FETCH:
        if status == OK:
            return _found_or_absent(response)
        if status == NOT_FOUND:
            return NO_VALUE
        if status == MULTIPLE_CHOICES:
            return Conflict(response.body, response.headers)
        if status == BAD_REQUEST:
            return _invalid(operation, f"{subject} was rejected as invalid.", status)

    elif operation is Operation.FETCH_BY_INDEX:
        if status == OK:
            return _key_list(operation, response, subject)
        if status == BAD_REQUEST:
            return _invalid(operation, f"Invalid index name or value in {subject}.", status)

    elif operation is Operation.STORE:
        if status == OK:
            return _found_or_absent(response)
        if status == NO_CONTENT:
            return NO_VALUE
        if status == MULTIPLE_CHOICES:
            return Conflict(response.body, response.headers)
        if status == BAD_REQUEST:
            return _invalid(operation, f"{subject} was rejected as invalid.", status)

    elif operation is Operation.DELETE:
        if status in (NO_CONTENT, NOT_FOUND):
            return DONE
        if status == BAD_REQUEST:
            return _invalid(operation, f"{subject} was rejected as invalid.", status)

    elif operation is Operation.GET_BUCKET_PROPERTIES:
        if status == OK:
            return _properties(operation, response, subject)

    elif operation is Operation.SET_BUCKET_PROPERTIES:
        if status == NO_CONTENT:
            return DONE
        if status == BAD_REQUEST:
            return _invalid(
                operation, f"{subject} failed because the request contained invalid data.", status
            )
        if status == UNSUPPORTED_MEDIA_TYPE:
            return Failure(
                FailureKind.UNSUPPORTED_MEDIA_TYPE,
                operation,
                f"{subject} failed because the request content type was not 'application/json'.",
                status,
            )

    return Failure(
        FailureKind.OPERATION_FAILED,
        operation,
        f"{subject} produced an unexpected response code '{status}'.",
        status,
    )


def _found_or_absent(response: Response) -> Outcome:
    value = decode_value(response.body, response.headers)
    if value is None:
        return NO_VALUE
    return Found(value)


def _invalid(operation: Operation, message: str, status: int) -> Failure:
    return Failure(FailureKind.INVALID_PARAMETERS, operation, message, status)


def _key_list(operation: Operation, response: Response, subject: str) -> Outcome:
    if not response.body:
        return KeyList([])
    try:
        parsed = IndexQueryResponse.model_validate_json(response.body)
    except PydanticValidationError as e:
        return Failure(
            FailureKind.OPERATION_FAILED,
            operation,
            f"{subject} failed because the key list could not be parsed: {e}",
            response.status,
        )
    return KeyList(parsed.keys)


def _properties(operation: Operation, response: Response, subject: str) -> Outcome:
    try:
        doc = json.loads(response.body or b"")
        if not isinstance(doc, dict) or not isinstance(doc.get("props"), dict):
            raise ValueError("missing 'props' object")
        props = BucketProperties.model_validate(doc["props"])
    except (ValueError, PydanticValidationError) as e:
        return Failure(
            FailureKind.OPERATION_FAILED,
            operation,
            f"{subject} failed because the response body could not be parsed: {e}",
            response.status,
        )
    return Properties(props)
