"""
Tagged result type returned by the service layer.

Services return ``Ok(data, message)`` for success and ``Err(kind, message)``
for expected failures. The transport layer (``utils.responses``) turns either
one into an HTTP status plus the JSON envelope.
"""

from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL = "INTERNAL_ERROR"

    @property
    def http_status(self) -> HTTPStatus:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: HTTPStatus.UNPROCESSABLE_ENTITY,
    ErrorKind.INVALID_CREDENTIALS: HTTPStatus.UNPROCESSABLE_ENTITY,
    ErrorKind.UNAUTHORIZED: HTTPStatus.UNAUTHORIZED,
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.CONFLICT: HTTPStatus.CONFLICT,
    ErrorKind.METHOD_NOT_ALLOWED: HTTPStatus.METHOD_NOT_ALLOWED,
    ErrorKind.RATE_LIMITED: HTTPStatus.TOO_MANY_REQUESTS,
    ErrorKind.INTERNAL: HTTPStatus.INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T
    message: str = "SUCCESS"


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    errors: dict[str, list[str]] | None = None


Result = Union[Ok[Any], Err]
