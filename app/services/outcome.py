"""
Service return values: either a value or an error kind with a user-facing message.
Routes map ErrorKind to an HTTP status; services never raise for expected failures.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"  # missing / malformed input
    NOT_FOUND = "not_found"  # entity absent or owned by someone else
    CONFLICT = "conflict"  # invalid state transition
    UPSTREAM = "upstream"  # remote service or persistence failure


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 400,
    ErrorKind.UPSTREAM: 500,
}


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T | None = None
    error: ErrorKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def http_status(self) -> int:
        if self.error is None:
            return 200
        return HTTP_STATUS_BY_KIND[self.error]

    @classmethod
    def success(cls, value: T, message: str = "") -> "Outcome[T]":
        return cls(value=value, message=message)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "Outcome[T]":
        return cls(error=error, message=message)
