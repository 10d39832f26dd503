"""Closed set of request failure kinds returned by decoders and handlers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(IntEnum):
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    UNSUPPORTED_MEDIA_TYPE = 415
    INTERNAL_ERROR = 500

    @property
    def phrase(self) -> str:
        return _PHRASES[self]


_PHRASES: dict[ErrorKind, str] = {
    ErrorKind.BAD_REQUEST: "Bad Request",
    ErrorKind.NOT_FOUND: "Page Not Found",
    ErrorKind.METHOD_NOT_ALLOWED: "Method Not Allowed",
    ErrorKind.UNSUPPORTED_MEDIA_TYPE: "Unsupported Media Type",
    ErrorKind.INTERNAL_ERROR: "Internal Server Error",
}


@dataclass(frozen=True, slots=True)
class Failure:
    """A request outcome that maps to an error response."""

    kind: ErrorKind
    message: str = ""

    @property
    def status_code(self) -> int:
        return int(self.kind)


@dataclass(frozen=True, slots=True)
class Decoded(Generic[T]):
    """Either a decoded value or the failure that prevented decoding."""

    value: T | None = None
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "Decoded[T]":
        return cls(value=value)

    @classmethod
    def error(cls, message: str, kind: ErrorKind = ErrorKind.INTERNAL_ERROR) -> "Decoded[T]":
        return cls(failure=Failure(kind=kind, message=message))
