"""Result type returned by every upstream collaborator call."""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Why an upstream call produced no usable value."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    UPSTREAM_STATUS = "upstream_status"
    MALFORMED = "malformed"
    EMPTY = "empty"
    NOT_CONFIGURED = "not_configured"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or an error kind with a human-readable detail."""

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str = "") -> "Result[T]":
        return cls(error=error, detail=detail)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default
