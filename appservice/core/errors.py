"""
Domain errors and the Result wrapper.

Every failure the service surfaces to a caller is an AppServiceError
subclass carrying its HTTP status. Remote capability clients never raise
for transport problems; they return Result.err(ServiceUnavailableError).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, TypeVar, Union, cast


@dataclass
class AppServiceError(Exception):
    message: str
    code: str = "APP_ERROR"
    status_code: int = 500
    context: Dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


@dataclass
class UnauthorizedError(AppServiceError):
    code: str = "UNAUTHORIZED"
    status_code: int = 401


@dataclass
class NotFoundError(AppServiceError):
    code: str = "NOT_FOUND"
    status_code: int = 404


@dataclass
class ForbiddenError(AppServiceError):
    code: str = "FORBIDDEN"
    status_code: int = 403


@dataclass
class ConflictError(AppServiceError):
    code: str = "CONFLICT"
    status_code: int = 409


@dataclass
class VersionConflictError(ConflictError):
    code: str = "VERSION_CONFLICT"


@dataclass
class ServiceUnavailableError(AppServiceError):
    code: str = "SERVICE_UNAVAILABLE"
    status_code: int = 503
    service: str = ""


@dataclass
class BadRequestError(AppServiceError):
    code: str = "BAD_REQUEST"
    status_code: int = 400


@dataclass
class CascadeDeleteError(AppServiceError):
    """Some applications in a cascade could not be deleted."""
    code: str = "CASCADE_INCOMPLETE"
    status_code: int = 500


T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound=AppServiceError)


@dataclass
class Result(Generic[T, E]):
    """Value-or-error wrapper returned by remote capability clients."""

    _value: Union[T, E]
    _is_ok: bool

    @classmethod
    def ok(cls, value: T) -> "Result[T, E]":
        return cls(_value=value, _is_ok=True)

    @classmethod
    def err(cls, error: E) -> "Result[T, E]":
        return cls(_value=error, _is_ok=False)

    def is_ok(self) -> bool:
        return self._is_ok

    @property
    def error(self) -> E | None:
        return None if self._is_ok else cast(E, self._value)

    def unwrap(self) -> T:
        if not self._is_ok:
            raise cast(E, self._value)
        return cast(T, self._value)

    def map(self, fn: Callable[[T], U]) -> "Result[U, E]":
        if self._is_ok:
            return Result.ok(fn(cast(T, self._value)))
        return cast("Result[U, E]", self)
