"""Error kinds and the ``Result`` envelope returned by every operation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

logger = logging.getLogger("lifeos.errors")

T = TypeVar("T")


class LifeOSError(Exception):
    """Base class for failures scoped to a single request."""

    kind = "Internal"
    http_status = 500

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class Unauthenticated(LifeOSError):
    kind = "Unauthenticated"
    http_status = 401


class NotFound(LifeOSError):
    kind = "NotFound"
    http_status = 404


class AlreadyExists(LifeOSError):
    """Duplicate plan or instance."""

    kind = "AlreadyExists"
    http_status = 409


class InvalidState(LifeOSError):
    """Illegal state transition."""

    kind = "InvalidState"
    http_status = 409


class AlreadyRunning(InvalidState):
    kind = "AlreadyRunning"


class NotRunning(InvalidState):
    kind = "NotRunning"


class Conflict(LifeOSError):
    """A concurrent write won the race; refetch before retrying."""

    kind = "Conflict"
    http_status = 409


class ValidationError(LifeOSError):
    kind = "ValidationError"
    http_status = 422


class Unavailable(LifeOSError):
    kind = "Unavailable"
    http_status = 503


@dataclass(slots=True)
class ErrorInfo:
    """Serializable description of a failed operation."""

    kind: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: LifeOSError) -> "ErrorInfo":
        return cls(kind=exc.kind, message=exc.message, details=dict(exc.details))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


@dataclass(slots=True)
class Result(Generic[T]):
    """Uniform ``{data, error}`` envelope; exactly one side is populated."""

    data: Optional[T] = None
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "Result[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, exc: LifeOSError) -> "Result[T]":
        return cls(error=ErrorInfo.from_exception(exc))

    def unwrap(self) -> T:
        """Return ``data`` or raise the mapped error (handy in tests and the CLI)."""

        if self.error is not None:
            raise LifeOSError(f"{self.error.kind}: {self.error.message}")
        return self.data  # type: ignore[return-value]


HTTP_STATUS_BY_KIND: dict[str, int] = {
    cls.kind: cls.http_status
    for cls in (
        LifeOSError,
        Unauthenticated,
        NotFound,
        AlreadyExists,
        InvalidState,
        AlreadyRunning,
        NotRunning,
        Conflict,
        ValidationError,
        Unavailable,
    )
}


def validation_details(exc: PydanticValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by their first location segment."""

    structured: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        key = str(loc[0]) if loc else "__root__"
        structured.setdefault(key, []).append(error.get("msg", "Invalid value"))
    return structured


def map_exception(exc: Exception) -> LifeOSError:
    """Translate datastore, validation and unexpected errors into an error kind."""

    if isinstance(exc, LifeOSError):
        return exc
    if isinstance(exc, IntegrityError):
        return Conflict("The record was modified concurrently; refetch and retry.")
    if isinstance(exc, OperationalError):
        return Unavailable("The datastore is unavailable.", details={"reason": str(exc.orig)})
    if isinstance(exc, DBAPIError):
        return Unavailable("The datastore rejected the request.", details={"reason": str(exc.orig)})
    if isinstance(exc, PydanticValidationError):
        return ValidationError("Invalid input.", details=validation_details(exc))
    if isinstance(exc, ValueError):
        return ValidationError(str(exc))
    logger.exception("Unhandled error mapped to Internal", exc_info=exc)
    return LifeOSError("Unexpected error while processing the request.")


def run_operation(func: Callable[[], T], *, name: str, read_only: bool = False) -> Result[T]:
    """Invoke ``func`` and wrap its outcome in a :class:`Result`.

    Reads are retried once on a transient ``OperationalError``; mutations never
    retry automatically, callers must refetch state first.
    """

    attempts = 2 if read_only else 1
    for attempt in range(1, attempts + 1):
        try:
            return Result.success(func())
        except OperationalError as exc:
            if attempt < attempts:
                logger.warning("Retrying %s after transient datastore error", name, extra={"operation": name})
                continue
            mapped = map_exception(exc)
        except Exception as exc:  # noqa: BLE001 - every failure is returned in the envelope
            mapped = map_exception(exc)
        logger.info(
            "Operation %s failed with %s",
            name,
            mapped.kind,
            extra={"operation": name, "error_kind": mapped.kind},
        )
        return Result.failure(mapped)
    raise AssertionError("unreachable")  # pragma: no cover


__all__ = [
    "AlreadyExists",
    "AlreadyRunning",
    "Conflict",
    "ErrorInfo",
    "HTTP_STATUS_BY_KIND",
    "InvalidState",
    "LifeOSError",
    "NotFound",
    "NotRunning",
    "Result",
    "Unauthenticated",
    "Unavailable",
    "ValidationError",
    "map_exception",
    "run_operation",
    "validation_details",
]
