# tracy/domain/exceptions.py
from __future__ import annotations
from enum import Enum
from typing import Any, ClassVar, Mapping

from tracy.domain.frames import stack_trace_of


class ErrorKind(str, Enum):
    LOGICAL = "LogicalError"
    DOMAIN = "DomainError"
    INVALID_ARGUMENT = "InvalidArgumentError"
    VALIDATION = "ValidationError"
    RANGE = "RangeError"
    RUNTIME = "RuntimeFailure"
    HTTP = "HttpError"
    BAD_REQUEST = "BadRequestError"
    NOT_FOUND = "NotFoundError"
    FORBIDDEN = "ForbiddenError"


class LogicalError(Exception):
    """
    Application error carrying an HTTP status code, a data payload and an
    optional previous cause.

    An exception passed in place of ``data`` is taken as the previous cause:
        LogicalError("msg", 500, ValueError("orig")).previous  -> ValueError
    """

    kind: ClassVar[ErrorKind] = ErrorKind.LOGICAL
    default_status: ClassVar[int] = 500

    def __init__(
        self,
        message: str = "",
        status_code: int | None = None,
        data: Mapping[str, Any] | BaseException | None = None,
        previous: BaseException | None = None,
        *,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        if data is not None and not isinstance(data, (Mapping, BaseException)):
            raise TypeError(f"{type(self).__name__} data must be a mapping or an exception, got {type(data).__name__}")
        if previous is None and isinstance(data, BaseException):
            previous, data = data, None

        self.message = message
        self.status_code = self.default_status if status_code is None else status_code
        if data is None:
            data = {}
        self.data = dict(data) if isinstance(data, Mapping) else data
        self.previous = previous
        self.error_code = error_code
        if previous is not None:
            self.__cause__ = previous

    @property
    def stack_trace(self) -> list[str]:
        return stack_trace_of(self)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.kind.value}({self.message!r}, {self.status_code})"


class DomainError(LogicalError):
    kind = ErrorKind.DOMAIN


class InvalidArgumentError(LogicalError):
    kind = ErrorKind.INVALID_ARGUMENT
    default_status = 400


class ValidationError(InvalidArgumentError):
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str = "", data=None, previous=None, *, error_code=None) -> None:
        super().__init__(message, 400, data, previous, error_code=error_code)


class RangeError(LogicalError):
    kind = ErrorKind.RANGE


class RuntimeFailure(LogicalError):
    kind = ErrorKind.RUNTIME


class HttpError(LogicalError):
    kind = ErrorKind.HTTP


class BadRequestError(LogicalError):
    kind = ErrorKind.BAD_REQUEST
    default_status = 400


class NotFoundError(LogicalError):
    kind = ErrorKind.NOT_FOUND
    default_status = 404

    def __init__(self, message: str = "", data=None, previous=None, *, error_code=None) -> None:
        super().__init__(message, 404, data, previous, error_code=error_code)


class ForbiddenError(LogicalError):
    kind = ErrorKind.FORBIDDEN
    default_status = 403


EXCEPTIONS: tuple[type[LogicalError], ...] = (
    LogicalError,
    DomainError,
    InvalidArgumentError,
    ValidationError,
    RangeError,
    RuntimeFailure,
    HttpError,
    BadRequestError,
    NotFoundError,
    ForbiddenError,
)


def kind_name(err: Any) -> str:
    if isinstance(err, LogicalError):
        return err.kind.value
    return type(err).__name__


def previous_cause_of(err: Any) -> BaseException | None:
    if isinstance(err, Mapping):
        return err.get("previous")
    previous = getattr(err, "previous", None)
    if isinstance(previous, BaseException):
        return previous
    return getattr(err, "__cause__", None)
