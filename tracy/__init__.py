"""
tracy: catches exceptions raised by request handlers and answers them with a
JSON error body or an HTML diagnostic page.
"""
__version__ = "1.0.0"

from tracy.core.config import RendererConfig, setup_logging
from tracy.core.logging import ConsoleLogger, LogLevel
from tracy.domain import exceptions
from tracy.domain.exceptions import (
    EXCEPTIONS,
    BadRequestError,
    DomainError,
    ErrorKind,
    ForbiddenError,
    HttpError,
    InvalidArgumentError,
    LogicalError,
    NotFoundError,
    RangeError,
    RuntimeFailure,
    ValidationError,
)
from tracy.middleware.error_handler import Tracy


def enable(options=None, **kwargs) -> Tracy:
    """Build a renderer and enable it with ``options``."""
    return Tracy.create(options, **kwargs)


__all__ = [
    "EXCEPTIONS",
    "BadRequestError",
    "ConsoleLogger",
    "DomainError",
    "ErrorKind",
    "ForbiddenError",
    "HttpError",
    "InvalidArgumentError",
    "LogLevel",
    "LogicalError",
    "NotFoundError",
    "RangeError",
    "RendererConfig",
    "RuntimeFailure",
    "Tracy",
    "ValidationError",
    "enable",
    "exceptions",
    "setup_logging",
]
