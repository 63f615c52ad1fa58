from __future__ import annotations
import sys
import traceback
from enum import Enum
from pprint import pformat
from typing import IO, Any, Mapping, Optional

import structlog

from tracy.domain.exceptions import previous_cause_of


class LogLevel(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    VERBOSE = "verbose"
    TRACE = "trace"


DEFAULT_LEVELS: dict[str, int] = {level.value: rank for rank, level in enumerate(LogLevel)}
TIMESTAMP_FORMAT = "%y-%m-%d %H:%M:%S"
DUMP_DEPTH = 3


def dump(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, (int, float, bool)):
        return str(value)
    if isinstance(value, BaseException):
        # causes are logged as their own lines by ConsoleLogger.error
        lines = traceback.format_exception(type(value), value, value.__traceback__, chain=False)
        return "".join(lines).rstrip()
    return pformat(value, depth=DUMP_DEPTH)


class ConsoleLogger:
    """
    Leveled console logger writing one line per call.

        logger = ConsoleLogger(level="debug", timestamp=True)
        logger.info("user", {"id": 1})   ->  [24-05-01 10:00:00][info]:    user {'id': 1}

    A tier is emitted when its rank is <= the rank of ``level``; tiers absent
    from ``levels`` are never emitted.
    """

    def __init__(
        self,
        level: str = LogLevel.INFO.value,
        *,
        levels: Optional[Mapping[str, int]] = None,
        silent: bool = False,
        timestamp: bool = False,
        stream: Optional[IO[str]] = None,
    ) -> None:
        self.level = level.value if isinstance(level, LogLevel) else level
        self.levels = dict(levels) if levels is not None else dict(DEFAULT_LEVELS)
        self.silent = silent
        self._width = max((len(name) for name in self.levels), default=0)

        processors: list[Any] = []
        if timestamp:
            processors.append(structlog.processors.TimeStamper(fmt=TIMESTAMP_FORMAT, utc=False))
        processors.append(self._render)
        self._logger = structlog.wrap_logger(
            structlog.PrintLogger(file=stream if stream is not None else sys.stdout),
            processors=processors,
            wrapper_class=structlog.BoundLogger,
        )

    def _render(self, _logger: Any, _name: str, event_dict: dict[str, Any]) -> str:
        level = event_dict["level"]
        stamp = f"[{event_dict['timestamp']}]" if "timestamp" in event_dict else ""
        padding = " " * (self._width - len(level))
        return f"{stamp}[{level}]:{padding} {event_dict['event']}"

    def is_enabled_for(self, level: str) -> bool:
        if self.silent:
            return False
        rank = self.levels.get(level)
        threshold = self.levels.get(self.level)
        return rank is not None and threshold is not None and rank <= threshold

    def log(self, level: str, *args: Any) -> None:
        level = level.value if isinstance(level, LogLevel) else level
        if not self.is_enabled_for(level):
            return
        self._logger.msg(" ".join(dump(arg) for arg in args), level=level)

    def error(self, *args: Any) -> None:
        self.log(LogLevel.ERROR, *args)
        if not args:
            return

        seen = {id(args[0])}
        previous = previous_cause_of(args[0])
        while previous is not None and id(previous) not in seen:
            seen.add(id(previous))
            self.log(LogLevel.ERROR, previous)
            previous = previous_cause_of(previous)

    def warn(self, *args: Any) -> None:
        self.log(LogLevel.WARN, *args)

    def info(self, *args: Any) -> None:
        self.log(LogLevel.INFO, *args)

    def debug(self, *args: Any) -> None:
        self.log(LogLevel.DEBUG, *args)

    def verbose(self, *args: Any) -> None:
        self.log(LogLevel.VERBOSE, *args)

    def trace(self, *args: Any) -> None:
        self.log(LogLevel.TRACE, *args)
