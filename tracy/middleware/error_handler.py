# tracy/middleware/error_handler.py
"""
Request error renderer.

Wraps request handlers so that no exception escapes them. A failure is
logged through the configured sink and answered with either a JSON body
(API clients, production) or an HTML diagnostic page showing the stack,
the failing source lines and the request (browsers, non-production).
"""
from __future__ import annotations
import functools
import html
import inspect
import platform
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from string import Template
from typing import Any, Awaitable, Callable, Mapping, Optional, Tuple
from urllib.parse import quote

import structlog

from tracy import __version__
from tracy.core.config import RendererConfig
from tracy.domain import exceptions
from tracy.domain.exceptions import LogicalError, kind_name, previous_cause_of
from tracy.domain.frames import (
    StackFrame,
    capture_stack,
    find_application_frame,
    is_inside,
    mark_frame,
    parse_frame,
    relative_directory,
    stack_trace_of,
)
from tracy.middleware.context import RequestContext, ResponseSink, as_dict

log = structlog.get_logger("tracy.renderer")

BROWSER_SIGNATURES = ("mozilla", "chrome", "edge", "webkit")
TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "templates" / "debugger.html"
RUNTIME_LABEL = "python"


class _PageTemplate(Template):
    # placeholders look like ${err.message}
    idpattern = r"(?a:[_a-z][_a-z0-9]*(?:\.[_a-z][_a-z0-9]*)*)"


@functools.lru_cache(maxsize=1)
def _load_template() -> _PageTemplate:
    return _PageTemplate(TEMPLATE_PATH.read_text(encoding="utf-8"))


@dataclass(frozen=True)
class Outcome:
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def _invoke(fn: Callable[..., Any], *args: Any) -> Outcome:
    try:
        return Outcome(value=fn(*args))
    except Exception as exc:
        return Outcome(error=exc)


async def _settle(awaitable: Awaitable[Any]) -> Outcome:
    try:
        return Outcome(value=await awaitable)
    except Exception as exc:
        return Outcome(error=exc)


def _field(err: Any, name: str, default: Any = None) -> Any:
    if isinstance(err, Mapping):
        return err.get(name, default)
    return getattr(err, name, default)


def status_code_of(err: Any) -> int:
    value = _field(err, "status_code")
    if isinstance(value, bool):
        return 500
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 500


def message_of(err: Any) -> Optional[str]:
    for name in ("message", "detail"):
        value = _field(err, name)
        if isinstance(value, str):
            return value
    if isinstance(err, BaseException):
        return str(err)
    return None


def describe(err: Any) -> dict[str, Any]:
    """JSON-safe summary of an error and its chain of previous causes."""
    out: dict[str, Any] = {"name": kind_name(err), "message": message_of(err)}
    node, seen = out, {id(err)}
    previous = previous_cause_of(err)
    while previous is not None and id(previous) not in seen:
        seen.add(id(previous))
        node["previous"] = {"name": kind_name(previous), "message": message_of(previous)}
        node = node["previous"]
        previous = previous_cause_of(previous)
    return out


def _table(obj: Any) -> str:
    items = as_dict(obj) if obj else {}
    if not items:
        return "<tr><td><em>empty</em></td></tr>"
    return "\n".join(
        f"<tr><th>{html.escape(str(k))}</th><td>{html.escape(str(v))}</td></tr>"
        for k, v in items.items()
    )


class Tracy:
    """
    Error renderer for request handlers.

        tracy = Tracy()
        tracy.enable(base_directory="/srv/app", log_sink=logger.error)
        handler = tracy.catcher(handler)

    Configuration is merged by ``enable`` at startup and read-only afterwards.
    """

    exceptions = exceptions

    def __init__(self, config: Optional[RendererConfig] = None, environment: Optional[str] = None) -> None:
        self.config = config if config is not None else RendererConfig()
        self.environment = environment or self.config.environment
        self.enabled = False

    @classmethod
    def create(cls, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "Tracy":
        tracy = cls()
        tracy.enable(options, **kwargs)
        return tracy

    def enable(self, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        updates = {**(options or {}), **kwargs}
        self.config = self.config.merged(updates)
        if "environment" in updates:
            self.environment = self.config.environment
        self.enabled = True
        log.debug("renderer enabled", environment=self.environment, base_directory=self.config.base_directory)

    def is_enabled(self) -> bool:
        return self.enabled

    def get_environment(self) -> str:
        return self.environment

    def catcher(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        """
        Wrap a ``(request, response, next)`` handler so failures become responses.

        A handler returning an awaitable makes the wrapper return a coroutine;
        the caller awaits it and the outcome is settled when it completes.
        """

        @functools.wraps(handler)
        def wrapper(request: Any, response: ResponseSink, next_: Any = None) -> Any:
            outcome = _invoke(handler, request, response, next_)
            if not outcome.failed and inspect.isawaitable(outcome.value):
                return self._finish_async(outcome.value, request, response)
            self._finish(outcome, request, response)
            return None

        return wrapper

    wrap = catcher

    async def _finish_async(self, awaitable: Awaitable[Any], request: Any, response: ResponseSink) -> None:
        self._finish(await _settle(awaitable), request, response)

    def _finish(self, outcome: Outcome, request: Any, response: ResponseSink) -> None:
        if outcome.failed:
            self.handle_failure(request, response, outcome.error)

    def handle_failure(self, request: Any, response: ResponseSink, err: Any = None) -> None:
        if err is None:
            err = {}
        context = RequestContext.coerce(request)
        code = status_code_of(err)

        response.status(code)
        self.log_failure(err, code, context)

        production = self.get_environment() == "production"
        if production:
            message = message_of(err)
            if message and not any(c.isspace() for c in message) and self.config.hide_production_message:
                body: dict[str, Any] = {"message": message}
            else:
                body = {"message": self.config.production_message}
        elif self.is_browser(context) and self.config.html_responses_enabled:
            response.end(self.render_html(err, context))
            return
        else:
            body = {"message": message_of(err), "stack": stack_trace_of(err)}
            previous = previous_cause_of(err)
            if previous is not None:
                body["previous"] = describe(previous)

        error_code = _field(err, "error_code")
        if error_code is not None:
            body["code"] = error_code

        data = _field(err, "data")
        # production bodies stay {message} when there is nothing to add
        if data is not None and not (production and not data):
            body["data"] = data

        response.json(body)

    @staticmethod
    def is_browser(request: Any) -> bool:
        agent = RequestContext.coerce(request).user_agent.lower()
        return any(signature in agent for signature in BROWSER_SIGNATURES)

    def log_failure(self, err: Any, status_code: int, request: Any) -> None:
        context = RequestContext.coerce(request)
        sink = self.config.log_sink
        dump_data = not isinstance(err, LogicalError) or status_code >= 500

        stack = stack_trace_of(err)
        located = find_application_frame(stack or capture_stack(skip=1), self.config.base_directory)

        name = kind_name(err)
        info = context.url + (f", {context.user_email}" if context.user_email else "")

        if dump_data:
            if stack:
                frames = mark_frame(stack, located[0] if located else -1)
                detail = "\n".join([f"{name}: {message_of(err) or ''}", *frames])
            else:
                detail = str(err)
            sink(f"responding {status_code} ({name}) [{info}]:\n{detail}")
            return

        message = message_of(err)
        label = f"{name}: {message}" if message else name
        line = f"responding empty {status_code} ({label}) [{info}]"
        data = _field(err, "data")
        if data:
            line += f"\n{data}"
        sink(line)

        if located:
            sink(f" \\_ {located[1].raw.strip()}")

    def render_html(self, err: Any, request: Any) -> str:
        context = RequestContext.coerce(request)
        status = _field(err, "status_code")
        previous = previous_cause_of(err)
        stack = stack_trace_of(err)
        source, anchor = self._source_excerpt(stack)

        values = {
            "error": kind_name(err) + (f" #{status}" if status is not None else ""),
            "err.code": "" if status is None else str(status),
            "err.message": html.escape(message_of(err) or ""),
            "err.previous": "",
            "err.data": _table(_field(err, "data")),
            "source": source,
            "sourceAnchor": anchor,
            "rows": "\n".join(f"<li>{self.frame_link(parse_frame(text))}</li>" for text in stack),
            "req.route": _table(context.route),
            "req.headers": _table(context.headers),
            "req.params": _table(context.params),
            "now": datetime.now().astimezone().isoformat(timespec="seconds"),
            "link": html.escape(context.host + context.url),
            "tracy.version": __version__,
            "node.version": platform.python_version(),
            "node.arch": platform.machine(),
            "node.platform": sys.platform,
        }
        if previous is not None:
            cause = f"{kind_name(previous)}: {message_of(previous) or ''}"
            values["err.previous"] = f"<div>Caused by {html.escape(cause)}</div>"

        return _load_template().safe_substitute(values)

    def frame_link(self, frame: StackFrame) -> str:
        method = html.escape(f"{frame.method}()") if frame.method else ""
        if frame.line is None:
            return f"<span>{RUNTIME_LABEL}/{html.escape(frame.file)}</span>&nbsp;&nbsp;{method}"

        base = self.config.base_directory
        if not is_inside(frame, base):
            label = f"{RUNTIME_LABEL}/{html.escape(frame.file_name)}:{frame.line}"
            return f"<span>{label}</span>&nbsp;&nbsp;{method}"

        href = f"{html.escape(self.config.editor_uri_template)}?file={quote(frame.file, safe='')}&amp;line={frame.line}"
        shown = f"...{html.escape(relative_directory(frame, base))}/<b>{html.escape(frame.file_name)}</b>:{frame.line}"
        return f'<a href="{href}">{shown}</a>&nbsp;&nbsp;{method}'

    def _source_excerpt(self, stack: list[str]) -> Tuple[str, str]:
        located = find_application_frame(stack, self.config.base_directory)
        if located is None:
            return "", ""

        frame = located[1]
        try:
            lines = Path(frame.file).read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError:
            return "", ""

        first = max(1, frame.line - self.config.lines_before_error)
        last = min(len(lines), frame.line + self.config.lines_after_error)
        rows = []
        for number in range(first, last + 1):
            text = f"{number}. {html.escape(lines[number - 1], quote=False)}"
            rows.append(f"<b>{text}</b>" if number == frame.line else text)
        if not rows:
            return "", ""
        return "\n".join(rows) + "\n", self.frame_link(frame)
