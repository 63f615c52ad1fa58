# tracy/domain/frames.py
"""
Stack frame text handling.

Stacks are kept as ordered lists of frame strings, most recent call first.
Three textual frame forms are understood:

    File "/srv/app/routes.py", line 12, in handler    (Python tracebacks)
    at handler (/srv/app/routes.js:12:5)              (V8 style, with method)
    at /srv/app/routes.js:12:5                        (V8 style, anonymous)

Anything else becomes a label-only frame without a line number.
"""
from __future__ import annotations
import re
import traceback
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

DEPENDENCY_DIRS = frozenset({"site-packages", "dist-packages", "node_modules", ".venv", "venv"})

_PYTHON_FRAME = re.compile(r'^\s*File "(?P<file>[^"]+)", line (?P<line>\d+)(?:, in (?P<method>.+?))?\s*$')
_METHOD_FRAME = re.compile(r"^\s*at (?P<method>.+?) \((?P<file>.+?):(?P<line>\d+)(?::(?P<column>\d+))?\)\s*$")
_BARE_FRAME = re.compile(r"^\s*at (?P<file>.+?):(?P<line>\d+)(?::(?P<column>\d+))?\s*$")
_PATTERNS = (_PYTHON_FRAME, _METHOD_FRAME, _BARE_FRAME)


@dataclass(frozen=True)
class StackFrame:
    raw: str
    file: str
    line: Optional[int] = None
    column: Optional[int] = None
    method: str = ""

    @property
    def file_name(self) -> str:
        return PurePath(self.file).name or self.file


def parse_frame(text: str) -> StackFrame:
    for pattern in _PATTERNS:
        m = pattern.match(text)
        if m is None:
            continue
        parts = m.groupdict()
        return StackFrame(
            raw=text,
            file=parts["file"],
            line=int(parts["line"]),
            column=int(parts["column"]) if parts.get("column") else None,
            method=(parts.get("method") or "").strip(),
        )

    label = text.strip()
    if label.startswith("at "):
        label = label[3:]
    return StackFrame(raw=text, file=label)


def format_frame(filename: str, lineno: Optional[int], name: str) -> str:
    return f'  File "{filename}", line {lineno}, in {name}'


def stack_trace_of(err: Any) -> list[str]:
    """Frame strings for an exception or an error-like record, most recent first."""
    if isinstance(err, BaseException):
        summary = traceback.extract_tb(err.__traceback__)
        return [format_frame(f.filename, f.lineno, f.name) for f in reversed(summary)]

    stack = err.get("stack") if isinstance(err, Mapping) else getattr(err, "stack", None)
    if isinstance(stack, str):
        return [line for line in stack.splitlines() if line.strip().startswith(("at ", "File "))]
    if isinstance(stack, (list, tuple)):
        return [str(line) for line in stack]
    return []


def capture_stack(skip: int = 0) -> list[str]:
    """Stack of the caller, most recent first, without the ``skip`` innermost frames."""
    summary = traceback.extract_stack()[: -(skip + 1)]
    return [format_frame(f.filename, f.lineno, f.name) for f in reversed(summary)]


def is_inside(frame: StackFrame, base_directory: str) -> bool:
    if frame.line is None:
        return False
    try:
        PurePath(frame.file).relative_to(base_directory)
    except ValueError:
        return False
    return True


def is_application_frame(frame: StackFrame, base_directory: str) -> bool:
    if not is_inside(frame, base_directory):
        return False
    relative = PurePath(frame.file).relative_to(base_directory)
    return not DEPENDENCY_DIRS.intersection(relative.parts)


def find_application_frame(
    frames: Iterable[str], base_directory: str
) -> Optional[Tuple[int, StackFrame]]:
    for i, text in enumerate(frames):
        frame = parse_frame(text)
        if is_application_frame(frame, base_directory):
            return i, frame
    return None


def relative_directory(frame: StackFrame, base_directory: str) -> str:
    rel = PurePath(frame.file).parent.relative_to(base_directory).as_posix()
    return "" if rel == "." else f"/{rel}"


def mark_frame(frames: Sequence[str], index: int) -> list[str]:
    """Indent every frame, prefixing the one at ``index`` with an arrow."""
    return [("-> " if i == index else "   ") + text.strip() for i, text in enumerate(frames)]
