import io
import re

from tracy.core.logging import DEFAULT_LEVELS, ConsoleLogger, LogLevel, dump
from tracy.domain.exceptions import LogicalError


def _lines(stream):
    return stream.getvalue().splitlines()


def test_log_shortcuts_respect_level():
    stream = io.StringIO()
    logger = ConsoleLogger(level="info", stream=stream)

    logger.error("e")
    logger.warn("w")
    logger.info("1", "a", {"foo": "bar"})
    logger.debug("d")
    logger.verbose("v")
    logger.trace("t")

    lines = _lines(stream)
    assert len(lines) == 3
    assert lines[0].startswith("[error]:") and lines[0].endswith(" e")
    assert lines[2].endswith(" 1 a {'foo': 'bar'}")


def test_all_tiers_at_trace_level():
    stream = io.StringIO()
    logger = ConsoleLogger(level=LogLevel.TRACE, stream=stream)
    for name in DEFAULT_LEVELS:
        getattr(logger, name)(name)
    assert [line.split("]")[0] for line in _lines(stream)] == [f"[{n}" for n in DEFAULT_LEVELS]


def test_message_column_is_aligned():
    stream = io.StringIO()
    logger = ConsoleLogger(level="trace", stream=stream)
    logger.info("x")
    logger.verbose("x")
    first, second = _lines(stream)
    assert first.index(" x") == second.index(" x")


def test_silent_suppresses_everything():
    stream = io.StringIO()
    logger = ConsoleLogger(level="trace", silent=True, stream=stream)
    logger.error("1", "a", {"foo": "bar"}, lambda: None)
    logger.error(LogicalError("msg", 500, ValueError("orig")))
    assert stream.getvalue() == ""


def test_timestamp_prefix():
    stream = io.StringIO()
    ConsoleLogger(level="info", timestamp=True, stream=stream).info("hello")
    assert re.match(r"^\[\d{2}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\]\[info\]:\s+hello$", _lines(stream)[0])


def test_custom_levels():
    stream = io.StringIO()
    logger = ConsoleLogger(level="verbose", levels={"verbose": 0, "info": 1}, stream=stream)
    logger.info("hidden")
    logger.verbose("shown")
    logger.debug("unknown tier")
    lines = _lines(stream)
    assert len(lines) == 1
    assert lines[0].endswith("shown")


def test_error_logs_previous_cause():
    stream = io.StringIO()
    logger = ConsoleLogger(level="error", stream=stream)
    logger.error(LogicalError("msg", 500, ValueError("orig")))

    text = stream.getvalue()
    assert text.count("[error]:") == 2
    assert "LogicalError" in text or "msg" in text
    assert "ValueError: orig" in text


def test_dump_values():
    assert dump("verbatim") == "verbatim"
    assert dump(3) == "3"
    assert dump(None) == "None"
    assert dump({"a": {"b": {"c": {"d": 1}}}}) == "{'a': {'b': {'c': {...}}}}"


def test_error_stops_on_cyclic_cause_chain():
    stream = io.StringIO()
    first, second = LogicalError("first"), LogicalError("second")
    first.previous, second.previous = second, first

    ConsoleLogger(level="error", stream=stream).error(first)

    lines = [line for line in _lines(stream) if line.startswith("[error]:")]
    assert len(lines) == 2
    assert "second" in stream.getvalue()
