import pytest

from tracy import exceptions
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
    kind_name,
    previous_cause_of,
)


@pytest.mark.parametrize(
    "cls, status",
    [
        (LogicalError, 500),
        (DomainError, 500),
        (InvalidArgumentError, 400),
        (ValidationError, 400),
        (RangeError, 500),
        (RuntimeFailure, 500),
        (HttpError, 500),
        (BadRequestError, 400),
        (NotFoundError, 404),
        (ForbiddenError, 403),
    ],
)
def test_default_status_codes(cls, status):
    err = cls("ERR_MSG")
    assert err.status_code == status
    assert err.message == "ERR_MSG"
    assert err.data == {}
    assert err.previous is None
    assert isinstance(cls(), LogicalError)


def test_exported_variants_in_order():
    assert [cls.__name__ for cls in EXCEPTIONS] == [
        "LogicalError",
        "DomainError",
        "InvalidArgumentError",
        "ValidationError",
        "RangeError",
        "RuntimeFailure",
        "HttpError",
        "BadRequestError",
        "NotFoundError",
        "ForbiddenError",
    ]
    assert [cls.kind for cls in EXCEPTIONS] == list(ErrorKind)
    assert exceptions.BadRequestError is BadRequestError


def test_status_override_and_data():
    err = BadRequestError("NOT_FOUND", 408, {"a": 1, "b": 2})
    assert err.status_code == 408
    assert err.data == {"a": 1, "b": 2}

    assert DomainError("ERR_MSG", 408).status_code == 408
    assert ForbiddenError("ERR_MSG", 408).status_code == 408


def test_validation_narrows_invalid_argument():
    err = ValidationError("bad field", {"field": "email"})
    assert isinstance(err, InvalidArgumentError)
    assert err.status_code == 400
    assert err.data == {"field": "email"}


@pytest.mark.parametrize("cls", [ValidationError, NotFoundError])
def test_fixed_status_kinds_reject_status_in_data_position(cls):
    with pytest.raises(TypeError):
        cls("bad", 422)


def test_exception_in_data_position_becomes_previous():
    orig = ValueError("orig")
    err = LogicalError("msg", 501, orig)

    assert err.previous is orig
    assert err.data == {}
    assert err.__cause__ is orig
    assert previous_cause_of(err) is orig


def test_not_found_takes_previous_from_data_position():
    orig = KeyError("id")
    err = NotFoundError("MISSING", orig)
    assert err.status_code == 404
    assert err.previous is orig
    assert err.data == {}


def test_explicit_previous_is_never_moved_into_data():
    prev = KeyError("p")
    err = LogicalError("msg", 500, {"a": 1}, prev)
    assert err.data == {"a": 1}
    assert err.previous is prev

    data_exc = ValueError("d")
    err = LogicalError("msg", 500, data_exc, prev)
    assert err.previous is prev
    assert err.data is data_exc


def test_error_code_and_str():
    err = ForbiddenError("NO_ACCESS", error_code="E_FORBIDDEN")
    assert err.error_code == "E_FORBIDDEN"
    assert str(err) == "NO_ACCESS"
    assert kind_name(err) == "ForbiddenError"
    assert kind_name(ValueError()) == "ValueError"


def test_previous_cause_falls_back_to_dunder_cause():
    try:
        try:
            raise KeyError("inner")
        except KeyError as inner:
            raise RuntimeError("outer") from inner
    except RuntimeError as exc:
        assert isinstance(previous_cause_of(exc), KeyError)

    assert previous_cause_of({"previous": None}) is None
    assert previous_cause_of("plain") is None


def test_stack_trace_after_raise():
    assert LogicalError("never raised").stack_trace == []
    try:
        raise RangeError("OUT_OF_RANGE")
    except RangeError as exc:
        assert exc.stack_trace
        assert "test_stack_trace_after_raise" in exc.stack_trace[0]
