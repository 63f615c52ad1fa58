from __future__ import annotations
from pathlib import Path

import pytest

from tracy.middleware.error_handler import Tracy

TESTS_DIR = str(Path(__file__).resolve().parent)


class FakeResponse:
    """Records status/json/end calls made by the renderer."""

    def __init__(self):
        self.calls = []

    def status(self, code):
        self.calls.append(("status", code))

    def json(self, body):
        self.calls.append(("json", body))

    def end(self, raw):
        self.calls.append(("end", raw))

    def called(self, name):
        return [arg for n, arg in self.calls if n == name]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("TRACY_ENV", "APP_ENV", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def log_lines():
    return []


@pytest.fixture
def make_tracy(log_lines):
    def _make(environment="test", **options):
        tracy = Tracy(environment=environment)
        tracy.enable({"log_sink": log_lines.append, "base_directory": TESTS_DIR, **options})
        return tracy

    return _make


@pytest.fixture
def response():
    return FakeResponse()


@pytest.fixture
def tests_dir():
    return TESTS_DIR
