from __future__ import annotations
import logging
import os
from typing import Any, Callable, Mapping

import structlog
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pythonjsonlogger import jsonlogger

log = structlog.get_logger("tracy.config")


def _default_log_sink(line: str) -> None:
    structlog.get_logger("tracy").error(line)


class RendererConfig(BaseSettings):
    log_sink: Callable[[str], None] = Field(default=_default_log_sink, exclude=True)
    base_directory: str = Field(default_factory=os.getcwd)
    production_message: str = "Internal Server Error"
    hide_production_message: bool = True
    lines_before_error: int = Field(default=10, ge=0)
    lines_after_error: int = Field(default=5, ge=0)
    editor_uri_template: str = "editor://open"
    html_responses_enabled: bool = True

    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("TRACY_ENV", "APP_ENV", "environment"),
    )

    model_config = SettingsConfigDict(
        env_prefix="TRACY_", env_file=".env", case_sensitive=False, extra="ignore"
    )

    def merged(self, options: Mapping[str, Any]) -> "RendererConfig":
        """Copy of this config with the recognized keys of ``options`` applied."""
        fields = type(self).model_fields
        unknown = sorted(k for k in options if k not in fields)
        if unknown:
            log.warning("ignoring unknown renderer options", options=unknown)

        current = {name: getattr(self, name) for name in fields}
        current.update({k: v for k, v in options.items() if k in fields})
        return type(self)(**current)


def _split_stack(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Failure lines from the renderer carry the stack after the first line."""
    event = event_dict.get("event")
    if isinstance(event, str) and "\n" in event:
        head, *frames = event.splitlines()
        event_dict["event"] = head
        event_dict["stack"] = [frame for frame in frames if frame.strip()]
    return event_dict


def setup_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(jsonlogger.JsonFormatter("%(levelname)s %(message)s %(name)s %(asctime)s"))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _split_stack,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(root.level),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
