from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse, Response


class ResponseSink(Protocol):
    def status(self, code: int) -> Any: ...

    def json(self, body: Mapping[str, Any]) -> Any: ...

    def end(self, raw: str) -> Any: ...


def as_dict(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    if not hasattr(value, "__dict__"):
        return {"value": value}
    return {k: v for k, v in vars(value).items() if not k.startswith("_")}


@dataclass
class RequestContext:
    """Read-only view of the request the renderer reports on."""

    headers: dict[str, Any] = field(default_factory=dict)
    route: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    url: str = ""
    user_email: Optional[str] = None

    def __post_init__(self) -> None:
        self.headers = {str(k).lower(): v for k, v in self.headers.items()}

    @property
    def user_agent(self) -> str:
        return str(self.headers.get("user-agent") or "")

    @property
    def host(self) -> str:
        return str(self.headers.get("x-forwarded-host") or self.headers.get("host") or "")

    @classmethod
    def coerce(cls, request: Any) -> "RequestContext":
        if isinstance(request, cls):
            return request
        if isinstance(request, Request):
            return cls.from_starlette(request)

        if isinstance(request, Mapping):
            get = request.get
        else:
            def get(name):
                return getattr(request, name, None)

        user = get("user")
        email = user.get("email") if isinstance(user, Mapping) else getattr(user, "email", None)
        return cls(
            headers=dict(get("headers") or {}),
            route=as_dict(get("route")),
            params=dict(get("params") or {}),
            url=str(get("url") or ""),
            user_email=email,
        )

    @classmethod
    def from_starlette(cls, request: Request) -> "RequestContext":
        route_info: dict[str, Any] = {}
        route = request.scope.get("route")
        if route is not None:
            methods = getattr(route, "methods", None) or ()
            route_info = {
                "path": getattr(route, "path", None),
                "name": getattr(route, "name", None),
                "methods": ", ".join(sorted(methods)),
            }
            route_info = {k: v for k, v in route_info.items() if v}

        url = request.url.path
        if request.url.query:
            url += "?" + request.url.query

        user = request.scope.get("user")
        return cls(
            headers=dict(request.headers.items()),
            route=route_info,
            params={**request.query_params, **request.path_params},
            url=url,
            user_email=getattr(user, "email", None),
        )


class BufferedResponse:
    """Collects what the renderer writes and turns it into a Starlette response."""

    def __init__(self) -> None:
        self.status_code = 200
        self.body: Any = None
        self.media_type: Optional[str] = None

    def status(self, code: int) -> "BufferedResponse":
        self.status_code = code
        return self

    def json(self, body: Mapping[str, Any]) -> None:
        self.body = body
        self.media_type = "application/json"

    def end(self, raw: str) -> None:
        self.body = raw
        self.media_type = "text/html"

    def to_response(self) -> Response:
        if self.media_type == "text/html":
            return HTMLResponse(self.body, status_code=self.status_code)
        return JSONResponse(jsonable_encoder(self.body), status_code=self.status_code)
