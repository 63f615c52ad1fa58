from __future__ import annotations
from fastapi import FastAPI, Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from tracy.domain.exceptions import LogicalError
from tracy.middleware.context import BufferedResponse, RequestContext
from tracy.middleware.error_handler import Tracy


def respond(tracy: Tracy, request: Request, exc: BaseException) -> Response:
    buffered = BufferedResponse()
    tracy.handle_failure(RequestContext.from_starlette(request), buffered, exc)
    return buffered.to_response()


class TracyMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, tracy: Tracy):
        super().__init__(app)
        self.tracy = tracy

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return respond(self.tracy, request, exc)


def register_error_handlers(app: FastAPI, tracy: Tracy) -> None:

    async def _logical_error_handler(request: Request, exc: LogicalError) -> Response:
        return respond(tracy, request, exc)

    app.add_exception_handler(LogicalError, _logical_error_handler)
