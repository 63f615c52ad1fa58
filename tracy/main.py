# tracy/main.py
from __future__ import annotations
from fastapi import FastAPI

from tracy.core.config import setup_logging
from tracy.domain.exceptions import EXCEPTIONS, NotFoundError
from tracy.middleware.error_handler import Tracy
from tracy.middleware.handlers import TracyMiddleware, register_error_handlers


def create_app(tracy: Tracy | None = None) -> FastAPI:
    tracy = tracy or Tracy()
    if not tracy.is_enabled():
        tracy.enable()

    app = FastAPI(title="tracy-demo")
    app.state.tracy = tracy
    app.add_middleware(TracyMiddleware, tracy=tracy)
    register_error_handlers(app, tracy)

    kinds = {cls.kind.value: cls for cls in EXCEPTIONS}

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    @app.get("/errors/{kind}")
    def raise_error(kind: str, message: str = "DEMO_ERROR"):
        if kind not in kinds:
            raise NotFoundError("UNKNOWN_ERROR_KIND", {"kind": kind, "known": ", ".join(kinds)})
        raise kinds[kind](message)

    @app.get("/crash")
    async def crash():
        raise RuntimeError("unexpected crash")

    return app


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    uvicorn.run(create_app(), host="127.0.0.1", port=8000, log_config=None)
