from __future__ import annotations

import json

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from smoke_checks import __version__
from smoke_checks.notify import FailureSink, Notifier
from smoke_checks.runner import handle_smoke
from smoke_checks.settings import SmokeSettings


def create_app(settings: SmokeSettings | None = None, *, notifier: FailureSink | None = None) -> FastAPI:
    settings = settings or SmokeSettings()
    sink = notifier if notifier is not None else Notifier.from_settings(settings)

    app = FastAPI(title="Smoke Checks", version=__version__)
    # The dashboard is served from a different origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings

    @app.get("/health")
    async def health() -> dict:
        return {"ok": True, "version": __version__}

    async def smoke(request: Request) -> JSONResponse:
        raw = await request.body()
        try:
            payload = json.loads(raw.decode("utf-8")) if raw.strip() else {}
        except ValueError:
            return JSONResponse(status_code=400, content={"error": "request body must be valid JSON"})
        status, body = await handle_smoke(payload, settings=settings, notifier=sink)
        return JSONResponse(status_code=status, content=body)

    app.add_api_route("/api/smoke", smoke, methods=["POST"])
    app.add_api_route("/smoke", smoke, methods=["POST"], include_in_schema=False)
    return app
