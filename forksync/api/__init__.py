"""forksync webhook API: FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from forksync.api.deps import build_github_client
from forksync.api.errors import register_error_handlers
from forksync.api.middleware.request_id import RequestIDMiddleware
from forksync.api.routers import webhooks
from forksync.core.logging import setup_logging


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: open the GitHub client. Shutdown: close it."""
    app.state.github_client = build_github_client()
    try:
        yield
    finally:
        await app.state.github_client.close()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    setup_logging()

    app = FastAPI(title="forksync", lifespan=_lifespan)

    register_error_handlers(app)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", tags=["ops"])
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(webhooks.router, tags=["webhooks"])

    return app
