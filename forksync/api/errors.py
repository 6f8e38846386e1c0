"""Unified error handling: SyncError + RequestValidationError → JSON."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from forksync.engines.sync.errors import (
    AuthError,
    ConflictError,
    DuplicateProposalError,
    GitHubError,
    NoRepositoryError,
    NotAForkError,
    NotFoundError,
    RateLimitError,
    RequestTimeoutError,
    SyncError,
    ValidationError,
)

_STATUS_MAP: dict[type[SyncError], int] = {
    NotFoundError: 404,
    NoRepositoryError: 404,
    NotAForkError: 422,
    ValidationError: 422,
    ConflictError: 409,
    DuplicateProposalError: 409,
    AuthError: 502,
    RateLimitError: 503,
    RequestTimeoutError: 504,
    GitHubError: 502,
}


def status_for(exc: SyncError) -> int:
    """Most specific status code for *exc*, walking its MRO."""
    for cls in type(exc).__mro__:
        if cls in _STATUS_MAP:
            return _STATUS_MAP[cls]
    return 500


def error_body(exc: SyncError) -> dict:
    return {
        "ok": False,
        "error": {"kind": exc.kind, "message": str(exc), "retryable": exc.retryable},
    }


async def _sync_error_handler(_request: Request, exc: SyncError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content=error_body(exc))


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}")
    return JSONResponse(
        status_code=422,
        content={"ok": False, "detail": "; ".join(messages)},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the app."""
    app.add_exception_handler(SyncError, _sync_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
