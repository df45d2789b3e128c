"""Exception handlers turning lifecycle errors into ``{"error": {...}}`` responses."""

from __future__ import annotations

import logging
from typing import cast

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from firm_docs.errors import DocumentError, GenerationUnavailableError

logger = logging.getLogger(__name__)


async def document_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = cast("DocumentError", exc)
    level = logging.WARNING if isinstance(error, GenerationUnavailableError) else logging.INFO
    logger.log(
        level,
        "Request rejected — method=%s path=%s kind=%s message=%s",
        request.method,
        request.url.path,
        error.kind,
        error.message,
    )
    return JSONResponse(status_code=error.status_code, content={"error": error.to_dict()})


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the traceback, return a generic 500 without internals."""
    logger.exception(
        "Unhandled exception — method=%s path=%s error=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "kind": "InternalError",
                "message": "An internal error occurred",
                "details": {},
            }
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DocumentError, document_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)
