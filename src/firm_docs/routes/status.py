"""Status route: store reachability and configured providers."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from firm_docs import __version__

router = APIRouter(tags=["status"])


@router.get("/status")
async def status(request: Request) -> JSONResponse:
    """Report health; 503 when the record store is unreachable."""
    store = request.app.state.store
    engine = request.app.state.engine
    settings = request.app.state.settings
    start_time = request.app.state.start_time

    store_ok = await store.ping()
    body = {
        "status": "ok" if store_ok else "degraded",
        "version": __version__,
        "environment": settings.app.env,
        "uptime_seconds": round(time.monotonic() - start_time, 1),
        "store": {"backend": type(store).__name__, "reachable": store_ok},
        "providers": {
            "configured": engine.providers.configured,
            "unconfigured": engine.providers.unconfigured,
        },
    }
    return JSONResponse(status_code=200 if store_ok else 503, content=body)
