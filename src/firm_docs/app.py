"""FastAPI application factory and entry point."""

from __future__ import annotations

import logging
import secrets
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
import uvicorn
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from firm_docs import __version__
from firm_docs.config import Settings, load_settings
from firm_docs.database.client import CosmosClient, CosmosRecordStore
from firm_docs.database.store import InMemoryRecordStore
from firm_docs.lifecycle.engine import create_engine
from firm_docs.logging import configure_logging
from firm_docs.providers.registry import build_registry
from firm_docs.routes.documents import router as documents_router
from firm_docs.routes.errors import register_error_handlers
from firm_docs.routes.regulations import router as regulations_router
from firm_docs.routes.status import router as status_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from firm_docs.database.store import RecordStore
    from firm_docs.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


async def init_database(settings: Settings) -> tuple[RecordStore, CosmosClient | None]:
    """Cosmos DB when an endpoint is configured, otherwise a process-local store."""
    if not settings.cosmos.enabled:
        logger.warning("COSMOS_ENDPOINT not set, using the in-memory record store")
        return InMemoryRecordStore(), None
    cosmos = CosmosClient(settings.cosmos)
    await cosmos.initialize()
    return CosmosRecordStore(cosmos), cosmos


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    http_client = httpx.AsyncClient(timeout=settings.generation.timeout_seconds)
    cosmos: CosmosClient | None = None

    store = app.state.store
    if store is None:
        store, cosmos = await init_database(settings)
        app.state.store = store
    registry = app.state.registry or build_registry(settings, http_client)

    app.state.engine = create_engine(settings, store, registry)
    app.state.start_time = time.monotonic()
    logger.info("firm-docs started — env=%s version=%s", settings.app.env, __version__)
    try:
        yield
    finally:
        await http_client.aclose()
        if cosmos is not None:
            await cosmos.close()
        logger.info("firm-docs stopped")


def _session_secret(settings: Settings) -> str:
    if settings.app.secret_key:
        return settings.app.secret_key
    if not settings.app.is_development:
        raise RuntimeError("APP_SECRET_KEY must be set outside development")
    logger.warning("APP_SECRET_KEY not set, sessions will not survive a restart")
    return secrets.token_urlsafe(32)


def create_app(
    settings: Settings | None = None,
    *,
    store: RecordStore | None = None,
    registry: ProviderRegistry | None = None,
) -> FastAPI:
    """Build the app; ``store`` and ``registry`` replace the configured backends."""
    settings = settings or load_settings()
    configure_logging(settings.app.log_level, log_file=settings.app.log_file or None)

    app = FastAPI(title="firm-docs", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.registry = registry

    app.add_middleware(
        SessionMiddleware,
        secret_key=_session_secret(settings),
        https_only=not settings.app.is_development,
    )
    register_error_handlers(app)
    app.include_router(documents_router)
    app.include_router(regulations_router)
    app.include_router(status_router)
    return app


def main() -> None:
    settings = load_settings()
    uvicorn.run(
        "firm_docs.app:create_app",
        factory=True,
        host=settings.app.host,
        port=settings.app.port,
    )


if __name__ == "__main__":
    main()
