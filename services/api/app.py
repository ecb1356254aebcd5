"""
FastAPI application factory.

The lifespan event wires the collaborators once per process: SQLite
repository, httpx-backed link client, bounded enricher and the user query
service. Each receives its configuration explicitly from Settings.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from apps.enricher.client import HttpLinkLookupClient
from apps.enricher.enricher import BoundedEnricher
from apps.enricher.policy import EnrichmentPolicy
from services.api.routes import router
from services.api.users import UserQueryService
from utils.config import Settings, get_settings
from utils.db import SqliteUserRepository, init_schema
from utils.errors import ConfigError, PersistenceFailure
from utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings, defaults to get_settings()

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(level=settings.LOG_LEVEL, format_type=settings.LOG_FORMAT)
        init_schema(settings.SQLITE_PATH)

        client = HttpLinkLookupClient(
            settings.LINK_SERVICE_BASE_URL, timeout=settings.LINK_SERVICE_TIMEOUT
        )
        enricher = BoundedEnricher(
            client,
            policy=EnrichmentPolicy(refetch_existing=settings.ENRICH_REFETCH_EXISTING),
            concurrency_limit=settings.ENRICH_CONCURRENCY_LIMIT,
            deadline=settings.ENRICH_DEADLINE_SECONDS,
        )
        app.state.user_service = UserQueryService(SqliteUserRepository(settings.SQLITE_PATH), enricher)

        logger.info(
            "API started",
            extra={"app": settings.APP_NAME, "environment": settings.ENVIRONMENT},
        )
        try:
            yield
        finally:
            await client.aclose()
            app.state.user_service = None
            logger.info("API shutdown complete")

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.include_router(router)

    @app.exception_handler(PersistenceFailure)
    async def persistence_failure_handler(request: Request, exc: PersistenceFailure) -> JSONResponse:
        logger.error("Persistence failure", extra={"path": request.url.path, "error": str(exc)})
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(request: Request, exc: ConfigError) -> JSONResponse:
        logger.error("Enrichment misconfigured", extra={"path": request.url.path, "error": str(exc)})
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    return app
