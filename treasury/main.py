"""ASGI entrypoint for the church treasury API."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from treasury.api.errors import http_error
from treasury.api.routes import register_routes
from treasury.core.config import Settings, get_settings
from treasury.core.logging import configure_logging
from treasury.obs import (
    AuditMiddleware,
    PrometheusMiddleware,
    initialise_tracing,
    instrument_fastapi_app,
    metrics_router,
)
from treasury.services.errors import TreasuryError

logger = logging.getLogger(__name__)


def _lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if not settings.cron_secret:
            logger.warning("CRON_SECRET is not set; scheduled auto-transfer calls will be refused")
        logger.info("treasury api started", extra={"timezone": settings.timezone})
        yield

    return lifespan


async def _treasury_error_handler(_: Request, exc: TreasuryError) -> JSONResponse:
    # Errors raised outside a route's own mapping, e.g. from dependencies.
    error = http_error(exc)
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


def create_application(settings: Settings | None = None) -> FastAPI:
    """Build the API with middleware, routers and observability wired in."""
    settings = settings or get_settings()
    configure_logging(settings.logging_config_path)

    if settings.enable_tracing:
        initialise_tracing(service_name=settings.app_name, endpoint=settings.otel_exporter_endpoint)

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        lifespan=_lifespan(settings),
    )
    application.add_exception_handler(TreasuryError, _treasury_error_handler)

    application.add_middleware(AuditMiddleware, settings=settings)
    if settings.enable_metrics:
        application.add_middleware(PrometheusMiddleware)
        application.include_router(metrics_router)
    register_routes(application)

    if settings.enable_tracing:
        instrument_fastapi_app(application)

    return application


app = create_application()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "treasury.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )
