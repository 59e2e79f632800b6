"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from keyword_notifier.api.routes import health, items
from keyword_notifier.config.settings import get_settings
from keyword_notifier.observability.logging import bind_context, clear_context
from keyword_notifier.observability.tracing import (
    get_tracer,
    is_tracing_enabled,
    setup_tracing,
    traced,
)
from keyword_notifier.services.scheduler import Scheduler
from keyword_notifier.storage.base import ItemStore

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Listing API starting up")

    settings = get_settings()
    if settings.tracing_enabled and not is_tracing_enabled():
        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        )

    # Open our own store unless one was handed in by create_app()
    database = None
    if app.state.store is None:
        from keyword_notifier.services.factory import open_store

        app.state.store, database = await open_store(settings)

    yield

    logger.info("Listing API shutting down")
    if database is not None:
        await database.close()
        app.state.store = None


def create_app(
    store: ItemStore | None = None,
    scheduler: Scheduler | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: Item store to list from (default: opened from settings on startup)
        scheduler: Scheduler running in the same process, reported by /health

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Keyword Notifier",
        description="Items mentioning the configured keyword, collected from Twitter and Stack Overflow.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "health", "description": "Service health checks"},
            {"name": "items", "description": "Collected items"},
        ],
    )
    app.state.store = store
    app.state.scheduler = scheduler

    tracer = get_tracer("keyword_notifier.api")

    # Correlation id, request span and access log line per request
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        bind_context(request_id=request_id)
        start_time = time.perf_counter()

        try:
            with traced(
                tracer,
                f"{request.method} {request.url.path}",
                {"http.method": request.method, "http.request_id": request_id},
            ) as span:
                response = await call_next(request)
                span.set_attribute("http.status_code", response.status_code)

            response.headers["X-Request-ID"] = request_id
            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            return response
        finally:
            clear_context()

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    app.include_router(items.router, tags=["items"])
    app.include_router(health.router, tags=["health"])

    return app
