"""
Main FastAPI Application Entry Point

This module initializes and configures the FastAPI application with
logging, middleware, routers, error handlers and lifecycle events.
"""

from contextlib import asynccontextmanager
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from stockwatch import __version__
from stockwatch.api import v1
from stockwatch.config import settings
from stockwatch.providers.base import StockProviderError
from stockwatch.providers.registry import ProviderRegistry
from stockwatch.services.quote_service import QuoteService
from stockwatch.telemetry import setup_telemetry

# Configure structured logging
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=False
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Builds the provider registry once per process. A ConfigurationError
    (no provider has an API key) aborts startup.
    """
    logger.info("application_starting", service=settings.SERVICE_NAME, environment=settings.ENV)

    registry = ProviderRegistry.from_configs(settings.provider_configs())
    app.state.quote_service = QuoteService(registry)

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="Stockwatch API",
    description="Stock search and quotes with provider failover",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.METRICS_ENABLED:
    setup_telemetry(app, service_name=settings.SERVICE_NAME, metrics_port=settings.METRICS_PORT)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Bind a request id to the log context and log each completed request."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    start_time = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

    response.headers["X-Request-ID"] = request_id
    if request.url.path not in ("/api/v1/health", "/api/v1/ping"):
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms
        )
    return response


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint returning API information."""
    return {
        "message": "Stockwatch API",
        "version": __version__,
        "status": "running",
        "environment": settings.ENV,
        "docs": "/docs"
    }


app.include_router(v1.router, prefix="/api/v1")


@app.exception_handler(StockProviderError)
async def stock_provider_exception_handler(request: Request, exc: StockProviderError):
    """Map provider errors to their HTTP status."""
    logger.warning(
        "stock_provider_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        provider=exc.provider,
        error=exc.message
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    Logs the error and returns a generic error response.
    """
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error": str(exc) if settings.DEBUG else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "stockwatch.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
