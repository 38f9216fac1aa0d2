"""
Main FastAPI application.

Wires the search engine, the catalog snapshot and the HTTP routers
together:
- Search: thesaurus, fuzzy matcher, relevance scorer, index
- Services: catalog ownership and result presentation
- Session: search analytics
- Routers: HTTP endpoints
"""

import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from . import metrics as app_metrics
from .catalog import load_catalog
from .config import settings
from .dependencies import set_analytics, set_search_service
from .domain.exceptions import CatalogUnavailableException
from .logging_config import configure_logging
from .routers import health_router, search_router
from .services.guide_search_service import GuideSearchService
from .session.analytics import SearchAnalytics

logger = structlog.get_logger(__name__)


def create_search_service() -> GuideSearchService:
    """
    Create the search service and load the configured catalog.

    A catalog that cannot be loaded leaves the service without one; the
    readiness probe reports it and searches answer 503 until a catalog
    is set.

    Returns:
        Configured GuideSearchService instance
    """
    service = GuideSearchService.from_settings(settings)

    if settings.CATALOG_PATH:
        try:
            service.set_catalog(load_catalog(settings.CATALOG_PATH))
        except CatalogUnavailableException as e:
            logger.error("Failed to load guide catalog", error=e.message, **e.details)
    else:
        logger.warning("CATALOG_PATH not set, starting without a catalog")

    return service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    logger.info("Starting Guide Search Service...", service=settings.SERVICE_NAME)

    set_search_service(create_search_service())
    set_analytics(SearchAnalytics(history_size=settings.ANALYTICS_HISTORY_SIZE))

    logger.info("Guide Search Service started successfully")

    yield

    logger.info("Shutting down Guide Search Service...")
    set_search_service(None)
    set_analytics(None)
    logger.info("Guide Search Service shut down complete")


# Create FastAPI app
app = FastAPI(
    title="Guide Search Service",
    description="Typo-tolerant search over the installation guide catalog",
    version=health_router.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID for distributed tracing."""
    request_id = request.headers.get("X-Request-ID", f"req-{id(request)}")

    structlog.contextvars.bind_contextvars(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()

    response.headers["X-Request-ID"] = request_id
    return response


# Metrics middleware
@app.middleware("http")
async def track_metrics(request: Request, call_next):
    """Track Prometheus metrics."""
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    app_metrics.http_requests_total.labels(
        method=request.method, endpoint=request.url.path, status=response.status_code
    ).inc()
    app_metrics.http_request_duration_seconds.labels(
        method=request.method, endpoint=request.url.path
    ).observe(duration)

    return response


# Include routers
app.include_router(search_router.router)
app.include_router(health_router.router)


# Prometheus metrics endpoint
@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": settings.SERVICE_NAME,
        "version": health_router.SERVICE_VERSION,
        "status": "operational",
        "docs": "/api/docs",
        "search": "/api/v1/guides/search",
        "health": "/api/v1/health",
        "ready": "/api/v1/ready",
    }


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("guide_search.app:app", host="0.0.0.0", port=8000, log_level="info")
