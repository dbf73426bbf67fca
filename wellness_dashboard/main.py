"""Main FastAPI application."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from wellness_dashboard import __version__
from wellness_dashboard.api.v1 import api_router
from wellness_dashboard.core.config import settings
from wellness_dashboard.core.exceptions import (
    APIException,
    api_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from wellness_dashboard.core.logging import bind_request_context, configure_logging, get_logger
from wellness_dashboard.observability.metrics import PrometheusMiddleware, get_metrics, get_metrics_content_type

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Track application start time
app_start_time = time.time()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to the request, its log context and the response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        with bind_request_context(request_id):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "Starting Wellness Dashboard API",
        version=__version__,
        environment=settings.env,
        store_configured=bool(settings.database_url),
    )
    yield
    logger.info("Shutting down Wellness Dashboard API")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="Daily sales, registration, closing and occupancy reports for a clinic branch",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else [],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestIDMiddleware)

if settings.prometheus_enabled:
    app.add_middleware(PrometheusMiddleware, app_name="wellness_dashboard")

app.add_exception_handler(APIException, api_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Liveness check with uptime."""
    uptime = time.time() - app_start_time
    return {
        "status": "ok",
        "message": "Wellness Dashboard API is running",
        "uptime_seconds": round(uptime, 2),
        "version": __version__,
        "environment": settings.env,
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    if not settings.prometheus_enabled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Metrics not enabled"
        )
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "wellness_dashboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
