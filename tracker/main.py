from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tracker.api.activity import router as activity_router
from tracker.api.analytics import router as analytics_router
from tracker.api.curricula import router as curricula_router
from tracker.api.health import router as health_router
from tracker.api.metrics_endpoint import router as metrics_router
from tracker.api.progress import router as progress_router
from tracker.api.projects import router as projects_router
from tracker.core.config import SETTINGS
from tracker.core.errors import TrackerError
from tracker.core.logging import setup_logging
from tracker.db.engine import lifespan_db
from tracker.middleware.metrics import MetricsMiddleware
from tracker.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_db():
        yield


app = FastAPI(
    title="curriculum-tracker",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s",
            exc.code,
            request.method,
            request.url.path,
            exc.message,
            extra={"error_code": exc.code},
        )
    else:
        logger.info(
            "Rejected %s %s: %s",
            request.method,
            request.url.path,
            exc.code,
            extra={"error_code": exc.code},
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


# Middleware execution order: last-added runs first (outermost layer).
# RequestContext (outermost) -> Metrics -> route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(curricula_router)
app.include_router(projects_router)
app.include_router(progress_router)
app.include_router(activity_router)
app.include_router(analytics_router)

logger.info(
    "curriculum-tracker started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)


def run() -> None:
    """Console entry point: serve the app with uvicorn on SETTINGS.port."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=SETTINGS.port, log_config=None)
