"""FastAPI server for the AyurTrace Regulator Dashboard.

Main entry point for the API server.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import (
    health,
    auth,
    dashboard,
    batches,
    alerts,
    recalls,
    actions,
)
from api.services.dashboard import DashboardSession
from core.config import Settings, get_settings
from core.errors import (
    ExternalServiceError,
    NotFoundError,
    TraceError,
    ValidationError,
    WorkflowStateError,
)
from core.observability.logging import configure_logging, get_logger
from models.api_responses import ErrorResponse


logger = get_logger(__name__)

# Most specific first
ERROR_STATUS_CODES = (
    (NotFoundError, 404),
    (ValidationError, 400),
    (WorkflowStateError, 409),
    (ExternalServiceError, 502),
)


def status_code_for(exc: TraceError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def trace_error_handler(request: Request, exc: TraceError) -> JSONResponse:
    """Translate domain errors into {"detail": message} responses."""
    status_code = status_code_for(exc)
    extra = {}
    if exc.workflow_id:
        extra["workflow_id"] = exc.workflow_id
    if isinstance(exc, ExternalServiceError):
        extra["service"] = exc.service

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{request.method} {request.url.path} -> {status_code}: {exc.message}",
        extra_fields={"error_type": type(exc).__name__, "batch_id": exc.batch_id},
    )
    body = ErrorResponse(
        detail=exc.message,
        error_type=type(exc).__name__,
        batch_id=exc.batch_id,
        extra=extra,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    logger.info("AyurTrace API starting up...")
    await app.state.session.load()

    yield

    # Shutdown
    logger.info("AyurTrace API shutting down...")


def create_app(settings: Optional[Settings] = None, session: Optional[DashboardSession] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    app = FastAPI(
        title="AyurTrace Regulator API",
        description="Regulator dashboard for Ayurvedic supply-chain batch traceability, recalls and compliance actions",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.session = session or DashboardSession.from_settings(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TraceError, trace_error_handler)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix="/api", tags=["Authentication"])
    app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
    app.include_router(batches.router, prefix="/batches", tags=["Batches"])
    app.include_router(alerts.router, prefix="/alerts", tags=["Alerts"])
    app.include_router(recalls.router, prefix="/recalls", tags=["Recalls"])
    app.include_router(actions.router, prefix="/actions", tags=["Regulator Actions"])

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.server:create_app", factory=True, host="0.0.0.0", port=8000, reload=True)
