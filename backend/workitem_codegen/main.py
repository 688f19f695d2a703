"""Work Item Codegen: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# configure_structlog must run before the other package imports: structlog
# caches the processor chain on first use.
from workitem_codegen.core.logging import configure_structlog
from workitem_codegen.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from workitem_codegen.api.routes import api_router
from workitem_codegen.core.config import get_settings
from workitem_codegen.core.exceptions import ConfigurationError
from workitem_codegen.core.repositories import load_repositories
from workitem_codegen.integrations import AzureDevOpsClient, GenerationServiceCache
from workitem_codegen.middleware.correlation import get_correlation_id, setup_correlation_middleware
from workitem_codegen.services import WorkItemPipeline

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the pipeline and its collaborators on startup."""
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, environment=settings.environment)

    app.state.repositories = load_repositories(settings)
    app.state.generators = GenerationServiceCache(settings)
    try:
        tracker = AzureDevOpsClient(settings)
    except ConfigurationError as exc:
        app.state.pipeline = None
        logger.warning("pipeline_disabled", reason=str(exc))
    else:
        app.state.pipeline = WorkItemPipeline(
            settings=settings,
            tracker=tracker,
            generators=app.state.generators,
            repositories=app.state.repositories,
        )
        logger.info("pipeline_initialized", repositories=len(app.state.repositories))

    yield

    logger.info("shutdown_begin")
    app.state.generators.clear()
    logger.info("shutdown_complete")


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTPException handler with debug_id tracking."""
    debug_id = str(uuid.uuid4())
    logger.error(
        "http_exception",
        status_code=exc.status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        detail=exc.detail,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "debug_id": debug_id},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled errors: log with traceback, return a generic 500 with a debug_id."""
    debug_id = str(uuid.uuid4())
    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "debug_id": debug_id},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Turns tracked work items into generated source and test files",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_correlation_middleware(app)

    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "workitem_codegen.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
