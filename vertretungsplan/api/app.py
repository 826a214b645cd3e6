"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
error handlers and router registration.
"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vertretungsplan import __version__
from vertretungsplan.api.routes import router
from vertretungsplan.config import ServiceConfig, get_service_config
from vertretungsplan.errors import PlanUnavailableError
from vertretungsplan.pipeline.query import QueryService
from vertretungsplan.pipeline.refresh import RefreshOrchestrator
from vertretungsplan.pipeline.scheduler import create_scheduler
from vertretungsplan.pipeline.store import SnapshotStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Starts the refresh scheduler, which runs the first refresh right away
    and then every configured interval.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    # Startup
    logger.info("Starting Vertretungsplan API...")
    scheduler = create_scheduler(
        app.state.orchestrator,
        interval_minutes=app.state.config.refresh_interval_minutes,
    )
    scheduler.start()
    logger.info(
        f"Refresh scheduled every {app.state.config.refresh_interval_minutes} minute(s)"
    )
    yield
    # Shutdown
    scheduler.shutdown(wait=False)
    logger.info("Shutting down Vertretungsplan API...")


def _register_error_handlers(application: FastAPI, config: ServiceConfig) -> None:
    @application.exception_handler(PlanUnavailableError)
    async def plan_unavailable_handler(
        request: Request, exc: PlanUnavailableError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={"error": exc.error.model_dump(mode="json"), "message": exc.message},
        )

    @application.exception_handler(StarletteHTTPException)
    async def not_found_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code != 404:
            return await http_exception_handler(request, exc)
        return JSONResponse(
            status_code=404,
            content={
                "error": "Not Found",
                "message": "The requested resource was not found",
            },
        )

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}: {exc!r}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": str(exc) if config.is_development else "Something went wrong!",
            },
        )


def create_app(
    config: ServiceConfig | None = None,
    orchestrator: RefreshOrchestrator | None = None,
    run_scheduler: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Service configuration. Loads from environment if not provided.
        orchestrator: Refresh orchestrator. Built from ``config`` if not
            provided; its store backs every query.
        run_scheduler: Start the periodic refresh in the app lifespan.

    Returns:
        Configured FastAPI application instance.
    """
    config = config or get_service_config()
    if orchestrator is None:
        orchestrator = RefreshOrchestrator.from_config(config, SnapshotStore())

    application = FastAPI(
        title="Vertretungsplan API",
        description=(
            "Serves the school's substitution plan for today and tomorrow. "
            "Downloads the published PDF plans every few minutes, extracts "
            "the entries and answers queries per day and per class."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan if run_scheduler else None,
    )

    application.state.config = config
    application.state.orchestrator = orchestrator
    application.state.query_service = QueryService(orchestrator.store)
    application.state.started_at = time.monotonic()

    application.add_middleware(GZipMiddleware, minimum_size=1000)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    _register_error_handlers(application, config)
    application.include_router(router)

    return application
