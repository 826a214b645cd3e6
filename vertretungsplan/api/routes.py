"""Plan endpoints.

Read routes answer from the published snapshot; the update route runs one
refresh cycle synchronously.
"""

import logging
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from vertretungsplan import __version__
from vertretungsplan.models.schemas import (
    DayFilter,
    HealthResponse,
    PlanView,
    ServiceInfo,
    UpdateResponse,
)
from vertretungsplan.pipeline.query import QueryService
from vertretungsplan.pipeline.refresh import RefreshOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["substitutions"])

ENDPOINTS = {
    "/api/health": "Health check",
    "/api/substitutions": "Get all substitutions",
    "/api/substitutions/today": "Get today's substitutions",
    "/api/substitutions/tomorrow": "Get tomorrow's substitutions",
    "/api/substitutions/class/{className}": "Get substitutions for specific class",
    "/api/update": "Trigger a refresh (POST)",
}


def _query(request: Request) -> QueryService:
    return request.app.state.query_service


def _orchestrator(request: Request) -> RefreshOrchestrator:
    return request.app.state.orchestrator


@router.get("/", response_model=ServiceInfo)
async def service_info(request: Request) -> ServiceInfo:
    """Describe the service and list its endpoints."""
    snapshot = _orchestrator(request).store.read()
    return ServiceInfo(
        service="Vertretungsplan API",
        version=__version__,
        status="running",
        last_updated=snapshot.last_updated,
        endpoints=ENDPOINTS,
    )


@router.get("/api/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Check service health status.

    Reports healthy even while the last refresh failed; ``hasError`` tells
    the two apart.
    """
    snapshot = _orchestrator(request).store.read()
    return HealthResponse(
        timestamp=datetime.now(UTC),
        uptime=time.monotonic() - request.app.state.started_at,
        last_updated=snapshot.last_updated,
        has_error=snapshot.last_error is not None,
    )


@router.get("/api/substitutions", response_model=PlanView)
async def get_substitutions(request: Request) -> PlanView:
    """Return both days of the plan.

    Raises:
        500: The last refresh failed.
    """
    return _query(request).get_all()


@router.get("/api/substitutions/today")
async def get_today(request: Request) -> dict[str, Any]:
    """Return today's plan with ``lastUpdated``."""
    return _query(request).get_day(DayFilter.TODAY).as_payload()


@router.get("/api/substitutions/tomorrow")
async def get_tomorrow(request: Request) -> dict[str, Any]:
    """Return tomorrow's plan with ``lastUpdated``."""
    return _query(request).get_day(DayFilter.TOMORROW).as_payload()


@router.get("/api/substitutions/class/{class_name}")
async def get_class(
    request: Request,
    class_name: str,
    day: DayFilter = DayFilter.BOTH,
) -> dict[str, Any]:
    """Return the entries of one class.

    Args:
        class_name: Class label, matched case- and whitespace-insensitively.
        day: ``today``, ``tomorrow`` or ``both`` (default).

    Raises:
        422: Unknown ``day`` value.
        500: The last refresh failed.
    """
    return _query(request).get_by_class(class_name, day).as_payload()


@router.post("/api/update", response_model=UpdateResponse)
async def update_plans(request: Request) -> UpdateResponse | JSONResponse:
    """Run one refresh cycle now.

    Upstream failures do not fail this request; they are stored and show up
    as 500s on the read routes. Only an internal error returns 500 here.
    """
    outcome = await _orchestrator(request).refresh()

    if outcome.internal:
        config = request.app.state.config
        raw = outcome.error.message if outcome.error else "Unknown error"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": raw if config.is_development else "Internal Server Error",
                "message": "Failed to update substitute plans",
            },
        )

    if outcome.ok:
        message = "Substitute plans updated successfully"
    else:
        message = "Upstream unavailable, previous substitute plans kept"
        logger.warning(f"Manual update failed upstream: {outcome.error}")

    return UpdateResponse(message=message, last_updated=outcome.last_updated)
