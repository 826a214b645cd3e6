"""Periodic refresh trigger using APScheduler."""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from vertretungsplan.pipeline.refresh import RefreshOrchestrator

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "refresh-plans"


def create_scheduler(
    orchestrator: RefreshOrchestrator,
    interval_minutes: int = 5,
    run_at_startup: bool = True,
) -> AsyncIOScheduler:
    """Create a scheduler that refreshes the plan periodically.

    The job never overlaps itself (``max_instances=1``) and missed runs are
    collapsed into one (``coalesce=True``).

    Args:
        orchestrator: Orchestrator whose ``refresh`` is invoked.
        interval_minutes: Minutes between runs.
        run_at_startup: Also run once as soon as the scheduler starts.

    Returns:
        Unstarted AsyncIOScheduler. Call ``start()`` inside a running loop.
    """

    async def scheduled_refresh() -> None:
        logger.info("Scheduled update triggered")
        outcome = await orchestrator.refresh()
        if not outcome.ok and outcome.error is not None:
            logger.warning(f"Scheduled update failed: {outcome.error.message}")

    job_options: dict[str, Any] = {}
    if run_at_startup:
        job_options["next_run_time"] = datetime.now(UTC)

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        scheduled_refresh,
        "interval",
        minutes=interval_minutes,
        id=REFRESH_JOB_ID,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=60,
        **job_options,
    )
    return scheduler
