"""Ingestion pipeline for the substitution plan.

Responsibilities:
    - Downloading both plan documents from the school server
    - Running refresh cycles and publishing snapshots
    - Holding the current snapshot for concurrent readers
    - Answering day and class queries
    - Triggering refreshes on a fixed interval
"""

from vertretungsplan.pipeline.fetcher import DocumentFetcher
from vertretungsplan.pipeline.query import QueryService
from vertretungsplan.pipeline.refresh import RefreshOrchestrator, RefreshOutcome
from vertretungsplan.pipeline.scheduler import create_scheduler
from vertretungsplan.pipeline.store import SnapshotStore

__all__ = [
    "DocumentFetcher",
    "QueryService",
    "RefreshOrchestrator",
    "RefreshOutcome",
    "SnapshotStore",
    "create_scheduler",
]
