"""Pydantic models for plan data and API responses.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - SubstitutionRecord: One entry of a substitution plan
    - DaySnapshot: Parse result for a single day
    - PlanSnapshot: Published state of the snapshot store
    - PlanView, DayView, ClassView: Read views served by the API
"""

from vertretungsplan.models.schemas import (
    ClassView,
    DayFilter,
    DaySnapshot,
    DayView,
    ErrorInfo,
    HealthResponse,
    PlanSnapshot,
    PlanView,
    ServiceInfo,
    SubstitutionKind,
    SubstitutionRecord,
    UpdateResponse,
)

__all__ = [
    "ClassView",
    "DayFilter",
    "DaySnapshot",
    "DayView",
    "ErrorInfo",
    "HealthResponse",
    "PlanSnapshot",
    "PlanView",
    "ServiceInfo",
    "SubstitutionKind",
    "SubstitutionRecord",
    "UpdateResponse",
]
