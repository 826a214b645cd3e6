"""Error hierarchy for the refresh pipeline.

Only ``RefreshAbort`` subclasses stop a refresh cycle. ``ParseFailure`` is
absorbed by the extractor that raised it and degrades to an empty day.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vertretungsplan.models.schemas import ErrorInfo


class VertretungsplanError(Exception):
    """Base exception for all service errors."""

    pass


class RefreshAbort(VertretungsplanError):
    """Failure that aborts the current refresh cycle."""

    pass


class FetchError(RefreshAbort):
    """Upstream document could not be retrieved.

    Examples: non-2xx status, timeout, DNS failure, TLS failure.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ExtractionError(RefreshAbort):
    """PDF bytes could not be turned into text (empty, corrupt, not a PDF)."""

    pass


class ParseFailure(VertretungsplanError):
    """An extraction strategy produced nothing usable."""

    pass


class PlanUnavailableError(VertretungsplanError):
    """The last refresh failed, so the plan is not served."""

    def __init__(self, error: ErrorInfo, message: str) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
