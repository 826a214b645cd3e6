"""Refresh cycle: fetch both plans, extract, publish.

One cycle runs strictly in sequence (today's fetch, tomorrow's fetch, text
extraction, record extraction) to keep load on the school server low.

Failure policy:
    - FetchError / ExtractionError abort the cycle. The previous days stay
      published and only ``last_error`` changes.
    - ParseFailure from an extractor yields an empty day; the cycle still
      succeeds.
    - Anything else is recorded like an abort but flagged ``internal`` so the
      update endpoint can report it as a service defect.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from vertretungsplan.config import ServiceConfig
from vertretungsplan.errors import ParseFailure, RefreshAbort
from vertretungsplan.models.schemas import (
    DaySnapshot,
    ErrorInfo,
    PlanSnapshot,
    SubstitutionRecord,
)
from vertretungsplan.parsing.extractor import (
    Clock,
    SubstitutionExtractor,
    build_extractor,
    utc_now,
)
from vertretungsplan.parsing.pdf_parser import parse_pdf
from vertretungsplan.pipeline.fetcher import DocumentFetcher
from vertretungsplan.pipeline.store import SnapshotStore

logger = logging.getLogger(__name__)


class RefreshOutcome(BaseModel):
    """Result of one refresh cycle.

    Attributes:
        ok: Both days were published.
        last_updated: ``last_updated`` of the store after the cycle.
        error: Failure recorded by this cycle.
        internal: The failure was an unexpected service error rather than
            an upstream problem.
    """

    ok: bool
    last_updated: datetime | None = None
    error: ErrorInfo | None = None
    internal: bool = False


class RefreshOrchestrator:
    """Runs refresh cycles against a SnapshotStore.

    Only one cycle runs at a time. A refresh requested while a cycle is in
    flight joins that cycle and receives its outcome.
    """

    def __init__(
        self,
        store: SnapshotStore,
        fetcher: DocumentFetcher,
        extractor: SubstitutionExtractor,
        today_url: str,
        tomorrow_url: str,
        timezone: str = "Europe/Berlin",
        pdf_layout_mode: bool = False,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._extractor = extractor
        self._today_url = today_url
        self._tomorrow_url = tomorrow_url
        self._zone = ZoneInfo(timezone)
        self._pdf_layout_mode = pdf_layout_mode
        self._clock = clock
        self._inflight: asyncio.Task[RefreshOutcome] | None = None

    @classmethod
    def from_config(
        cls,
        config: ServiceConfig,
        store: SnapshotStore,
        fetcher: DocumentFetcher | None = None,
        extractor: SubstitutionExtractor | None = None,
        clock: Clock = utc_now,
    ) -> "RefreshOrchestrator":
        """Build an orchestrator wired according to configuration.

        Args:
            config: Service configuration.
            store: Store the orchestrator publishes to.
            fetcher: Override for the document fetcher.
            extractor: Override for the configured extraction strategy.
            clock: Source of timestamps.

        Returns:
            Configured RefreshOrchestrator.
        """
        if fetcher is None:
            fetcher = DocumentFetcher(
                timeout=config.fetch_timeout,
                credentials=config.credentials,
                verify_tls=config.verify_tls,
            )
        if extractor is None:
            extractor = build_extractor(config.extraction_strategy, clock=clock)
        return cls(
            store=store,
            fetcher=fetcher,
            extractor=extractor,
            today_url=config.today_url,
            tomorrow_url=config.tomorrow_url,
            timezone=config.timezone,
            pdf_layout_mode=config.pdf_layout_mode,
            clock=clock,
        )

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def is_running(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def refresh(self) -> RefreshOutcome:
        """Run one refresh cycle, or join the one already running.

        Never raises for upstream or parsing problems; those end up in the
        store's ``last_error``.

        Returns:
            Outcome of the cycle.
        """
        if self.is_running:
            logger.info("Refresh already in progress, joining running cycle")
        else:
            self._inflight = asyncio.create_task(self._run_cycle())
        # Shielded so a disconnecting HTTP caller cannot cancel a shared cycle
        return await asyncio.shield(self._inflight)

    async def _run_cycle(self) -> RefreshOutcome:
        logger.info("Starting refresh cycle")
        try:
            today_pdf = await self._fetcher.fetch(self._today_url)
            tomorrow_pdf = await self._fetcher.fetch(self._tomorrow_url)

            today_text = await self._extract_text(today_pdf)
            tomorrow_text = await self._extract_text(tomorrow_pdf)

            today_records = await self._extract_records(today_text, "today")
            tomorrow_records = await self._extract_records(tomorrow_text, "tomorrow")
        except RefreshAbort as e:
            logger.error(f"Refresh cycle aborted: {e}")
            return self._record_failure(str(e), internal=False)
        except Exception as e:
            logger.exception("Unexpected error during refresh cycle")
            return self._record_failure(str(e) or type(e).__name__, internal=True)

        return self._publish(today_text, tomorrow_text, today_records, tomorrow_records)

    async def _extract_text(self, pdf_bytes: bytes) -> str:
        content = await asyncio.to_thread(parse_pdf, pdf_bytes, self._pdf_layout_mode)
        return content.text

    async def _extract_records(self, text: str, day: str) -> list[SubstitutionRecord]:
        try:
            return await self._extractor.extract(text)
        except ParseFailure as e:
            logger.warning(f"No usable records for {day}: {e}")
            return []

    def _publish(
        self,
        today_text: str,
        tomorrow_text: str,
        today_records: list[SubstitutionRecord],
        tomorrow_records: list[SubstitutionRecord],
    ) -> RefreshOutcome:
        previous = self._store.read()
        now = self._clock()
        # last_updated must move forward even on a coarse clock
        if previous.last_updated is not None and now <= previous.last_updated:
            now = previous.last_updated + timedelta(microseconds=1)

        today = now.astimezone(self._zone).date()
        snapshot = PlanSnapshot(
            today=DaySnapshot(records=tuple(today_records), raw_text=today_text, date=today),
            tomorrow=DaySnapshot(
                records=tuple(tomorrow_records),
                raw_text=tomorrow_text,
                date=today + timedelta(days=1),
            ),
            last_updated=now,
            last_error=None,
        )
        self._store.publish(snapshot)

        logger.info(
            f"Refresh cycle completed: {len(today_records)} entries today, "
            f"{len(tomorrow_records)} entries tomorrow"
        )
        return RefreshOutcome(ok=True, last_updated=now)

    def _record_failure(self, message: str, internal: bool) -> RefreshOutcome:
        previous = self._store.read()
        error = ErrorInfo(message=message, timestamp=self._clock())
        self._store.publish(previous.model_copy(update={"last_error": error}))
        return RefreshOutcome(
            ok=False,
            last_updated=previous.last_updated,
            error=error,
            internal=internal,
        )
