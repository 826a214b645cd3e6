"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - make_pdf: Builds a one-page PDF with given text lines
    - clock: Deterministic clock advancing one second per call
    - service_config: Configuration pointing at fake upstream URLs
    - fake_fetcher: In-memory stand-in for the document fetcher
    - orchestrator / store: Refresh pipeline wired to the fakes
    - async_client: HTTPX client for API testing (scheduler disabled)
"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from vertretungsplan.api.app import create_app
from vertretungsplan.config import ServiceConfig
from vertretungsplan.errors import FetchError
from vertretungsplan.parsing.extractor import PatternExtractor
from vertretungsplan.pipeline.refresh import RefreshOrchestrator
from vertretungsplan.pipeline.store import SnapshotStore

TODAY_URL = "https://plan.test/v_schueler_heute.pdf"
TOMORROW_URL = "https://plan.test/v_schueler_morgen.pdf"

TODAY_LINES = [
    "Vertretungsplan Montag 19.10.2026",
    "3  6abcd  Kob  102  Cop",
    "Entfall 5  6c  Nph  Pie  NWT3  entfaellt",
    "Raum-Vtr. 3  7b  Ph  Bru  310",
]
TOMORROW_LINES = [
    "Vertretungsplan Dienstag 20.10.2026",
    "Verlegung 3  9c  F  Brn  203  statt Ch",
    "2  J12  M  Hau  114",
]


def build_pdf(lines: list[str]) -> bytes:
    """Build a minimal one-page PDF that shows each line as a text row.

    Object offsets are computed while writing, so the cross-reference
    table is exact.
    """
    ops = []
    y = 800
    for line in lines:
        escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        ops.append(f"BT /F1 11 Tf 50 {y} Td ({escaped}) Tj ET")
        y -= 20
    stream = "\n".join(ops).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 595 842] "
        b"/Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


class TickingClock:
    """Clock that advances a fixed step on every call."""

    def __init__(
        self,
        start: datetime = datetime(2026, 10, 19, 6, 0, tzinfo=UTC),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


class FakeFetcher:
    """Serves documents from a dict; values that are exceptions are raised."""

    def __init__(self, documents: dict[str, bytes | Exception]) -> None:
        self.documents = documents
        self.calls: list[str] = []

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        document = self.documents.get(url)
        if document is None:
            raise FetchError(f"Upstream returned HTTP 404 for {url}", url=url, status_code=404)
        if isinstance(document, Exception):
            raise document
        return document


@pytest.fixture
def make_pdf() -> Callable[[list[str]], bytes]:
    """Return the PDF builder."""
    return build_pdf


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def service_config() -> ServiceConfig:
    """Configuration with fake upstream URLs and the pattern strategy."""
    return ServiceConfig(
        today_url=TODAY_URL,
        tomorrow_url=TOMORROW_URL,
        extraction_strategy="pattern",
        environment="production",
        timezone="Europe/Berlin",
    )


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher(
        {
            TODAY_URL: build_pdf(TODAY_LINES),
            TOMORROW_URL: build_pdf(TOMORROW_LINES),
        }
    )


@pytest.fixture
def store() -> SnapshotStore:
    return SnapshotStore()


@pytest.fixture
def orchestrator(
    service_config: ServiceConfig,
    store: SnapshotStore,
    fake_fetcher: FakeFetcher,
    clock: TickingClock,
) -> RefreshOrchestrator:
    """Orchestrator wired to the fake fetcher and the pattern extractor."""
    return RefreshOrchestrator.from_config(
        service_config,
        store,
        fetcher=fake_fetcher,
        extractor=PatternExtractor(clock=clock),
        clock=clock,
    )


@pytest.fixture
async def async_client(
    service_config: ServiceConfig,
    orchestrator: RefreshOrchestrator,
) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    app = create_app(service_config, orchestrator, run_scheduler=False)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
