"""Service configuration with environment variable loading.

Pydantic-based configuration for the upstream documents, the refresh
schedule and the extraction strategy.
"""

import os
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

_DEFAULT_TODAY_URL = (
    "https://lessing-gymnasium-karlsruhe.de/stundenplan/schueler/v_schueler_heute.pdf"
)
_DEFAULT_TOMORROW_URL = (
    "https://lessing-gymnasium-karlsruhe.de/stundenplan/schueler/v_schueler_morgen.pdf"
)

# Pair the school hands out for the student plan
_DEFAULT_USERNAME = "vertretungsplan"
_DEFAULT_PASSWORD = "ephraim"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class ServiceConfig(BaseModel):
    """Configuration for the plan refresh pipeline.

    Attributes:
        today_url: URL of today's plan PDF.
        tomorrow_url: URL of tomorrow's plan PDF.
        username: Basic auth user for the upstream host (empty = no auth).
            Defaults to the school's published student login.
        password: Basic auth password for the upstream host.
        fetch_timeout: Seconds before a document download is abandoned.
        verify_tls: Verify the upstream certificate. Off by default because
            the school host serves a self-signed certificate.
        refresh_interval_minutes: Minutes between scheduled refreshes.
        extraction_strategy: ``pattern`` or ``interpreter``.
        timezone: Zone used to decide which calendar day is "today".
        environment: ``production`` or ``development``; development exposes
            raw error messages in 500 responses.
        pdf_layout_mode: Use pypdf's layout-preserving text extraction.
    """

    today_url: str = Field(
        default_factory=lambda: os.getenv("PLAN_TODAY_URL", _DEFAULT_TODAY_URL),
        description="URL of today's plan PDF",
    )
    tomorrow_url: str = Field(
        default_factory=lambda: os.getenv("PLAN_TOMORROW_URL", _DEFAULT_TOMORROW_URL),
        description="URL of tomorrow's plan PDF",
    )
    username: str = Field(
        default_factory=lambda: os.getenv("PLAN_USERNAME", _DEFAULT_USERNAME),
        description="Basic auth username for the upstream host",
    )
    password: str = Field(
        default_factory=lambda: os.getenv("PLAN_PASSWORD", _DEFAULT_PASSWORD),
        description="Basic auth password for the upstream host",
    )
    fetch_timeout: float = Field(
        default_factory=lambda: float(os.getenv("PLAN_FETCH_TIMEOUT", "10")),
        gt=0.0,
        description="Download timeout in seconds",
    )
    verify_tls: bool = Field(
        default_factory=lambda: _env_flag("PLAN_VERIFY_TLS"),
        description="Verify the upstream TLS certificate",
    )
    refresh_interval_minutes: int = Field(
        default_factory=lambda: int(os.getenv("PLAN_REFRESH_MINUTES", "5")),
        ge=1,
        description="Minutes between scheduled refreshes",
    )
    extraction_strategy: Literal["pattern", "interpreter"] = Field(
        default_factory=lambda: os.getenv("EXTRACTION_STRATEGY", "pattern").strip().lower(),
        validate_default=True,
        description="How plan text is turned into records",
    )
    timezone: str = Field(
        default_factory=lambda: os.getenv("PLAN_TIMEZONE", "Europe/Berlin"),
        validate_default=True,
        description="IANA zone that defines the school's calendar day",
    )
    environment: Literal["production", "development"] = Field(
        default_factory=lambda: os.getenv("APP_ENV", "production").strip().lower(),
        validate_default=True,
        description="Deployment environment",
    )
    pdf_layout_mode: bool = Field(
        default_factory=lambda: _env_flag("PDF_LAYOUT_MODE"),
        description="Preserve column layout when extracting PDF text",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject zone names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def credentials(self) -> tuple[str, str] | None:
        """Basic auth pair, or None when no username is configured."""
        if not self.username:
            return None
        return (self.username, self.password)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def get_service_config() -> ServiceConfig:
    """Create service configuration from environment.

    Returns:
        Configured ServiceConfig instance.

    Raises:
        ValueError: If an environment value is invalid.
    """
    return ServiceConfig()
