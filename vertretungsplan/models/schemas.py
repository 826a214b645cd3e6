import datetime as dt
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# English labels an interpreter may answer with instead of the printed German ones
_KIND_SYNONYMS = {
    "substitution": "vertretung",
    "cancellation": "entfall",
    "roomchange": "raum-vtr",
    "room-change": "raum-vtr",
    "relocation": "verlegung",
}


class SubstitutionKind(str, Enum):
    """Kinds of entries printed on a substitution plan."""

    SUBSTITUTION = "Vertretung"
    CANCELLATION = "Entfall"
    ROOM_CHANGE = "Raum-Vtr"
    RELOCATION = "Verlegung"
    UNKNOWN = "unknown"

    @classmethod
    def from_label(cls, label: Any) -> "SubstitutionKind":
        """Map a printed or interpreted label onto a kind.

        Matching is case-insensitive and ignores a trailing dot
        (``"Raum-Vtr."``). Unrecognized labels become ``UNKNOWN``.
        """
        if isinstance(label, cls):
            return label
        if not label:
            return cls.UNKNOWN
        cleaned = str(label).strip().rstrip(".").lower()
        cleaned = _KIND_SYNONYMS.get(cleaned, cleaned)
        for kind in cls:
            if kind.value.lower() == cleaned:
                return kind
        return cls.UNKNOWN


class DayFilter(str, Enum):
    """Which day(s) a class query covers."""

    TODAY = "today"
    TOMORROW = "tomorrow"
    BOTH = "both"


class SubstitutionRecord(BaseModel):
    """One entry of a substitution plan.

    Attributes:
        kind: Entry kind (JSON ``type``).
        period: Lesson period as printed, e.g. ``"3"`` or ``"3-4"``.
        class_key: Class label as printed (JSON ``class``), may join several classes.
        subject: Subject code.
        teacher: Teacher code.
        room: Room code.
        original_subject: Subject being replaced.
        original_teacher: Teacher being replaced.
        original_room: Room being replaced.
        notes: Free text.
        extracted_at: When the entry was extracted (JSON ``timestamp``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: SubstitutionKind = Field(..., alias="type")
    period: str = Field(..., min_length=1)
    class_key: str = Field(default="", alias="class")
    subject: str | None = None
    teacher: str | None = None
    room: str | None = None
    original_subject: str | None = Field(default=None, alias="originalSubject")
    original_teacher: str | None = Field(default=None, alias="originalTeacher")
    original_room: str | None = Field(default=None, alias="originalRoom")
    notes: str | None = None
    extracted_at: dt.datetime = Field(..., alias="timestamp")

    @field_validator("kind", mode="before")
    @classmethod
    def coerce_kind(cls, v: Any) -> SubstitutionKind:
        return SubstitutionKind.from_label(v)

    @field_validator("period", mode="before")
    @classmethod
    def coerce_period(cls, v: Any) -> Any:
        """Accept integer periods and strip surrounding whitespace."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("class_key", mode="before")
    @classmethod
    def coerce_class_key(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator(
        "subject",
        "teacher",
        "room",
        "original_subject",
        "original_teacher",
        "original_room",
        "notes",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty strings as absent and accept numeric codes (room 102)."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str) and not v.strip():
            return None
        return v


class DaySnapshot(BaseModel):
    """Parse result for one day.

    Attributes:
        records: Entries in source order (JSON ``substitutions``).
        raw_text: Full extracted text (JSON ``rawText``).
        date: Calendar date the plan is for.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    records: tuple[SubstitutionRecord, ...] = Field(default=(), alias="substitutions")
    raw_text: str = Field(default="", alias="rawText")
    date: dt.date


class ErrorInfo(BaseModel):
    """Failure of the most recent refresh cycle."""

    model_config = ConfigDict(frozen=True)

    message: str
    timestamp: dt.datetime


class PlanSnapshot(BaseModel):
    """Everything the service currently knows about the plan.

    ``today`` and ``tomorrow`` hold the last successful parse; ``last_error``
    may be set alongside them when a later cycle failed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    today: DaySnapshot | None = None
    tomorrow: DaySnapshot | None = None
    last_updated: dt.datetime | None = Field(default=None, alias="lastUpdated")
    last_error: ErrorInfo | None = Field(default=None, alias="lastError")


class PlanView(BaseModel):
    """Both days of the current plan."""

    model_config = ConfigDict(populate_by_name=True)

    today: DaySnapshot | None = None
    tomorrow: DaySnapshot | None = None
    last_updated: dt.datetime | None = Field(default=None, alias="lastUpdated")


class DayView(BaseModel):
    """A single day, rendered flat with ``lastUpdated`` next to its fields."""

    day: DaySnapshot | None = None
    last_updated: dt.datetime | None = None

    def as_payload(self) -> dict[str, Any]:
        payload = self.day.model_dump(by_alias=True, mode="json") if self.day else {}
        payload["lastUpdated"] = self.model_dump(mode="json")["last_updated"]
        return payload


class ClassView(BaseModel):
    """Plan entries of one class.

    ``days`` only contains the days that were asked for, so a ``today``
    query renders without a ``tomorrow`` key.
    """

    days: dict[str, DaySnapshot | None]
    target_class: str
    last_updated: dt.datetime | None = None

    def as_payload(self) -> dict[str, Any]:
        dumped = self.model_dump(by_alias=True, mode="json")
        payload: dict[str, Any] = dict(dumped["days"])
        payload["targetClass"] = dumped["target_class"]
        payload["lastUpdated"] = dumped["last_updated"]
        return payload


class ServiceInfo(BaseModel):
    """Service descriptor returned by ``GET /``."""

    model_config = ConfigDict(populate_by_name=True)

    service: str
    version: str
    status: str
    last_updated: dt.datetime | None = Field(default=None, alias="lastUpdated")
    endpoints: dict[str, str]


class HealthResponse(BaseModel):
    """Liveness information returned by ``GET /api/health``."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = "healthy"
    timestamp: dt.datetime
    uptime: float = Field(..., ge=0)
    last_updated: dt.datetime | None = Field(default=None, alias="lastUpdated")
    has_error: bool = Field(..., alias="hasError")


class UpdateResponse(BaseModel):
    """Result of a manually triggered refresh."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    last_updated: dt.datetime | None = Field(default=None, alias="lastUpdated")
