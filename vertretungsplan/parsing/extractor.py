"""Substitution extraction strategies.

Two interchangeable ways of turning plan text into records:

1. **PatternExtractor** - a fixed-field line grammar. Deterministic and easy
   to inspect; breaks when the upstream layout drifts.
2. **InterpreterExtractor** - hands the text to an LLM interpreter and decodes
   the JSON array it answers with. Tolerates layout drift; output is only as
   good as the model.

Both satisfy the ``SubstitutionExtractor`` protocol, so the refresh pipeline
never needs to know which one it was given.
"""

import json
import logging
import re
from collections.abc import Awaitable, Callable, Iterator
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from vertretungsplan.agent.interpreter import get_interpreter_service
from vertretungsplan.agent.prompts import build_extraction_prompt
from vertretungsplan.errors import ParseFailure
from vertretungsplan.models.schemas import SubstitutionKind, SubstitutionRecord
from vertretungsplan.parsing.normalizer import normalize_class_key

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Prompt in, raw model answer out
Interpreter = Callable[[str], Awaitable[str]]


def utc_now() -> datetime:
    return datetime.now(UTC)


class SubstitutionExtractor(Protocol):
    async def extract(
        self,
        text: str,
        target_class_key: str | None = None,
    ) -> list[SubstitutionRecord]:
        """Extract plan entries from text, optionally for one class only."""


# [kind] period class subject teacher room [notes]
LINE_PATTERN = re.compile(
    r"""
    ^
    (?:(?P<kind>(?i:Vertretung|Entfall|Raum-Vtr\.?|Verlegung))\s+)?
    (?P<period>\d{1,2}(?:-\d{1,2})?)\s+
    (?P<class_key>\d{1,2}[a-zA-Z]*|[JKjk]\d{1,2}[a-zA-Z]*)\s+
    (?P<subject>\S+)\s+
    (?P<teacher>\S+)\s+
    (?P<room>\S+)
    (?:\s+(?P<notes>.+?))?
    \s*$
    """,
    re.VERBOSE,
)


class PatternExtractor:
    """Line grammar extractor.

    Fields are assigned strictly by position, so ``"3  6abcd  Kob  102  Cop"``
    yields subject ``Kob``, teacher ``102`` and room ``Cop``.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def parse_line(self, line: str, extracted_at: datetime) -> SubstitutionRecord | None:
        """Parse one line, or return None when it does not fit the grammar."""
        match = LINE_PATTERN.match(line.strip())
        if match is None:
            return None

        fields = match.groupdict()
        return SubstitutionRecord(
            kind=SubstitutionKind.from_label(fields["kind"]),
            period=fields["period"],
            class_key=fields["class_key"],
            subject=fields["subject"],
            teacher=fields["teacher"],
            room=fields["room"],
            notes=fields["notes"],
            extracted_at=extracted_at,
        )

    async def extract(
        self,
        text: str,
        target_class_key: str | None = None,
    ) -> list[SubstitutionRecord]:
        extracted_at = self._clock()
        wanted = (
            normalize_class_key(target_class_key) if target_class_key is not None else None
        )

        records: list[SubstitutionRecord] = []
        skipped = 0
        for line in text.splitlines():
            if not line.strip():
                continue
            record = self.parse_line(line, extracted_at)
            if record is None:
                skipped += 1
                logger.debug(f"Skipping line outside grammar: {line.strip()[:80]!r}")
                continue
            if wanted is not None and normalize_class_key(record.class_key) != wanted:
                continue
            records.append(record)

        logger.debug(f"Pattern extraction: {len(records)} records, {skipped} lines skipped")
        return records


_FENCE = re.compile(r"```[a-zA-Z]*")


def strip_code_fences(response: str) -> str:
    """Remove markdown code fence markers such as ```` ```json ````."""
    return _FENCE.sub("", response).strip()


def _balanced_spans(text: str, opener: str = "[", closer: str = "]") -> Iterator[str]:
    """Yield every balanced ``[...]`` span, outermost first, left to right.

    Brackets inside JSON string literals are ignored.
    """
    start = text.find(opener)
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = None
        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == opener:
                depth += 1
            elif char == closer:
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end is not None:
            yield text[start : end + 1]
        start = text.find(opener, start + 1)


def find_json_array(response: str) -> list[Any]:
    """Decode the first well-formed JSON array in an interpreter response.

    Args:
        response: Raw model output, possibly fenced and followed by prose.

    Returns:
        The decoded list.

    Raises:
        ParseFailure: If no span decodes to a JSON array.
    """
    cleaned = strip_code_fences(response)
    for span in _balanced_spans(cleaned):
        try:
            decoded = json.loads(span)
        except json.JSONDecodeError:
            continue
        if isinstance(decoded, list):
            return decoded
    raise ParseFailure("No JSON array found in interpreter response")


_TIMESTAMP = TypeAdapter(datetime)


def _timestamp_or(value: Any, fallback: datetime) -> datetime:
    """Return ``value`` as a datetime, or ``fallback`` when it is missing or unreadable."""
    if not value:
        return fallback
    try:
        return _TIMESTAMP.validate_python(value)
    except ValidationError:
        logger.debug(f"Replacing unreadable timestamp {value!r}")
        return fallback


def records_from_items(
    items: list[Any],
    extracted_at: datetime,
) -> list[SubstitutionRecord]:
    """Validate decoded items, dropping those without required structure."""
    records: list[SubstitutionRecord] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.debug(f"Dropping non-object item #{index}")
            continue
        payload = dict(item)
        payload["timestamp"] = _timestamp_or(payload.get("timestamp"), extracted_at)
        try:
            records.append(SubstitutionRecord.model_validate(payload))
        except ValidationError as e:
            logger.debug(f"Dropping invalid item #{index}: {e.error_count()} error(s)")
    return records


class InterpreterExtractor:
    """Extractor that delegates to an external text interpreter.

    Failures never leave this class: an unavailable interpreter or an
    unreadable answer both yield an empty list.
    """

    def __init__(
        self,
        interpret: Interpreter,
        clock: Clock = utc_now,
    ) -> None:
        self._interpret = interpret
        self._clock = clock

    async def extract(
        self,
        text: str,
        target_class_key: str | None = None,
    ) -> list[SubstitutionRecord]:
        extracted_at = self._clock()
        prompt = build_extraction_prompt(text, extracted_at, target_class_key)

        try:
            response = await self._interpret(prompt)
        except Exception as e:
            logger.warning(f"Interpreter unavailable, no records extracted: {e}")
            return []

        try:
            items = find_json_array(response or "")
        except ParseFailure as e:
            logger.warning(f"Interpreter extraction returned no records: {e}")
            return []

        records = records_from_items(items, extracted_at)
        logger.info(f"Interpreter extraction: {len(records)} of {len(items)} items accepted")
        return records


def build_extractor(
    strategy: str,
    interpret: Interpreter | None = None,
    clock: Clock = utc_now,
) -> SubstitutionExtractor:
    """Create the extractor for a configured strategy.

    Args:
        strategy: ``"pattern"`` or ``"interpreter"``.
        interpret: Interpreter callable. Defaults to the global Agno
            interpreter service when the interpreter strategy is chosen.
        clock: Source of extraction timestamps.

    Returns:
        The extractor instance.

    Raises:
        ValueError: If the strategy is unknown.
    """
    if strategy == "pattern":
        return PatternExtractor(clock=clock)
    if strategy == "interpreter":
        if interpret is None:
            interpret = get_interpreter_service().interpret
        return InterpreterExtractor(interpret, clock=clock)
    raise ValueError(f"Unknown extraction strategy: {strategy}")
