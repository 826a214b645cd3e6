"""Unit tests for the interpreter extraction strategy.

The interpreter is replaced by async fakes; no model is called.
"""

import json
from datetime import UTC, datetime

import pytest
import pytest_check as check

from vertretungsplan.agent.prompts import build_extraction_prompt
from vertretungsplan.errors import ParseFailure
from vertretungsplan.models.schemas import SubstitutionKind
from vertretungsplan.parsing.extractor import (
    InterpreterExtractor,
    PatternExtractor,
    build_extractor,
    find_json_array,
    strip_code_fences,
)

NOW = datetime(2026, 10, 19, 6, 0, tzinfo=UTC)

ITEMS = [
    {
        "type": "Vertretung",
        "period": "3",
        "class": "6abcd",
        "subject": "",
        "teacher": "Kob",
        "room": 102,
        "originalTeacher": "Cop",
        "notes": "",
        "timestamp": "2026-10-19T06:00:00+00:00",
    },
    {
        "type": "Entfall",
        "period": 5,
        "class": "6c",
        "subject": "Nph",
        "teacher": "Pie",
        "room": "NWT3",
        "timestamp": "2026-10-19T06:00:00+00:00",
    },
]
BARE = json.dumps(ITEMS)


def interpreter_answering(answer: str):
    prompts: list[str] = []

    async def interpret(prompt: str) -> str:
        prompts.append(prompt)
        return answer

    interpret.prompts = prompts
    return interpret


async def failing_interpreter(prompt: str) -> str:
    raise ConnectionError("model endpoint unreachable")


class TestFindJsonArray:
    def test_bare_array(self) -> None:
        assert find_json_array(BARE) == ITEMS

    def test_fenced_array_with_trailing_prose(self) -> None:
        """Fences and prose around the array do not change the decoded items."""
        wrapped = f"```json\n{BARE}\n```\n\nI found 2 entries [see above]."

        assert find_json_array(wrapped) == find_json_array(BARE)

    def test_leading_prose_with_brackets(self) -> None:
        response = f"Here you go [2 entries]: {BARE}"

        assert find_json_array(response) == ITEMS

    def test_brackets_inside_strings_are_ignored(self) -> None:
        items = [{"type": "Entfall", "period": "1", "notes": "Raum ] frei ["}]

        assert find_json_array(json.dumps(items)) == items

    def test_nested_arrays_and_objects(self) -> None:
        response = '[{"a": [1, [2, 3]], "b": {"c": [4]}}] trailing'

        assert find_json_array(response) == [{"a": [1, [2, 3]], "b": {"c": [4]}}]

    @pytest.mark.parametrize(
        "response",
        ["", "No entries today.", "[unterminated", '{"type": "Entfall"}', "[not json]"],
    )
    def test_no_array_raises_parse_failure(self, response: str) -> None:
        with pytest.raises(ParseFailure):
            find_json_array(response)

    def test_strip_code_fences(self) -> None:
        assert strip_code_fences("```json\n[]\n```") == "[]"


class TestInterpreterExtractor:
    async def test_decodes_records(self) -> None:
        extractor = InterpreterExtractor(interpreter_answering(BARE), clock=lambda: NOW)

        records = await extractor.extract("plan text")

        assert len(records) == 2
        first, second = records
        check.equal(first.kind, SubstitutionKind.SUBSTITUTION)
        check.equal(first.class_key, "6abcd")
        check.equal(first.room, "102")
        check.is_none(first.subject)
        check.equal(first.original_teacher, "Cop")
        check.equal(second.kind, SubstitutionKind.CANCELLATION)
        check.equal(second.period, "5")

    async def test_fenced_response_equals_bare_response(self) -> None:
        fenced = InterpreterExtractor(
            interpreter_answering(f"```json\n{BARE}\n```\nHope this helps!"),
            clock=lambda: NOW,
        )
        bare = InterpreterExtractor(interpreter_answering(BARE), clock=lambda: NOW)

        assert await fenced.extract("plan text") == await bare.extract("plan text")

    async def test_items_without_required_fields_are_dropped(self) -> None:
        items = [
            {"type": "Entfall", "class": "6c"},
            {"period": "2", "class": "7a"},
            "not an object",
            {"type": "Verlegung", "period": "4", "class": "9c"},
        ]
        extractor = InterpreterExtractor(
            interpreter_answering(json.dumps(items)), clock=lambda: NOW
        )

        records = await extractor.extract("plan text")

        assert len(records) == 1
        check.equal(records[0].kind, SubstitutionKind.RELOCATION)
        check.equal(records[0].extracted_at, NOW)

    async def test_unknown_type_is_kept_as_unknown(self) -> None:
        items = [{"type": "Sondereinsatz", "period": "1", "class": "5a"}]
        extractor = InterpreterExtractor(
            interpreter_answering(json.dumps(items)), clock=lambda: NOW
        )

        records = await extractor.extract("plan text")

        assert [r.kind for r in records] == [SubstitutionKind.UNKNOWN]

    @pytest.mark.parametrize("timestamp", ["heute", "19.10.2026 früh", ["x"]])
    async def test_unreadable_timestamp_is_replaced(self, timestamp: object) -> None:
        """Entries keep their place; only the extraction time is substituted."""
        items = [{"type": "Entfall", "period": "5", "class": "6c", "timestamp": timestamp}]
        extractor = InterpreterExtractor(
            interpreter_answering(json.dumps(items)), clock=lambda: NOW
        )

        records = await extractor.extract("plan text")

        assert len(records) == 1
        check.equal(records[0].kind, SubstitutionKind.CANCELLATION)
        check.equal(records[0].extracted_at, NOW)

    async def test_readable_timestamp_is_kept(self) -> None:
        items = [
            {
                "type": "Entfall",
                "period": "5",
                "class": "6c",
                "timestamp": "2026-10-19T05:30:00+00:00",
            }
        ]
        extractor = InterpreterExtractor(
            interpreter_answering(json.dumps(items)), clock=lambda: NOW
        )

        records = await extractor.extract("plan text")

        assert records[0].extracted_at == datetime(2026, 10, 19, 5, 30, tzinfo=UTC)

    async def test_unavailable_interpreter_yields_empty_list(self) -> None:
        extractor = InterpreterExtractor(failing_interpreter, clock=lambda: NOW)

        assert await extractor.extract("plan text") == []

    async def test_malformed_response_yields_empty_list(self) -> None:
        extractor = InterpreterExtractor(
            interpreter_answering("Sorry, I cannot read this plan."), clock=lambda: NOW
        )

        assert await extractor.extract("plan text") == []

    async def test_target_class_is_passed_as_instruction(self) -> None:
        interpret = interpreter_answering("[]")
        extractor = InterpreterExtractor(interpret, clock=lambda: NOW)

        await extractor.extract("plan text", "6abcd")

        assert len(interpret.prompts) == 1
        check.is_in('class "6abcd"', interpret.prompts[0])
        check.is_in("plan text", interpret.prompts[0])

    async def test_interpreter_filter_is_not_revalidated(self) -> None:
        """Whatever the interpreter returns for a class query is kept as is."""
        extractor = InterpreterExtractor(interpreter_answering(BARE), clock=lambda: NOW)

        records = await extractor.extract("plan text", "9z")

        assert len(records) == 2


class TestExtractionPrompt:
    def test_describes_all_entry_shapes(self) -> None:
        prompt = build_extraction_prompt("RAW PLAN", NOW)

        for word in ("Vertretung", "Entfall", "Raum-Vtr", "Verlegung"):
            check.is_in(word, prompt)
        check.is_in(NOW.isoformat(), prompt)
        check.is_in("TEXT TO ANALYZE:\nRAW PLAN", prompt)
        check.is_not_in("FILTER", prompt)

    def test_adds_filter_for_target_class(self) -> None:
        prompt = build_extraction_prompt("RAW PLAN", NOW, "7b")

        assert 'FILTER: Only return entries for class "7b"' in prompt


class TestBuildExtractor:
    def test_pattern_strategy(self) -> None:
        assert isinstance(build_extractor("pattern"), PatternExtractor)

    def test_interpreter_strategy_uses_given_interpreter(self) -> None:
        extractor = build_extractor("interpreter", interpret=failing_interpreter)

        assert isinstance(extractor, InterpreterExtractor)

    def test_unknown_strategy_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown extraction strategy"):
            build_extractor("ocr")
