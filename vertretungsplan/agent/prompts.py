"""Instruction text for the interpreter extraction strategy."""

from datetime import datetime

EXTRACTION_INSTRUCTIONS = """\
Analyze this German substitute plan (Vertretungsplan) and extract ALL substitution \
entries as a JSON array.

IMPORTANT: Look for these patterns in the text:
- "Vertretung3 - 46abcdKob102kRCop102" = Substitution for period 3, classes 6abcd, \
teacher Kob, room 102, replacing teacher Cop
- "Entfall5 - 66c---------NphPieNWT3" = Cancellation for period 5, class 6c, \
subject Nph, teacher Pie, room NWT3
- "Raum-Vtr.3 - 47bBruPh310PhBruPHHS" = Room change for period 3, class 7b, \
teacher Bru, subject Ph, new room 310, old room PHHS
- "Verlegung39cBrnF203ChBetCHHS" = Relocation for period 3, class 9c, teacher Brn, \
subject F, room 203, replacing Ch teacher Bet

Extract EVERY substitution entry and return as valid JSON array:
[
  {{
    "type": "Vertretung|Entfall|Raum-Vtr|Verlegung",
    "period": "period number",
    "class": "class name (e.g. 6abcd, 7b, J12)",
    "subject": "subject abbreviation",
    "teacher": "teacher name",
    "room": "room number",
    "originalSubject": "original subject if different",
    "originalTeacher": "original teacher if different",
    "originalRoom": "original room if different",
    "notes": "additional notes",
    "timestamp": "{timestamp}"
  }}
]
"""

CLASS_FILTER = 'FILTER: Only return entries for class "{target_class}" (case-insensitive).'

RESPONSE_RULES = "Return ONLY valid JSON array, no explanations or markdown."


def build_extraction_prompt(
    text: str,
    extracted_at: datetime,
    target_class: str | None = None,
) -> str:
    """Assemble the full instruction for one plan document.

    Args:
        text: Raw text extracted from the plan PDF.
        extracted_at: Timestamp every returned entry must carry.
        target_class: Optional class the interpreter should restrict itself to.

    Returns:
        Prompt ready to send to the interpreter.
    """
    sections = [EXTRACTION_INSTRUCTIONS.format(timestamp=extracted_at.isoformat())]
    if target_class:
        sections.append(CLASS_FILTER.format(target_class=target_class))
    sections.append(f"TEXT TO ANALYZE:\n{text}")
    sections.append(RESPONSE_RULES)
    return "\n\n".join(sections)
