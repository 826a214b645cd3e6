"""Plan text processing.

Transforms downloaded plan documents into structured substitution records.

Responsibilities:
    - PDF text extraction with pypdf
    - Class label normalization
    - Record extraction with a line grammar or an LLM interpreter
"""

from vertretungsplan.parsing.extractor import (
    InterpreterExtractor,
    PatternExtractor,
    SubstitutionExtractor,
    build_extractor,
)
from vertretungsplan.parsing.normalizer import normalize_class_key
from vertretungsplan.parsing.pdf_parser import PDFContent, parse_pdf

__all__ = [
    "InterpreterExtractor",
    "PDFContent",
    "PatternExtractor",
    "SubstitutionExtractor",
    "build_extractor",
    "normalize_class_key",
    "parse_pdf",
]
