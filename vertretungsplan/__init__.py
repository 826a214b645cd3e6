"""Vertretungsplan - substitution plan API for a school.

Combines FastAPI for HTTP, pypdf for text extraction, APScheduler for
periodic refresh, Agno for optional LLM-based extraction, and Pydantic for
data validation.

Components:
    - api: HTTP endpoints and error handling
    - pipeline: Fetching, refresh cycles, snapshot store, queries
    - parsing: PDF text extraction and record extraction
    - agent: LLM interpreter for the alternative extraction strategy
    - models: Plan and response schemas
"""

__version__ = "1.0.0"
