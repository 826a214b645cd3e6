"""Unit tests for individual components in isolation.

Coverage:
    - parsing/: Normalization, PDF text extraction, both extraction strategies
    - pipeline/: Fetcher, store, refresh cycle, queries, scheduler
    - config: Service and interpreter configuration

Uses fakes for the upstream server and the LLM interpreter.
"""
