"""Test package for the Vertretungsplan API.

Structure:
    - unit/: Individual function and class tests
    - integration/: HTTP API and full refresh pipeline tests

PDF fixtures are generated in-process by ``conftest.build_pdf``.
Leverages pytest with pytest-check for soft assertions.
"""
