"""Integration tests for components working together as a system.

Coverage:
    - API endpoints with real HTTP requests against the ASGI app
    - Full refresh from served PDF bytes to API responses

The upstream server is an httpx MockTransport; no network access needed.
"""
