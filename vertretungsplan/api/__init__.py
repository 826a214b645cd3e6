"""FastAPI endpoints for the substitution plan.

Endpoints:
    - GET /: Service descriptor
    - GET /api/health: Service health status
    - GET /api/substitutions[/today|/tomorrow]: Plan by day
    - GET /api/substitutions/class/{className}: Plan for one class
    - POST /api/update: Manual refresh
"""

from vertretungsplan.api.app import create_app

__all__ = ["create_app"]
