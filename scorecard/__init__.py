"""FastAPI application package for the Scorecard Service.

This package exposes a small FastAPI application factory. It wires only
cross-cutting middleware (request-id and CORS) and mounts the API routers.
Flow, scoring and persistence logic lives in `scorecard/logic/` and route
handlers in `scorecard/routes/`.
"""

from __future__ import annotations

from scorecard.main import create_app

__all__ = ["create_app"]
