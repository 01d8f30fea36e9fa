from __future__ import annotations

import logging
import os
from typing import Callable

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from scorecard.config import load_config
from scorecard.db.base import get_engine
from scorecard.db.migrations_runner import apply_migrations
from scorecard.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from scorecard.http.request_id import RequestIdMiddleware
from scorecard.logging_setup import configure_logging
from scorecard.middleware.cors import apply_cors
from scorecard.routes import api_router

logger = logging.getLogger(__name__)


def _health_check() -> Callable[[], dict]:
    def check() -> dict:
        try:
            with get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"status": "ok", "db": True}
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": str(e)}

    return check


def _auto_migrations_enabled() -> bool:
    return os.getenv("AUTO_APPLY_MIGRATIONS", "").strip().lower() in {"1", "true", "yes", "on"}


def create_app() -> FastAPI:
    # Configure global logging before app instantiation so all modules emit
    configure_logging()
    # Fail fast on invalid configuration
    cfg = load_config()

    app = FastAPI(title="Scorecard Service")
    app.state.config = cfg
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)
    apply_cors(app)

    # Apply migrations on startup (guarded) to avoid import-time side effects
    @app.on_event("startup")
    def _apply_migrations() -> None:
        if not _auto_migrations_enabled():
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
            return
        engine = get_engine()
        try:
            applied = apply_migrations(engine)
        except Exception:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise
        logger.info("startup_migrations_applied count=%s", len(applied))

    # Routers
    app.include_router(api_router, prefix="/api/v1")
    # Test-support router (no prefix) exposes '/__test__/...'
    from scorecard.routes.test_support import router as test_support_router

    app.include_router(test_support_router)

    health_check = _health_check()

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return health_check()

    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
