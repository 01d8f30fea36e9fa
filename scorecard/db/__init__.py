"""Database bootstrap utilities for the scorecard service.

This module exposes convenience imports for engine/session construction and a
migrations runner that applies SQL files from the local migrations/
directory. Repositories use SQL text for catalog reads and the ORM only for
recorded answer rows.
"""

from scorecard.db.base import get_engine, get_sessionmaker, session_scope
from scorecard.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "get_sessionmaker",
    "session_scope",
    "apply_migrations",
]
