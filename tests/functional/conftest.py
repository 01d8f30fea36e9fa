from __future__ import annotations

"""Functional test bootstrap for the scorecard service.

Use a file-backed SQLite database shared across the process so every
connection, the app's and the tests', sees the same schema. Migrations are
applied once at session start, before any test builds the FastAPI app via
TestClient. In-memory flow state is cleared around each test.

This file is intentionally scoped under tests/functional/ so Behave
(integration) runs are unaffected.
"""

import os
import pathlib
import pytest

# Point the app at the shared SQLite file before any import of scorecard.main
_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
# Disable app startup auto-migrations; the bootstrap applies them explicitly
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"


def _apply_sqlite_migrations() -> None:
    from scorecard.db.base import get_engine
    from scorecard.db.migrations_runner import apply_migrations

    engine = get_engine(os.environ["TEST_DATABASE_URL"])
    apply_migrations(engine, use_journal=False)


@pytest.fixture(scope="session", autouse=True)
def functional_sqlite_bootstrap() -> None:
    """Session-level bootstrap: apply migrations once for the shared DB."""
    _apply_sqlite_migrations()
    yield


@pytest.fixture(autouse=True)
def clean_inmemory_state():
    from scorecard.logic import events, inmemory_state

    events.EVENT_BUFFER.clear()
    inmemory_state.FLOW_SESSIONS.clear()
    inmemory_state.RECORDED_ANSWERS.clear()
    yield
    events.EVENT_BUFFER.clear()
    inmemory_state.FLOW_SESSIONS.clear()
    inmemory_state.RECORDED_ANSWERS.clear()


@pytest.fixture()
def engine():
    from scorecard.db.base import get_engine

    return get_engine(os.environ["TEST_DATABASE_URL"])
