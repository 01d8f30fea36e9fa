"""Lightweight SQL migrations runner.

Applies ``.sql`` files in lexical order from the project ``migrations/``
directory and records applied filenames in a file-backed journal
(``migrations/_journal.json``) so a file is never applied twice. Intended for
local development and CI; production deployments run the same SQL through
their own migration tooling.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"
JOURNAL_NAME = "_journal.json"


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        if "rollback" in p.name.lower():
            continue
        yield p


def _exec_sql_compat(conn: Connection, sql: str) -> None:
    """Execute a possibly multi-statement SQL script.

    pysqlite refuses several statements per execute(), so SQLite scripts are
    split on ';' (comment-only and BEGIN/COMMIT segments skipped). Other
    dialects receive the script as-is.
    """
    name = (getattr(conn.dialect, "name", "") or "").lower()
    if "sqlite" not in name:
        conn.exec_driver_sql(sql)
        return
    for stmt in sql.split(";"):
        lines = [ln for ln in stmt.splitlines() if not ln.strip().startswith("--")]
        s = "\n".join(lines).strip()
        if not s or s.upper() in {"BEGIN", "COMMIT", "END"}:
            continue
        conn.exec_driver_sql(s)


def _load_journal(journal_path: Path) -> list[dict]:
    if not journal_path.exists():
        return []
    try:
        data = json.loads(journal_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.error("migration_journal_parse_failed path=%s", str(journal_path), exc_info=True)
        return []
    return [e for e in data if isinstance(e, dict)] if isinstance(data, list) else []


def apply_migrations(
    engine: Engine,
    migrations_dir: str | os.PathLike[str] | None = None,
    *,
    use_journal: bool = True,
) -> list[str]:
    """Apply pending migrations; return the filenames applied in this run.

    ``use_journal=False`` skips the file journal, for throwaway databases
    (in-memory SQLite, per-test files) that always start empty. The schema
    files use ``IF NOT EXISTS`` so reapplying them is harmless.
    """
    root = Path(migrations_dir) if migrations_dir is not None else DEFAULT_MIGRATIONS_DIR
    if not root.exists():
        logger.warning("migrations_dir_missing path=%s", str(root))
        return []

    journal_path = root / JOURNAL_NAME
    journal_entries = _load_journal(journal_path) if use_journal else []
    applied = {Path(str(e.get("filename", ""))).name for e in journal_entries}
    ran: list[str] = []

    with engine.begin() as conn:
        for sql_path in _iter_sql_files(root):
            fname = sql_path.name
            if fname in applied:
                continue
            sql = sql_path.read_text(encoding="utf-8")
            if not sql.strip():
                continue
            _exec_sql_compat(conn, sql)
            ran.append(fname)
            logger.info("migration_applied file=%s", fname)
            if use_journal:
                journal_entries.append(
                    {
                        "filename": f"migrations/{fname}",
                        "applied_at": datetime.now(timezone.utc)
                        .replace(microsecond=0)
                        .isoformat()
                        .replace("+00:00", "Z"),
                    }
                )
                _atomic_write_json(journal_path, journal_entries)
    return ran


def _atomic_write_json(path: Path, content: list[dict]) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(content, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp_path, path)
