"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from ``survey_stepper/db/migrations``.
Skips rollback files on forward runs and records applied filenames in a
``schema_migrations`` table so a file is never applied twice to the same
database. Production deployments may prefer Alembic; the SQL files are
plain enough to feed to any tool.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine

from survey_stepper.logic.clock import utc_now

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

_JOURNAL_DDL = (
    "CREATE TABLE IF NOT EXISTS schema_migrations ("
    "filename VARCHAR(255) PRIMARY KEY, applied_at VARCHAR(40) NOT NULL)"
)


def _is_rollback(path: Path) -> bool:
    return "rollback" in path.name.lower()


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        if _is_rollback(p):
            continue
        yield p


def _statements(sql: str) -> list[str]:
    """Split a script into statements, dropping comment lines and blanks."""
    lines = [ln for ln in sql.splitlines() if not ln.strip().startswith("--")]
    out: list[str] = []
    for stmt in "\n".join(lines).split(";"):
        s = stmt.strip()
        if not s or s.upper() in {"BEGIN", "COMMIT", "END"}:
            continue
        out.append(s)
    return out


def _exec_script(conn: Connection, sql: str) -> None:
    # pysqlite refuses multi-statement execute(); run statements one by one everywhere
    for stmt in _statements(sql):
        conn.exec_driver_sql(stmt)


def applied_migrations(engine: Engine) -> set[str]:
    with engine.begin() as conn:
        conn.exec_driver_sql(_JOURNAL_DDL)
        rows = conn.execute(sql_text("SELECT filename FROM schema_migrations")).fetchall()
    return {str(r[0]) for r in rows}


def apply_migrations(engine: Engine, migrations_dir: str | os.PathLike[str] | None = None) -> list[str]:
    """Apply pending forward migrations; return the filenames applied."""
    root = Path(migrations_dir) if migrations_dir else MIGRATIONS_DIR
    if not root.exists():  # pragma: no cover - optional
        logger.warning("migrations.dir_missing path=%s", root)
        return []

    done = applied_migrations(engine)
    applied: list[str] = []
    for path in _iter_sql_files(root):
        if path.name in done:
            continue
        sql = path.read_text(encoding="utf-8")
        with engine.begin() as conn:
            _exec_script(conn, sql)
            conn.execute(
                sql_text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :t)"),
                {"f": path.name, "t": utc_now()},
            )
        logger.info("migrations.applied file=%s", path.name)
        applied.append(path.name)
    return applied


def rollback_migrations(engine: Engine, migrations_dir: str | os.PathLike[str] | None = None) -> None:
    """Run rollback scripts in reverse order and clear the journal."""
    root = Path(migrations_dir) if migrations_dir else MIGRATIONS_DIR
    scripts = sorted((p for p in root.glob("*.sql") if _is_rollback(p)), reverse=True)
    with engine.begin() as conn:
        for path in scripts:
            _exec_script(conn, path.read_text(encoding="utf-8"))
            logger.info("migrations.rolled_back file=%s", path.name)
        conn.exec_driver_sql(_JOURNAL_DDL)
        conn.execute(sql_text("DELETE FROM schema_migrations"))


__all__ = ["MIGRATIONS_DIR", "apply_migrations", "applied_migrations", "rollback_migrations"]
