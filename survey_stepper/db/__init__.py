"""Database bootstrap utilities for the SQL session store.

Exposes engine construction and the SQL migrations runner. The DB layer
does not leak into route handlers; only the repository module issues SQL.
"""

from survey_stepper.db.base import build_engine, dispose_engine, get_engine
from survey_stepper.db.migrations_runner import apply_migrations, rollback_migrations

__all__ = [
    "build_engine",
    "dispose_engine",
    "get_engine",
    "apply_migrations",
    "rollback_migrations",
]
