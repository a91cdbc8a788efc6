"""Database bootstrap utilities for the quiz service.

Exposes the shared engine accessor and the SQL migrations runner. The DB
layer is intentionally minimal and does not leak ORM models into route
handlers; repositories under `quizflow/logic/` issue text queries.
"""

from quizflow.db.base import dispose_engine, get_engine
from quizflow.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "dispose_engine",
    "apply_migrations",
]
