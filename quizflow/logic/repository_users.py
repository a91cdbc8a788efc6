"""User data access helpers.

Users are keyed by normalized phone number. Upserts never replace an
existing name or email with null: only values that are provided are
written on conflict.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from quizflow.db.base import get_engine
from quizflow.logic.repository_answers import list_answers

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _row_to_user(row) -> dict:
    return {
        "id": str(row[0]),
        "phone": str(row[1]),
        "name": row[2],
        "email": row[3],
        "createdAt": row[4],
        "updatedAt": row[5],
    }


def upsert_user(conn: Connection, phone: str, name: str | None = None, email: str | None = None) -> dict:
    """Create the user for ``phone`` or update provided name/email fields."""
    now = _now()
    conn.execute(
        sql_text(
            """
            INSERT INTO app_user (id, phone, name, email, created_at, updated_at)
            VALUES (:id, :phone, :name, :email, :now, :now)
            ON CONFLICT (phone) DO UPDATE SET
                name = COALESCE(excluded.name, app_user.name),
                email = COALESCE(excluded.email, app_user.email),
                updated_at = excluded.updated_at
            """
        ),
        {"id": str(uuid.uuid4()), "phone": phone, "name": name or None, "email": email or None, "now": now},
    )
    row = conn.execute(
        sql_text("SELECT id, phone, name, email, created_at, updated_at FROM app_user WHERE phone = :phone"),
        {"phone": phone},
    ).fetchone()
    logger.info("user_upserted user_id=%s", row[0])
    return _row_to_user(row)


def save_user(phone: str, name: str | None = None, email: str | None = None) -> dict:
    try:
        with get_engine().begin() as conn:
            return upsert_user(conn, phone, name, email)
    except Exception:
        logger.error("save_user failed phone_len=%s", len(phone or ""), exc_info=True)
        raise


def find_user(*, phone: str | None = None, email: str | None = None) -> dict | None:
    """Return a user by phone (preferred) or email, with its answers."""
    if phone:
        where, params = "phone = :v", {"v": phone}
    elif email:
        where, params = "email = :v", {"v": email}
    else:
        return None
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT id, phone, name, email, created_at, updated_at FROM app_user WHERE {where}"),
            params,
        ).fetchone()
    if row is None:
        return None
    user = _row_to_user(row)
    user["answers"] = list_answers(user["id"])
    return user


def user_exists(user_id: str, conn: Connection | None = None) -> bool:
    stmt = sql_text("SELECT 1 FROM app_user WHERE id = :id")
    if conn is not None:
        return conn.execute(stmt, {"id": str(user_id)}).fetchone() is not None
    with get_engine().connect() as own:
        return own.execute(stmt, {"id": str(user_id)}).fetchone() is not None


def get_completion(phone: str) -> dict:
    """Return ``{exists, hasCompleted, userId?}`` for a phone number.

    A user has completed the quiz when at least one answer is stored.
    """
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text(
                """
                SELECT u.id, COUNT(a.id)
                FROM app_user u
                LEFT JOIN answer a ON a.user_id = u.id
                WHERE u.phone = :phone
                GROUP BY u.id
                """
            ),
            {"phone": phone},
        ).fetchone()
    if row is None:
        return {"exists": False, "hasCompleted": False}
    return {"exists": True, "hasCompleted": int(row[1] or 0) > 0, "userId": str(row[0])}


__all__ = ["upsert_user", "save_user", "find_user", "user_exists", "get_completion"]
