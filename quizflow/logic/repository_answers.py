"""Answer data access helpers.

One row per (user_id, question_id): writes are `INSERT ... ON CONFLICT DO
UPDATE`, so re-answering a question overwrites the prior value and never
creates a duplicate. All four value columns are written on every upsert so
a changed answer type leaves no stale column behind.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from quizflow.db.base import get_engine
from quizflow.models.answer import AnswerRecord, EncodedAnswer

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = (
    "id, user_id, question_id, answer_type, string_value, number_value, boolean_value, "
    "image_url, created_at, updated_at"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _row_to_record(row) -> dict:
    record = AnswerRecord(
        id=str(row[0]),
        user_id=str(row[1]),
        question_id=str(row[2]),
        answer_type=str(row[3]),
        string_value=row[4],
        number_value=row[5],
        boolean_value=None if row[6] is None else bool(row[6]),
        image_url=row[7],
        created_at=row[8],
        updated_at=row[9],
    )
    return record.model_dump(by_alias=True, mode="json")


def upsert_answer(conn: Connection, user_id: str, question_id: str, encoded: EncodedAnswer) -> None:
    params = {
        "id": str(uuid.uuid4()),
        "user_id": str(user_id),
        "question_id": str(question_id),
        "now": _now(),
        **encoded.columns(),
    }
    conn.execute(
        sql_text(
            """
            INSERT INTO answer (id, user_id, question_id, answer_type, string_value, number_value,
                                boolean_value, image_url, created_at, updated_at)
            VALUES (:id, :user_id, :question_id, :answer_type, :string_value, :number_value,
                    :boolean_value, :image_url, :now, :now)
            ON CONFLICT (user_id, question_id) DO UPDATE SET
                answer_type = excluded.answer_type,
                string_value = excluded.string_value,
                number_value = excluded.number_value,
                boolean_value = excluded.boolean_value,
                image_url = excluded.image_url,
                updated_at = excluded.updated_at
            """
        ),
        params,
    )


def save_answer(user_id: str, question_id: str, encoded: EncodedAnswer) -> dict:
    """Upsert one answer in its own transaction and return the stored row."""
    try:
        with get_engine().begin() as conn:
            upsert_answer(conn, user_id, question_id, encoded)
            row = conn.execute(
                sql_text(
                    f"SELECT {_SELECT_COLUMNS} FROM answer WHERE user_id = :u AND question_id = :q"
                ),
                {"u": str(user_id), "q": str(question_id)},
            ).fetchone()
    except Exception:
        logger.error("save_answer failed user_id=%s question_id=%s", user_id, question_id, exc_info=True)
        raise
    logger.info(
        "answer_saved user_id=%s question_id=%s answer_type=%s",
        user_id,
        question_id,
        encoded.answer_type.value,
    )
    return _row_to_record(row)


def list_answers(user_id: str) -> list[dict]:
    with get_engine().connect() as conn:
        rows = conn.execute(
            sql_text(
                f"SELECT {_SELECT_COLUMNS} FROM answer WHERE user_id = :u ORDER BY created_at ASC, question_id ASC"
            ),
            {"u": str(user_id)},
        ).fetchall()
    return [_row_to_record(r) for r in rows]


def count_answers(user_id: str | None = None) -> int:
    with get_engine().connect() as conn:
        if user_id is None:
            row = conn.execute(sql_text("SELECT COUNT(*) FROM answer")).fetchone()
        else:
            row = conn.execute(
                sql_text("SELECT COUNT(*) FROM answer WHERE user_id = :u"), {"u": str(user_id)}
            ).fetchone()
    return int(row[0]) if row else 0


__all__ = ["upsert_answer", "save_answer", "list_answers", "count_answers"]
