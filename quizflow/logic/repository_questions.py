"""Question and category data access helpers.

Encapsulates DB reads/writes for reference data, keeping the HTTP layer
free of direct SQL. Reads return wire-shaped dicts (camelCase keys) that
validate as `Question` / `Category` on the client side.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from quizflow.db.base import get_engine

logger = logging.getLogger(__name__)


def _images(raw) -> list[str]:
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("option_images_unparseable raw=%r", raw)
        return []
    return [str(i) for i in parsed] if isinstance(parsed, list) else []


def list_questions() -> list[dict]:
    """Return all questions ordered by (section, order) with nested options.

    Options are ordered by their own order column. The upper-case stored
    type is returned as-is; the client model lower-cases it.
    """
    eng = get_engine()
    try:
        with eng.connect() as conn:
            q_rows = conn.execute(
                sql_text(
                    """
                    SELECT id, question, type, section, sort_order, placeholder, disclaimer,
                           is_required, category_id
                    FROM question
                    ORDER BY section ASC, sort_order ASC
                    """
                )
            ).fetchall()
            o_rows = conn.execute(
                sql_text(
                    """
                    SELECT id, question_id, value, label, sub_label, images, sort_order
                    FROM question_option
                    ORDER BY question_id ASC, sort_order ASC
                    """
                )
            ).fetchall()
    except Exception:
        logger.error("list_questions failed", exc_info=True)
        raise

    options_by_question: dict[str, list[dict]] = {}
    for row in o_rows:
        options_by_question.setdefault(str(row[1]), []).append(
            {
                "id": str(row[0]),
                "questionId": str(row[1]),
                "value": str(row[2]),
                "label": str(row[3]),
                "subLabel": row[4],
                "images": _images(row[5]),
                "order": int(row[6] or 0),
            }
        )
    questions = [
        {
            "id": str(row[0]),
            "question": str(row[1]),
            "type": str(row[2]),
            "section": int(row[3]),
            "order": int(row[4] or 0),
            "placeholder": row[5],
            "disclaimer": row[6],
            "isRequired": bool(row[7]),
            "categoryId": row[8],
            "options": options_by_question.get(str(row[0]), []),
        }
        for row in q_rows
    ]
    logger.info("list_questions count=%s", len(questions))
    return questions


def get_question_types(question_ids: Iterable[str], conn: Connection | None = None) -> dict[str, str]:
    """Return {question_id: stored type} for the ids that exist."""
    ids = sorted({str(q) for q in question_ids})
    if not ids:
        return {}
    params = {f"q{i}": qid for i, qid in enumerate(ids)}
    placeholders = ", ".join(f":q{i}" for i in range(len(ids)))
    stmt = sql_text(f"SELECT id, type FROM question WHERE id IN ({placeholders})")
    if conn is not None:
        rows = conn.execute(stmt, params).fetchall()
    else:
        with get_engine().connect() as own:
            rows = own.execute(stmt, params).fetchall()
    return {str(r[0]): str(r[1]) for r in rows}


def upsert_question(conn: Connection, question: dict, *, category_id: str | None) -> None:
    """Insert or update one question and replace its options."""
    conn.execute(
        sql_text(
            """
            INSERT INTO question (id, question, type, section, sort_order, placeholder, disclaimer,
                                  is_required, category_id)
            VALUES (:id, :question, :type, :section, :sort_order, :placeholder, :disclaimer,
                    :is_required, :category_id)
            ON CONFLICT (id) DO UPDATE SET
                question = excluded.question,
                type = excluded.type,
                section = excluded.section,
                sort_order = excluded.sort_order,
                placeholder = excluded.placeholder,
                disclaimer = excluded.disclaimer,
                is_required = excluded.is_required,
                category_id = excluded.category_id
            """
        ),
        {
            "id": question["id"],
            "question": question["question"],
            "type": str(question["type"]).upper(),
            "section": int(question["section"]),
            "sort_order": int(question.get("order", 0)),
            "placeholder": question.get("placeholder") or None,
            "disclaimer": question.get("disclaimer") or None,
            "is_required": bool(question.get("isRequired", True)),
            "category_id": category_id,
        },
    )
    conn.execute(sql_text("DELETE FROM question_option WHERE question_id = :qid"), {"qid": question["id"]})
    for position, opt in enumerate(question.get("options") or []):
        conn.execute(
            sql_text(
                """
                INSERT INTO question_option (id, question_id, value, label, sub_label, images, sort_order)
                VALUES (:id, :qid, :value, :label, :sub_label, :images, :sort_order)
                """
            ),
            {
                "id": f"{question['id']}:{opt['value']}",
                "qid": question["id"],
                "value": opt["value"],
                "label": opt["label"],
                "sub_label": opt.get("subLabel"),
                "images": json.dumps(list(opt.get("images") or [])),
                "sort_order": int(opt.get("order", position)),
            },
        )


def list_categories() -> list[dict]:
    eng = get_engine()
    try:
        with eng.connect() as conn:
            rows = conn.execute(
                sql_text("SELECT id, title, subtitle, sort_order FROM category ORDER BY sort_order ASC")
            ).fetchall()
    except Exception:
        logger.error("list_categories failed", exc_info=True)
        raise
    return [
        {"id": str(r[0]), "title": str(r[1]), "subtitle": str(r[2] or ""), "order": int(r[3] or 0)}
        for r in rows
    ]


def upsert_category(conn: Connection, category: dict) -> None:
    conn.execute(
        sql_text(
            """
            INSERT INTO category (id, title, subtitle, sort_order)
            VALUES (:id, :title, :subtitle, :sort_order)
            ON CONFLICT (id) DO UPDATE SET
                title = excluded.title,
                subtitle = excluded.subtitle,
                sort_order = excluded.sort_order
            """
        ),
        {
            "id": category["id"],
            "title": category["title"],
            "subtitle": category.get("subtitle", ""),
            "sort_order": int(category.get("order", 0)),
        },
    )


__all__ = [
    "list_questions",
    "get_question_types",
    "upsert_question",
    "list_categories",
    "upsert_category",
]
