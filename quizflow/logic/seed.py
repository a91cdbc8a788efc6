"""Seed reference data from the bundled question set.

Idempotent: categories and questions are upserted by id, so re-running the
seed refreshes text and ordering without duplicating rows.
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from quizflow.client.fallback import QUESTIONS, SECTIONS
from quizflow.db.base import get_engine
from quizflow.logic.repository_questions import upsert_category, upsert_question

logger = logging.getLogger(__name__)


def seed_reference_data(engine: Engine | None = None) -> int:
    """Upsert bundled categories and questions; return the question count."""
    eng = engine or get_engine()
    category_ids: dict[int, str] = {}
    with eng.begin() as conn:
        for section in SECTIONS:
            category_id = f"cat-{section['id']}"
            upsert_category(
                conn,
                {
                    "id": category_id,
                    "title": section["title"],
                    "subtitle": section["subtitle"],
                    "order": section["id"],
                },
            )
            category_ids[int(section["id"])] = category_id
        for position, question in enumerate(QUESTIONS):
            upsert_question(
                conn,
                {**question, "order": position},
                category_id=category_ids.get(int(question["section"])),
            )
    logger.info("seed_reference_data categories=%s questions=%s", len(SECTIONS), len(QUESTIONS))
    return len(QUESTIONS)


__all__ = ["seed_reference_data"]
