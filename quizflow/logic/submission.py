"""Answer writes: whole-quiz submission and single tagged answers.

`submit_quiz` upserts the user by phone, then one answer per entry. All
answers are encoded before anything is written, so a malformed value
rejects the submission without a partial write. Entries whose question id
is unknown are skipped. The whole write runs in one transaction.

Re-submitting the same phone is harmless: the user row is updated and
every (user, question) answer is overwritten in place.

`record_answer` writes one answer whose tag must match the stored type of
its question; unknown users and questions are rejected.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from quizflow.db.base import get_engine
from quizflow.errors import ValidationFailure
from quizflow.logic.answer_encoding import encode_answer, encode_for_question, parse_answer_type
from quizflow.logic.repository_answers import save_answer, upsert_answer
from quizflow.logic.repository_questions import get_question_types
from quizflow.logic.repository_users import upsert_user, user_exists

logger = logging.getLogger(__name__)


def submit_quiz(phone: str, name: str | None, email: str | None, answers: Dict[str, Any]) -> dict:
    with get_engine().begin() as conn:
        types = get_question_types(answers.keys(), conn=conn)
        skipped = sorted(set(answers) - set(types))
        if skipped:
            logger.info("submit_unknown_questions_skipped ids=%s", skipped)
        encoded = {qid: encode_answer(types[qid], value) for qid, value in answers.items() if qid in types}

        user = upsert_user(conn, phone, name, email)
        for qid, enc in encoded.items():
            upsert_answer(conn, user["id"], qid, enc)

    logger.info("submit_completed user_id=%s answers=%s", user["id"], len(encoded))
    return {"userId": user["id"], "phone": user["phone"]}


def record_answer(user_id: str, question_id: str, answer_type: str, value: Any) -> dict:
    """Validate and upsert one tagged answer; return the stored row."""
    atype = parse_answer_type(answer_type)
    with get_engine().connect() as conn:
        types = get_question_types([question_id], conn=conn)
        known_user = user_exists(user_id, conn=conn)
    if question_id not in types:
        raise ValidationFailure(f"Unknown questionId {question_id!r}")
    if not known_user:
        raise ValidationFailure(f"Unknown userId {user_id!r}")
    encoded = encode_for_question(types[question_id], atype, value)
    return save_answer(user_id, question_id, encoded)


__all__ = ["submit_quiz", "record_answer"]
