"""Single-answer endpoints.

`POST /answers` writes one typed answer for a (user, question) pair. The
caller names the stored answer type, which must be the one the question's
type maps to. A second write for the same pair replaces the first.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from quizflow.http.problem import problem_response
from quizflow.logic.repository_answers import list_answers
from quizflow.logic.submission import record_answer
from quizflow.logic.validation import validate_answer_payload

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/answers", summary="Create or update one answer", status_code=201)
def upsert_answer(payload: Dict[str, Any] = Body(...)):
    user_id, question_id, answer_type, value = validate_answer_payload(payload)
    record = record_answer(user_id, question_id, answer_type, value)
    return JSONResponse({"success": True, "data": record}, status_code=201)


@router.get("/answers", summary="List a user's answers")
def get_answers(userId: str | None = None):  # noqa: N803 - query parameter name
    if not userId:
        return problem_response(400, "userId is required")
    return {"success": True, "data": list_answers(userId)}


__all__ = ["router", "upsert_answer", "get_answers"]
