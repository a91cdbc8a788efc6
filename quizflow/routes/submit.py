"""Whole-quiz submission endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from quizflow.logic.submission import submit_quiz
from quizflow.logic.validation import validate_submit_payload

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/submit", summary="Submit all quiz answers", status_code=201)
def submit(payload: Dict[str, Any] = Body(...)):
    phone, name, email, answers = validate_submit_payload(payload)
    result = submit_quiz(phone, name, email, answers)
    return JSONResponse(
        {"success": True, "message": "Quiz submitted successfully", "data": result},
        status_code=201,
    )


__all__ = ["router", "submit"]
