"""User endpoints: completion check, upsert by phone and lookup."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from quizflow.http.problem import problem_response
from quizflow.logic.repository_users import find_user, get_completion, save_user
from quizflow.logic.validation import require_phone, validate_user_payload

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/users/check", summary="Check whether a phone number already completed the quiz")
def check_user(phone: str | None = None):
    digits = require_phone(phone)
    status = get_completion(digits)
    logger.info("user_checked exists=%s has_completed=%s", status["exists"], status["hasCompleted"])
    return status


@router.post("/users", summary="Create or update a user by phone", status_code=201)
def create_user(payload: Dict[str, Any] = Body(...)):
    phone, name, email = validate_user_payload(payload)
    user = save_user(phone, name, email)
    return JSONResponse({"success": True, "data": user}, status_code=201)


@router.get("/users", summary="Get a user and their answers by phone or email")
def get_user(phone: str | None = None, email: str | None = None):
    if not phone and not email:
        return problem_response(400, "Phone or email is required")
    user = find_user(phone=require_phone(phone) if phone else None, email=email)
    if user is None:
        return problem_response(404, "User not found")
    return {"success": True, "data": user}


__all__ = ["router", "check_user", "create_user", "get_user"]
