"""Request payload validation for the write endpoints.

Each helper returns the cleaned fields or raises ValidationFailure with a
message suitable for the `message` field of a 400 response.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from quizflow.errors import ValidationFailure
from quizflow.logic.answer_encoding import normalize_phone


def _optional_text(payload: Dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationFailure(f"{key} must be a string")
    return value.strip() or None


def require_phone(value: Any) -> str:
    """Return the digits of ``value``; empty or digit-less phones are rejected."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationFailure("Phone number is required")
    digits = normalize_phone(value)
    if not digits:
        raise ValidationFailure("Phone number must contain digits")
    return digits


def validate_user_payload(payload: Any) -> Tuple[str, str | None, str | None]:
    if not isinstance(payload, dict):
        raise ValidationFailure("payload must be an object")
    return (
        require_phone(payload.get("phone")),
        _optional_text(payload, "name"),
        _optional_text(payload, "email"),
    )


def validate_submit_payload(payload: Any) -> Tuple[str, str | None, str | None, Dict[str, Any]]:
    """Validate `{phone, name?, email?, answers}` for the submit endpoint."""
    phone, name, email = validate_user_payload(payload)
    answers = payload.get("answers")
    if not answers or not isinstance(answers, dict):
        raise ValidationFailure("Answers are required")
    return phone, name, email, answers


def validate_answer_payload(payload: Any) -> Tuple[str, str, str, Any]:
    """Validate `{userId, questionId, answerType, value}` for a single upsert."""
    if not isinstance(payload, dict):
        raise ValidationFailure("payload must be an object")
    user_id = payload.get("userId")
    question_id = payload.get("questionId")
    answer_type = payload.get("answerType")
    if not user_id or not question_id or not answer_type:
        raise ValidationFailure("userId, questionId, and answerType are required")
    return str(user_id), str(question_id), str(answer_type), payload.get("value")


__all__ = [
    "require_phone",
    "validate_user_payload",
    "validate_submit_payload",
    "validate_answer_payload",
]
