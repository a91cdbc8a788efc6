"""Advisory check whether a phone number already completed the quiz.

The check only runs for a complete 10-digit number. Any failure is logged
and reported as "unknown" (`None`) so the caller proceeds as if the user
had not completed.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from quizflow.client.api import QuizApiClient
from quizflow.logic.answer_encoding import normalize_phone
from quizflow.models.submission import CompletionStatus

logger = logging.getLogger(__name__)

PHONE_DIGITS = 10


class CompletionGate:
    def __init__(self, api: QuizApiClient) -> None:
        self._api = api
        self.calls = 0

    @staticmethod
    def should_check(phone: Any) -> bool:
        return len(normalize_phone(phone)) == PHONE_DIGITS

    async def has_completed(self, phone: Any) -> Optional[CompletionStatus]:
        digits = normalize_phone(phone)
        if len(digits) != PHONE_DIGITS:
            return None
        self.calls += 1
        try:
            status = await self._api.check_user(digits)
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            logger.warning("completion_check_failed error=%s", exc)
            return None
        logger.info("completion_checked exists=%s has_completed=%s", status.exists, status.has_completed)
        return status


__all__ = ["CompletionGate", "PHONE_DIGITS"]
