"""Final submission of a completed quiz."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx
from pydantic import ValidationError

from quizflow.client.api import QuizApiClient
from quizflow.client.catalog import PHONE_QUESTION_ID
from quizflow.client.persistence import PersistenceLayer
from quizflow.errors import NetworkDegraded, ValidationFailure
from quizflow.logic.answer_encoding import normalize_phone
from quizflow.models.submission import SubmissionResult, SubmitPayload

logger = logging.getLogger(__name__)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class SubmissionClient:
    """Posts the answers and settles local state.

    On success the durable snapshot and session key are cleared and the
    submitted flag is set. On failure nothing local changes, so a reload
    resumes with the answers intact. `last_error` keeps the most recent
    failure for display.
    """

    def __init__(
        self,
        api: QuizApiClient,
        persistence: PersistenceLayer,
        *,
        phone_question_id: str = PHONE_QUESTION_ID,
        name_question_id: str = "name",
        email_question_id: str = "email",
    ) -> None:
        self._api = api
        self._persistence = persistence
        self.phone_question_id = phone_question_id
        self.name_question_id = name_question_id
        self.email_question_id = email_question_id
        self.last_error: Optional[Exception] = None

    def build_payload(self, answers: Mapping[str, Any]) -> SubmitPayload:
        phone = normalize_phone(answers.get(self.phone_question_id))
        if not phone:
            raise ValidationFailure("phone number is required to submit")
        return SubmitPayload(
            phone=phone,
            name=_optional_text(answers.get(self.name_question_id)),
            email=_optional_text(answers.get(self.email_question_id)),
            answers=dict(answers),
        )

    async def submit(self, answers: Mapping[str, Any]) -> Optional[SubmissionResult]:
        self.last_error = None
        try:
            payload = self.build_payload(answers)
        except ValidationFailure as exc:
            self.last_error = exc
            logger.error("submission_aborted reason=%s", exc)
            return None

        try:
            result = await self._api.submit(payload, session_key=self._persistence.session_key())
        except (httpx.HTTPError, ValidationError, ValueError, KeyError) as exc:
            self.last_error = NetworkDegraded(f"submission failed: {exc}")
            logger.error("submission_failed answers=%s", len(payload.answers), exc_info=True)
            return None

        self._persistence.clear()
        self._persistence.clear_session_key()
        self._persistence.mark_submitted()
        logger.info("submission_done user_id=%s answers=%s", result.user_id, len(payload.answers))
        return result


__all__ = ["SubmissionClient"]
