"""Quiz session state machine.

The controller owns one session: it loads reference data (falling back to
the bundled set), restores or prompts for a saved snapshot, validates each
answer against the current question, runs the advisory completion check on
the phone question and submits on the last question.

Position is always derived from answers on resume, never read from a
stored cursor. Section and progress are computed from the current index.
Every network failure degrades the session instead of raising: fallback
data on load, skipped completion check, submission left for a later retry.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

import httpx

from quizflow.client.answer_store import AnswerStore, AnswerValue
from quizflow.client.api import QuizApiClient
from quizflow.client.catalog import PHONE_QUESTION_ID, QuestionCatalog, has_answer
from quizflow.client.completion import CompletionGate
from quizflow.client.fallback import bundled_reference_data
from quizflow.client.persistence import LocalQuizSnapshot, PersistenceLayer
from quizflow.client.reference_cache import ReferenceDataCache
from quizflow.client.storage import FileStorage
from quizflow.client.submission import SubmissionClient
from quizflow.config import ClientConfig, load_config
from quizflow.errors import DataUnavailable, NetworkDegraded, QuizError, ValidationFailure
from quizflow.logic.answer_encoding import normalize_answer, normalize_phone
from quizflow.models.question import Category, Question, QuestionType
from quizflow.models.submission import CompletionStatus, SubmissionResult

logger = logging.getLogger(__name__)

ReferenceData = Tuple[List[Question], List[Category]]

LOAD_ERROR_MESSAGE = "Questions could not be loaded. Please try again."


class QuizState(str, Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    RESUME_PROMPT = "resume_prompt"
    ALREADY_COMPLETED_PROMPT = "already_completed_prompt"
    COMPLETE = "complete"
    ERROR = "error"


class QuizController:
    def __init__(
        self,
        *,
        cache: ReferenceDataCache,
        persistence: PersistenceLayer,
        gate: CompletionGate,
        submitter: SubmissionClient,
        api: Optional[QuizApiClient] = None,
        fallback: Optional[Callable[[], ReferenceData]] = bundled_reference_data,
        phone_question_id: str = PHONE_QUESTION_ID,
    ) -> None:
        self._cache = cache
        self._persistence = persistence
        self._gate = gate
        self._submitter = submitter
        self._api = api
        self._fallback = fallback
        self.phone_question_id = phone_question_id

        self.state = QuizState.LOADING
        self.index = 0
        self.catalog = QuestionCatalog([])
        self.answers = AnswerStore()
        self.answers.subscribe(self._mirror)
        self.using_fallback = False
        self.error_message: Optional[str] = None
        self.last_error: Optional[QuizError] = None
        self.pending_snapshot: Optional[LocalQuizSnapshot] = None
        self.completion_status: Optional[CompletionStatus] = None
        self.submission_result: Optional[SubmissionResult] = None
        self.is_checking = False
        self._checked_phone: Optional[str] = None

    # Persistence mirror

    def _mirror(self, answers: dict) -> None:
        if answers:
            self._persistence.save(answers)
        else:
            self._persistence.clear()

    # Loading

    async def _fetch_reference(self) -> ReferenceData:
        questions = await self._cache.get_questions()
        if not questions:
            raise DataUnavailable("question list is empty")
        try:
            categories = await self._cache.get_categories()
        except DataUnavailable:
            logger.warning("categories_unavailable using=bundled")
            categories = list(self._fallback()[1]) if self._fallback else []
        return list(questions), list(categories)

    async def load(self) -> QuizState:
        self.state = QuizState.LOADING
        self.error_message = None
        self.using_fallback = False
        try:
            questions, categories = await self._fetch_reference()
        except DataUnavailable as exc:
            if self._fallback is None:
                return self._fail(exc)
            logger.warning("reference_fallback reason=%s", exc)
            questions, categories = self._fallback()
            self.using_fallback = True
        if not questions:
            return self._fail(DataUnavailable("no questions available"))

        self.catalog = QuestionCatalog(questions, categories)
        self.index = 0
        self._enter_from_snapshot()
        logger.info(
            "quiz_loaded questions=%s state=%s fallback=%s",
            len(self.catalog),
            self.state.value,
            self.using_fallback,
        )
        return self.state

    async def retry(self) -> QuizState:
        if self.state is not QuizState.ERROR:
            return self.state
        return await self.load()

    def _fail(self, exc: DataUnavailable) -> QuizState:
        self.state = QuizState.ERROR
        self.last_error = exc
        self.error_message = LOAD_ERROR_MESSAGE
        logger.error("quiz_load_failed error=%s", exc)
        return self.state

    def _enter_from_snapshot(self) -> None:
        snapshot = self._persistence.load()
        if snapshot is not None and snapshot.answers:
            first = self.catalog.first_unanswered_index(snapshot.answers)
            if first >= 1:
                self.pending_snapshot = snapshot
                self.state = QuizState.RESUME_PROMPT
                return
            # Only the first question was touched; restore without asking
            self.answers.restore(snapshot.answers)
            self.state = QuizState.IN_PROGRESS
            return
        if self._persistence.is_submitted():
            self.completion_status = None
            self.state = QuizState.ALREADY_COMPLETED_PROMPT
            return
        self.state = QuizState.IN_PROGRESS

    # Resume / completed prompts

    def resume_continue(self) -> None:
        if self.state is not QuizState.RESUME_PROMPT or self.pending_snapshot is None:
            return
        self.answers.restore(self.pending_snapshot.answers)
        first = self.catalog.first_unanswered_index(self.answers.snapshot())
        self.index = min(first, len(self.catalog) - 1)
        self.pending_snapshot = None
        self.state = QuizState.IN_PROGRESS
        logger.info("quiz_resumed index=%s", self.index)

    def resume_restart(self) -> None:
        if self.state is not QuizState.RESUME_PROMPT:
            return
        self._reset_local_state()
        logger.info("quiz_restarted")

    def take_test_again(self) -> None:
        if self.state is not QuizState.ALREADY_COMPLETED_PROMPT:
            return
        self._reset_local_state()
        logger.info("quiz_retake phone_checked=%s", bool(self._checked_phone))

    def go_to_result(self) -> None:
        logger.debug("go_to_result not_available")

    def _reset_local_state(self) -> None:
        self.answers.clear()
        self._persistence.clear()
        self._persistence.clear_submitted()
        self.pending_snapshot = None
        self.completion_status = None
        self.last_error = None
        self.index = 0
        self.state = QuizState.IN_PROGRESS

    # Answering and navigation

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.index < len(self.catalog):
            return self.catalog[self.index]
        return None

    @property
    def current_answer(self) -> AnswerValue:
        question = self.current_question
        return None if question is None else self.answers.get(question.id)

    @property
    def is_last_question(self) -> bool:
        return len(self.catalog) > 0 and self.index == len(self.catalog) - 1

    @property
    def section(self) -> int:
        return self.catalog.section_of(self.index)

    @property
    def category(self) -> Optional[Category]:
        return self.catalog.category_for(self.section)

    @property
    def progress(self) -> int:
        if self.state is QuizState.COMPLETE:
            return 100
        if len(self.catalog) and has_answer(self.answers.get(self.catalog[-1].id)):
            return 100
        return self.catalog.progress_percent(self.index)

    @property
    def submission_error(self) -> Optional[Exception]:
        return self._submitter.last_error

    def answer(self, value: Any) -> bool:
        """Validate ``value`` for the current question and store it.

        An empty value clears the answer. Invalid values leave the store
        unchanged and are reported through ``last_error``.
        """
        question = self.current_question
        if self.state is not QuizState.IN_PROGRESS or question is None:
            logger.debug("answer_ignored state=%s", self.state.value)
            return False
        self.last_error = None
        if not has_answer(value):
            self.answers.remove(question.id)
            return True
        try:
            normalized = normalize_answer(question.type, value, options=question.option_values() or None)
        except ValidationFailure as exc:
            self.last_error = exc
            logger.info("answer_rejected question_id=%s reason=%s", question.id, exc)
            return False
        self.answers.set(question.id, normalized)
        return True

    async def upload_answer(self, content: bytes, *, filename: str, content_type: str) -> bool:
        """Upload an image for the current upload question and store its URL."""
        question = self.current_question
        if self._api is None or question is None or question.type is not QuestionType.UPLOAD:
            return False
        old_url = self.answers.get(question.id)
        try:
            url = await self._api.upload(
                content, filename=filename, content_type=content_type, old_url=old_url or None
            )
        except (httpx.HTTPError, ValueError) as exc:
            self.last_error = NetworkDegraded(f"upload failed: {exc}")
            logger.warning("upload_failed question_id=%s error=%s", question.id, exc)
            return False
        if self.current_question is not question:
            logger.info("upload_result_ignored question_id=%s", question.id)
            return False
        return self.answer(url)

    async def next(self) -> QuizState:
        question = self.current_question
        if self.state is not QuizState.IN_PROGRESS or question is None or self.is_checking:
            return self.state
        value = self.answers.get(question.id)
        if question.is_required and not has_answer(value):
            self.last_error = ValidationFailure(f"an answer is required for {question.id!r}")
            return self.state
        self.last_error = None

        phone_question = self.catalog.phone_question(self.phone_question_id)
        if question is phone_question and await self._already_completed(value):
            return self.state

        if self.state is not QuizState.IN_PROGRESS or self.current_question is not question:
            return self.state
        if not self.is_last_question:
            self.index += 1
            return self.state

        self.state = QuizState.COMPLETE
        logger.info("quiz_complete answers=%s", len(self.answers))
        self.submission_result = await self._submitter.submit(self.answers.snapshot())
        return self.state

    async def _already_completed(self, phone: Any) -> bool:
        """Run the completion check; True when the prompt was shown."""
        digits = normalize_phone(phone)
        if not self._gate.should_check(digits) or digits == self._checked_phone:
            return False
        index = self.index
        self.is_checking = True
        try:
            status = await self._gate.has_completed(digits)
        finally:
            self.is_checking = False

        still_current = (
            self.state is QuizState.IN_PROGRESS
            and self.index == index
            and normalize_phone(self.answers.get(self.phone_question_id)) == digits
        )
        if not still_current:
            logger.info("completion_result_stale index=%s", index)
            return True
        if status is None:
            return False
        self._checked_phone = digits
        self.completion_status = status
        if status.has_completed:
            self.state = QuizState.ALREADY_COMPLETED_PROMPT
            return True
        return False

    def previous(self) -> None:
        if self.state is QuizState.IN_PROGRESS and self.index > 0:
            self.index -= 1
            self.last_error = None

    def exit(self, confirm: bool = True) -> bool:
        """Abandon the session: back to the first question with nothing saved."""
        if not confirm:
            return False
        self.answers.clear()
        self._persistence.clear()
        self.pending_snapshot = None
        self.last_error = None
        self.index = 0
        if self.state is not QuizState.ERROR:
            self.state = QuizState.IN_PROGRESS
        logger.info("quiz_exited")
        return True


def create_controller(cfg: Optional[ClientConfig] = None, *, api: Optional[QuizApiClient] = None) -> QuizController:
    """Wire a controller backed by file storage under ``cfg.storage_dir``.

    Configuration defaults to `load_config().client`; the API client is built
    from it unless one is passed in.
    """
    cfg = cfg or load_config().client
    api = api or QuizApiClient.from_config(cfg)
    persistence = PersistenceLayer(
        FileStorage(Path(cfg.storage_dir)),
        namespace=cfg.storage_namespace,
        max_age=timedelta(days=cfg.snapshot_max_age_days),
    )
    return QuizController(
        cache=ReferenceDataCache(api.fetch_questions, api.fetch_categories),
        persistence=persistence,
        gate=CompletionGate(api),
        submitter=SubmissionClient(api, persistence),
        api=api,
    )


__all__ = ["QuizController", "QuizState", "create_controller", "LOAD_ERROR_MESSAGE"]
