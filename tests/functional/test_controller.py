"""Functional tests for the quiz session state machine."""

from __future__ import annotations

import asyncio

import pytest

from quizflow.client.controller import LOAD_ERROR_MESSAGE, QuizController, QuizState
from quizflow.client.reference_cache import ReferenceDataCache
from quizflow.client.submission import SubmissionClient
from quizflow.errors import NetworkDegraded, ValidationFailure
from quizflow.models.submission import CompletionStatus


async def _answer_through(controller: QuizController, answers: dict) -> None:
    """Answer and advance until the first question without a scripted value."""
    while controller.state is QuizState.IN_PROGRESS:
        question = controller.current_question
        if question.id not in answers:
            return
        assert controller.answer(answers[question.id]), controller.last_error
        await controller.next()


@pytest.mark.asyncio
async def test_fresh_load_starts_in_progress(make_controller, backend):
    controller = make_controller()
    assert await controller.load() is QuizState.IN_PROGRESS
    assert controller.index == 0
    assert controller.current_question.id == "name"
    assert controller.section == 1 and controller.category.title == "About"
    assert controller.progress == 0
    assert controller.using_fallback is False
    assert backend.count("/api/questions") == 1


@pytest.mark.asyncio
async def test_failed_fetch_falls_back_to_bundled_questions(make_controller, backend):
    backend.failing.add("/api/questions")
    controller = make_controller()

    assert await controller.load() is QuizState.IN_PROGRESS
    assert controller.using_fallback is True
    assert len(controller.catalog) == 13


@pytest.mark.asyncio
async def test_failed_fetch_without_fallback_is_a_retryable_error(make_controller, backend):
    backend.failing.add("/api/questions")
    controller = make_controller(fallback=None)

    assert await controller.load() is QuizState.ERROR
    assert controller.error_message == LOAD_ERROR_MESSAGE

    backend.failing.clear()
    assert await controller.retry() is QuizState.IN_PROGRESS


@pytest.mark.asyncio
async def test_empty_question_list_uses_fallback(make_controller, backend):
    backend.questions = []
    controller = make_controller()
    assert await controller.load() is QuizState.IN_PROGRESS
    assert controller.using_fallback is True


@pytest.mark.asyncio
async def test_snapshot_past_first_question_prompts_resume(make_controller, backend, persistence, clock):
    backend.questions = backend.questions[:10]
    persistence.save({"name": "A", "phone": "9998887770"})
    clock.advance(days=2)

    controller = make_controller()
    assert await controller.load() is QuizState.RESUME_PROMPT
    assert len(controller.answers) == 0

    controller.resume_continue()
    assert controller.state is QuizState.IN_PROGRESS
    assert controller.answers.snapshot() == {"name": "A", "phone": "9998887770"}
    assert controller.index == 2


@pytest.mark.asyncio
async def test_resume_restart_clears_everything(make_controller, persistence):
    persistence.save({"name": "A", "phone": "9998887770"})
    persistence.mark_submitted()

    controller = make_controller()
    await controller.load()
    controller.resume_restart()

    assert controller.state is QuizState.IN_PROGRESS
    assert controller.index == 0
    assert len(controller.answers) == 0
    assert persistence.load() is None
    assert persistence.is_submitted() is False


@pytest.mark.asyncio
async def test_snapshot_on_first_question_is_restored_silently(make_controller, persistence):
    persistence.save({"phone": "12345"})
    controller = make_controller()

    assert await controller.load() is QuizState.IN_PROGRESS
    assert controller.index == 0
    assert controller.answers.get("phone") == "12345"


@pytest.mark.asyncio
async def test_expired_snapshot_is_not_restored(make_controller, persistence, clock):
    persistence.save({"name": "A", "phone": "9998887770"})
    clock.advance(days=11)

    controller = make_controller()
    assert await controller.load() is QuizState.IN_PROGRESS
    assert len(controller.answers) == 0


@pytest.mark.asyncio
async def test_answers_are_validated_and_mirrored(make_controller, persistence):
    controller = make_controller()
    await controller.load()

    await controller.next()
    assert controller.index == 0
    assert isinstance(controller.last_error, ValidationFailure)

    assert controller.answer("  Asha ") is True
    assert persistence.load().answers == {"name": "Asha"}
    await controller.next()
    controller.answer("12345")
    await controller.next()

    assert controller.current_question.id == "gender"
    assert controller.answer("other") is False
    assert isinstance(controller.last_error, ValidationFailure)
    assert "gender" not in controller.answers

    assert controller.answer("") is True
    assert controller.answer("female") is True
    assert controller.answers.get("gender") == "female"


@pytest.mark.asyncio
async def test_previous_is_a_no_op_at_the_first_question(make_controller):
    controller = make_controller()
    await controller.load()
    controller.previous()
    assert controller.index == 0

    controller.answer("Asha")
    await controller.next()
    controller.previous()
    assert controller.index == 0


@pytest.mark.asyncio
async def test_exit_clears_memory_and_snapshot(make_controller, persistence, valid_answers):
    controller = make_controller()
    await controller.load()
    await _answer_through(controller, {k: valid_answers[k] for k in ("name", "phone", "gender")})
    assert controller.index == 3

    assert controller.exit(confirm=False) is False
    assert controller.index == 3

    assert controller.exit() is True
    assert controller.index == 0
    assert len(controller.answers) == 0
    assert persistence.load() is None


@pytest.mark.asyncio
async def test_completed_phone_shows_prompt_and_take_again_resets(make_controller, backend, persistence):
    backend.completed["9876543210"] = True
    controller = make_controller()
    await controller.load()
    controller.answer("Asha")
    await controller.next()
    controller.answer("9876543210")

    assert await controller.next() is QuizState.ALREADY_COMPLETED_PROMPT
    assert controller.index == 1
    assert controller.completion_status.has_completed is True

    controller.go_to_result()
    assert controller.state is QuizState.ALREADY_COMPLETED_PROMPT

    controller.take_test_again()
    assert controller.state is QuizState.IN_PROGRESS
    assert controller.index == 0
    assert len(controller.answers) == 0
    assert persistence.load() is None
    assert persistence.is_submitted() is False


@pytest.mark.asyncio
async def test_completion_check_skipped_for_partial_phone_and_not_repeated(make_controller, backend):
    controller = make_controller()
    await controller.load()
    controller.answer("Asha")
    await controller.next()

    controller.answer("987654321")
    await controller.next()
    assert controller.index == 2
    assert backend.count("/api/users/check") == 0

    controller.previous()
    controller.answer("9876543210")
    await controller.next()
    assert controller.index == 2
    controller.previous()
    await controller.next()
    assert backend.count("/api/users/check") == 1


@pytest.mark.asyncio
async def test_completion_check_failure_does_not_block(make_controller, backend):
    backend.failing.add("/api/users/check")
    controller = make_controller()
    await controller.load()
    controller.answer("Asha")
    await controller.next()
    controller.answer("9876543210")

    assert await controller.next() is QuizState.IN_PROGRESS
    assert controller.index == 2


class _HeldGate:
    """Completion gate whose answer is released by the test."""

    def __init__(self) -> None:
        self.release = asyncio.Event()

    @staticmethod
    def should_check(phone) -> bool:
        return True

    async def has_completed(self, phone):
        await self.release.wait()
        return CompletionStatus(exists=True, has_completed=True)


@pytest.mark.asyncio
async def test_stale_completion_result_is_ignored(api, persistence):
    gate = _HeldGate()
    controller = QuizController(
        cache=ReferenceDataCache(api.fetch_questions, api.fetch_categories),
        persistence=persistence,
        gate=gate,
        submitter=SubmissionClient(api, persistence),
    )
    await controller.load()
    controller.answer("Asha")
    await controller.next()
    controller.answer("9876543210")

    pending = asyncio.ensure_future(controller.next())
    await asyncio.sleep(0)
    assert controller.is_checking is True

    controller.previous()
    gate.release.set()
    await pending

    assert controller.is_checking is False
    assert controller.state is QuizState.IN_PROGRESS
    assert controller.index == 0


@pytest.mark.asyncio
async def test_submitted_flag_on_load_shows_completed_prompt(make_controller, persistence):
    persistence.mark_submitted()
    controller = make_controller()
    assert await controller.load() is QuizState.ALREADY_COMPLETED_PROMPT

    controller.take_test_again()
    assert controller.state is QuizState.IN_PROGRESS
    assert persistence.is_submitted() is False


@pytest.mark.asyncio
async def test_full_run_submits_and_settles(make_controller, backend, persistence, valid_answers):
    controller = make_controller()
    await controller.load()
    await _answer_through(controller, valid_answers)

    assert controller.current_question.id == "scalp-photo"
    assert controller.progress == 92
    assert await controller.upload_answer(b"\x89PNG", filename="scalp.png", content_type="image/png")
    assert controller.progress == 100

    assert await controller.next() is QuizState.COMPLETE
    assert controller.progress == 100
    assert controller.section == 4
    assert controller.submission_result.phone == "9998887770"

    submitted = backend.submissions[0]
    assert submitted["phone"] == "9998887770"
    assert submitted["answers"]["age"] == 29
    assert submitted["answers"]["scalp-photo"] == "/uploads/scalp.png"
    assert persistence.load() is None
    assert persistence.is_submitted() is True


@pytest.mark.asyncio
async def test_failed_submission_keeps_snapshot_for_retry(make_controller, backend, persistence, valid_answers):
    backend.failing.add("/api/submit")
    controller = make_controller()
    await controller.load()
    await _answer_through(controller, valid_answers)
    await controller.upload_answer(b"img", filename="scalp.png", content_type="image/png")

    assert await controller.next() is QuizState.COMPLETE
    assert controller.submission_result is None
    assert isinstance(controller.submission_error, NetworkDegraded)
    assert persistence.load().answers["name"] == "Asha"
    assert persistence.is_submitted() is False


@pytest.mark.asyncio
async def test_malformed_upload_response_is_reported_not_raised(make_controller, backend, valid_answers):
    backend.upload_body = ["oops"]
    controller = make_controller()
    await controller.load()
    await _answer_through(controller, valid_answers)
    assert controller.current_question.id == "scalp-photo"

    assert await controller.upload_answer(b"img", filename="scalp.png", content_type="image/png") is False
    assert isinstance(controller.last_error, NetworkDegraded)
    assert controller.current_answer is None
    assert controller.state is QuizState.IN_PROGRESS
