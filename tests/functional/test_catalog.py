"""Functional tests for question ordering, sections and progress."""

from __future__ import annotations

from quizflow.client.catalog import QuestionCatalog, progress_percent
from quizflow.client.fallback import bundled_categories, bundled_questions
from quizflow.models.question import Question


def _q(qid: str, section: int, order: int) -> Question:
    return Question(id=qid, question=qid, type="text", section=section, order=order)


def test_progress_matches_rounded_percentage_for_every_index():
    for total in (1, 3, 7, 10, 13):
        for i in range(total):
            assert progress_percent(i, total) == int(100 * i / total + 0.5)


def test_progress_rounds_halves_up_and_handles_empty_quiz():
    assert progress_percent(1, 8) == 13  # 12.5
    assert progress_percent(0, 0) == 0


def test_questions_are_ordered_by_section_then_order_stably():
    catalog = QuestionCatalog([_q("c", 2, 0), _q("a", 1, 1), _q("b", 1, 0), _q("d", 1, 1)])
    assert [q.id for q in catalog.ordered()] == ["b", "a", "d", "c"]
    assert catalog.index_of("c") == 3
    assert catalog.find_by_id("missing") is None


def test_section_is_derived_and_past_end_reads_as_last_section():
    catalog = QuestionCatalog(bundled_questions(), bundled_categories())
    assert catalog.section_of(0) == 1
    assert catalog.section_of(len(catalog) - 1) == 4
    assert catalog.section_of(len(catalog) + 5) == 4
    assert catalog.category_for(2).title == "Hair"


def test_first_unanswered_index_ignores_blank_answers():
    catalog = QuestionCatalog([_q("name", 1, 0), _q("phone", 1, 1), _q("age", 1, 2)])
    assert catalog.first_unanswered_index({}) == 0
    assert catalog.first_unanswered_index({"name": "A", "phone": "  "}) == 1
    assert catalog.first_unanswered_index({"name": "A", "phone": "1", "age": 3}) == 3


def test_options_are_sorted_by_order():
    question = Question.model_validate(
        {
            "id": "q",
            "question": "Pick",
            "type": "SINGLE",
            "section": 1,
            "options": [{"value": "b", "label": "B", "order": 2}, {"value": "a", "label": "A", "order": 1}],
        }
    )
    catalog = QuestionCatalog([question])
    assert catalog[0].option_values() == ["a", "b"]
    assert catalog[0].options[0].id == "a"


def test_phone_question_is_found_by_id():
    catalog = QuestionCatalog(bundled_questions(), bundled_categories())
    assert catalog.phone_question().id == "phone"
    assert catalog.phone_question() is catalog[catalog.index_of("phone")]
    assert QuestionCatalog([_q("name", 1, 0)]).phone_question() is None
    assert QuestionCatalog([_q("mobile", 1, 0)]).phone_question("mobile").id == "mobile"
