"""Read-only ordered view over the quiz questions.

Questions are ordered by (section, order); Python's sort is stable, so ties
keep their fetch order. Section and progress are always derived from a
position in this ordering, never stored.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, List, Mapping, Optional

from quizflow.models.question import Category, Question

PHONE_QUESTION_ID = "phone"


def progress_percent(index: int, total: int) -> int:
    """Return round(100 * index / total), rounding halves up; 0 for an empty quiz."""
    if total <= 0:
        return 0
    return int(math.floor(100 * index / total + 0.5))


def has_answer(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


class QuestionCatalog:
    def __init__(self, questions: Iterable[Question], categories: Iterable[Category] = ()) -> None:
        ordered = sorted(questions, key=lambda q: (q.section, q.order))
        self._questions: List[Question] = [
            q.model_copy(update={"options": sorted(q.options, key=lambda o: o.order)}) for q in ordered
        ]
        self._categories: List[Category] = sorted(categories, key=lambda c: c.order)
        self._index_by_id = {q.id: i for i, q in enumerate(self._questions)}

    def __len__(self) -> int:
        return len(self._questions)

    def __getitem__(self, index: int) -> Question:
        return self._questions[index]

    def __iter__(self):
        return iter(self._questions)

    def ordered(self) -> List[Question]:
        return list(self._questions)

    @property
    def categories(self) -> List[Category]:
        return list(self._categories)

    def index_of(self, question_id: str) -> Optional[int]:
        return self._index_by_id.get(question_id)

    def find_by_id(self, question_id: str) -> Optional[Question]:
        i = self.index_of(question_id)
        return None if i is None else self._questions[i]

    def phone_question(self, question_id: str = PHONE_QUESTION_ID) -> Optional[Question]:
        """The question whose answer identifies the respondent, if present."""
        return self.find_by_id(question_id)

    def section_of(self, index: int) -> int:
        """Section at ``index``; past the end (complete) reads as the last section."""
        if not self._questions:
            return 1
        if index >= len(self._questions):
            return self._questions[-1].section
        return self._questions[max(index, 0)].section

    def category_for(self, section: int) -> Optional[Category]:
        # Categories map one-to-one onto sections by display order
        for category in self._categories:
            if category.order == section:
                return category
        return None

    def progress_percent(self, index: int, total: Optional[int] = None) -> int:
        return progress_percent(index, len(self._questions) if total is None else total)

    def first_unanswered_index(self, answers: Mapping[str, Any]) -> int:
        """Position of the first question without an answer (len() when all answered)."""
        for i, question in enumerate(self._questions):
            if not has_answer(answers.get(question.id)):
                return i
        return len(self._questions)


__all__ = ["QuestionCatalog", "PHONE_QUESTION_ID", "progress_percent", "has_answer"]
