"""In-memory answers for the live quiz session.

The store is the single source of truth for progress: the current position
on resume is derived from which questions have answers. Setting an answer
for a known question id overwrites it (no history). Listeners registered
with `subscribe` receive a copy of the answers after every change.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

logger = logging.getLogger(__name__)

AnswerValue = Any
Listener = Callable[[Dict[str, AnswerValue]], None]


class AnswerStore:
    def __init__(self, initial: Optional[Mapping[str, AnswerValue]] = None) -> None:
        self._answers: Dict[str, AnswerValue] = dict(initial or {})
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in self._listeners:
            listener(snapshot)

    def get(self, question_id: str, default: AnswerValue = None) -> AnswerValue:
        return self._answers.get(question_id, default)

    def set(self, question_id: str, value: AnswerValue) -> None:
        self._answers[question_id] = list(value) if isinstance(value, (list, tuple)) else value
        self._notify()

    def remove(self, question_id: str) -> None:
        if self._answers.pop(question_id, None) is not None:
            self._notify()

    def clear(self) -> None:
        self._answers.clear()
        self._notify()

    def restore(self, answers: Mapping[str, AnswerValue]) -> None:
        """Replace all answers at once (one notification)."""
        self._answers = {str(k): v for k, v in answers.items()}
        logger.info("answers_restored count=%s", len(self._answers))
        self._notify()

    def snapshot(self) -> Dict[str, AnswerValue]:
        return {k: (list(v) if isinstance(v, list) else v) for k, v in self._answers.items()}

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)


__all__ = ["AnswerStore", "AnswerValue"]
