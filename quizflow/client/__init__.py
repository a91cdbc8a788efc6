"""Quiz client core: reference data, answers, local persistence and the session state machine."""

from quizflow.client.controller import QuizController, QuizState, create_controller

__all__ = ["QuizController", "QuizState", "create_controller"]
