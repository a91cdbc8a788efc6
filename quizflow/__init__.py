"""Quizflow: diagnostic questionnaire service and quiz client core.

The backend is a FastAPI application built by `create_app()`; route
handlers live in `quizflow/routes/` and delegate to repositories under
`quizflow/logic/`. The quiz session state machine and its collaborators
live in `quizflow/client/`.
"""

from __future__ import annotations

from quizflow.main import create_app

__all__ = ["create_app"]
