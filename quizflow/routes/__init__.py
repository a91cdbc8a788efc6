"""APIRouter registration for the quiz service."""

from __future__ import annotations

from fastapi import APIRouter

from quizflow.routes.answers import router as answers_router
from quizflow.routes.questions import router as questions_router
from quizflow.routes.submit import router as submit_router
from quizflow.routes.uploads import router as uploads_router
from quizflow.routes.users import router as users_router

api_router = APIRouter()
api_router.include_router(questions_router, tags=["ReferenceData"])
api_router.include_router(users_router, tags=["Users"])
api_router.include_router(answers_router, tags=["Answers"])
api_router.include_router(submit_router, tags=["Submit"])
api_router.include_router(uploads_router, tags=["Uploads"])

__all__ = ["api_router"]
