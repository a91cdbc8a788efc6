"""Reference data endpoints: questions and categories.

Both lists are served from the application's ReferenceDataCache, so the
database is read once per process. `X-Cache` reports whether the response
came from memory (HIT) or triggered the load (MISS).
"""

from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from quizflow.client.reference_cache import ReferenceDataCache
from quizflow.errors import DataUnavailable
from quizflow.http.problem import problem_response
from quizflow.logic.repository_questions import list_categories, list_questions
from quizflow.models.question import Category, Question

router = APIRouter()
logger = logging.getLogger(__name__)


async def _load_questions() -> list[Question]:
    rows = await anyio.to_thread.run_sync(list_questions)
    return [Question.model_validate(row) for row in rows]


async def _load_categories() -> list[Category]:
    rows = await anyio.to_thread.run_sync(list_categories)
    return [Category.model_validate(row) for row in rows]


def build_reference_cache() -> ReferenceDataCache:
    """Cache over the database-backed question and category lists."""
    return ReferenceDataCache(_load_questions, _load_categories)


def _cache(request: Request) -> ReferenceDataCache:
    return request.app.state.reference_cache


@router.get("/questions", summary="List questions with their options")
async def get_questions(request: Request):
    cache = _cache(request)
    hit = cache.is_loaded("questions")
    try:
        questions = await cache.get_questions()
    except DataUnavailable as exc:
        return problem_response(500, str(exc))
    body = {"success": True, "data": [q.model_dump(by_alias=True, mode="json") for q in questions]}
    return JSONResponse(body, headers={"X-Cache": "HIT" if hit else "MISS"})


@router.get("/categories", summary="List section categories")
async def get_categories(request: Request):
    cache = _cache(request)
    hit = cache.is_loaded("categories")
    try:
        categories = await cache.get_categories()
    except DataUnavailable as exc:
        return problem_response(500, str(exc))
    body = {"success": True, "data": [c.model_dump(by_alias=True, mode="json") for c in categories]}
    return JSONResponse(body, headers={"X-Cache": "HIT" if hit else "MISS"})


__all__ = ["router", "build_reference_cache", "get_questions", "get_categories"]
