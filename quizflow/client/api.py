"""Async HTTP client for the quiz backend.

Thin wrapper over `httpx.AsyncClient`: each method performs one request,
raises `httpx.HTTPStatusError` on non-2xx responses and returns parsed
models. Callers decide how a failure degrades (fallback data, skipped
completion check, submission left for retry).
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx

from quizflow.config import ClientConfig
from quizflow.models.question import Category, Question
from quizflow.models.submission import CompletionStatus, SubmissionResult, SubmitPayload, UploadResult

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Quiz-Session"


def _data(response: httpx.Response) -> Any:
    body = response.json()
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class QuizApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, cfg: ClientConfig, **kwargs: Any) -> "QuizApiClient":
        return cls(cfg.api_base_url, timeout=cfg.timeout_seconds, **kwargs)

    async def __aenter__(self) -> "QuizApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, path: str, **params: Any) -> httpx.Response:
        response = await self._client.get(path, params=params or None)
        response.raise_for_status()
        return response

    async def fetch_questions(self) -> List[Question]:
        response = await self._get("/api/questions")
        questions = [Question.model_validate(item) for item in _data(response)]
        logger.debug("questions_fetched count=%s", len(questions))
        return questions

    async def fetch_categories(self) -> List[Category]:
        response = await self._get("/api/categories")
        return [Category.model_validate(item) for item in _data(response)]

    async def check_user(self, phone: str) -> CompletionStatus:
        response = await self._get("/api/users/check", phone=phone)
        return CompletionStatus.model_validate(response.json())

    async def submit(self, payload: SubmitPayload, *, session_key: Optional[str] = None) -> SubmissionResult:
        headers = {SESSION_HEADER: session_key} if session_key else None
        response = await self._client.post(
            "/api/submit", json=payload.model_dump(exclude_none=True), headers=headers
        )
        response.raise_for_status()
        return SubmissionResult.model_validate(_data(response))

    async def upload(
        self,
        content: bytes,
        *,
        filename: str,
        content_type: str,
        old_url: Optional[str] = None,
    ) -> str:
        """Upload an image and return its public URL.

        A body without a string `url` raises pydantic's ValidationError (a ValueError).
        """
        data = {"oldUrl": old_url} if old_url else None
        response = await self._client.post(
            "/api/upload", files={"file": (filename, content, content_type)}, data=data
        )
        response.raise_for_status()
        return UploadResult.model_validate(_data(response)).url


__all__ = ["QuizApiClient", "SESSION_HEADER"]
