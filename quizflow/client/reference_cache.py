"""Process-lifetime cache for immutable reference data (questions, categories).

The cache is an explicit object owned by the application context and
passed to its consumers. Each collection is fetched once and then served
from memory; there is no expiry.

Concurrent first calls are coalesced (single-flight): the first caller
starts the fetch as a task and every caller arriving while it is in flight
awaits the same task, so they all receive the same value or the same
DataUnavailable failure. A failed fetch is not cached; the next call
fetches again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from quizflow.errors import DataUnavailable
from quizflow.models.question import Category, Question

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[Sequence[T]]]


class _SingleFlightEntry(Generic[T]):
    def __init__(self, name: str, fetch: Fetcher) -> None:
        self.name = name
        self._fetch = fetch
        self._value: Optional[List[T]] = None
        self._inflight: Optional[asyncio.Task] = None
        self.fetch_count = 0

    @property
    def loaded(self) -> bool:
        return self._value is not None

    async def get(self) -> List[T]:
        if self._value is not None:
            return self._value
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._load())
        else:
            logger.debug("reference_fetch_coalesced name=%s", self.name)
        # A cancelled caller must not cancel the fetch other callers share
        return await asyncio.shield(self._inflight)

    async def _load(self) -> List[T]:
        self.fetch_count += 1
        logger.info("reference_fetch_start name=%s attempt=%s", self.name, self.fetch_count)
        try:
            value = list(await self._fetch())
        except Exception as exc:
            self._inflight = None
            logger.error("reference_fetch_failed name=%s error=%s", self.name, exc)
            raise DataUnavailable(f"{self.name} could not be fetched") from exc
        self._value = value
        self._inflight = None
        logger.info("reference_fetch_done name=%s count=%s", self.name, len(value))
        return value

    def invalidate(self) -> None:
        self._value = None


class ReferenceDataCache:
    """Single-flight, no-expiry cache over a questions and a categories fetcher."""

    def __init__(
        self,
        fetch_questions: Callable[[], Awaitable[Sequence[Question]]],
        fetch_categories: Callable[[], Awaitable[Sequence[Category]]],
    ) -> None:
        self._questions: _SingleFlightEntry[Question] = _SingleFlightEntry("questions", fetch_questions)
        self._categories: _SingleFlightEntry[Category] = _SingleFlightEntry("categories", fetch_categories)

    async def get_questions(self) -> List[Question]:
        return await self._questions.get()

    async def get_categories(self) -> List[Category]:
        return await self._categories.get()

    def is_loaded(self, name: str) -> bool:
        return self._entry(name).loaded

    def fetch_count(self, name: str) -> int:
        return self._entry(name).fetch_count

    def invalidate(self) -> None:
        """Drop cached values; the next call fetches again."""
        self._questions.invalidate()
        self._categories.invalidate()
        logger.info("reference_cache_invalidated")

    def _entry(self, name: str) -> _SingleFlightEntry:
        if name == "questions":
            return self._questions
        if name == "categories":
            return self._categories
        raise KeyError(name)


__all__ = ["ReferenceDataCache"]
