"""Error taxonomy shared by the quiz client core and the backend.

Each class names one recovery path:
- DataUnavailable: reference data could not be fetched (fallback or error screen)
- ValidationFailure: a malformed answer or payload (blocks the current transition)
- PersistenceUnavailable: local storage disabled or full (session not resumable)
- NetworkDegraded: an advisory or submission round-trip failed
"""

from __future__ import annotations


class QuizError(Exception):
    pass


class DataUnavailable(QuizError):
    pass


class ValidationFailure(QuizError, ValueError):
    pass


class PersistenceUnavailable(QuizError, OSError):
    pass


class NetworkDegraded(QuizError):
    pass


__all__ = [
    "QuizError",
    "DataUnavailable",
    "ValidationFailure",
    "PersistenceUnavailable",
    "NetworkDegraded",
]
