"""Durable local snapshot of in-progress answers.

Layout (namespaced keys in a `LocalStorage`):
- `<ns>:quiz-progress`  JSON `{"answers": {...}, "updatedAt": <epoch ms>}`
- `<ns>:quiz-submitted` `"true"` once the quiz was submitted from this client
- `<ns>:quiz-session`   session-correlation id sent with submissions

Storage is probed before every operation. Probe or write failures never
raise: they are logged and the session simply becomes non-resumable.
Snapshots that are malformed (bad JSON, missing or invalid `updatedAt`) or
older than the max age (10 days by default) are deleted when read.
"""

from __future__ import annotations

import json
import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from quizflow.client.storage import LocalStorage

logger = logging.getLogger(__name__)

PROGRESS_KEY = "quiz-progress"
SUBMITTED_KEY = "quiz-submitted"
SESSION_KEY = "quiz-session"
_PROBE_KEY = "__probe__"
DEFAULT_MAX_AGE = timedelta(days=10)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@dataclass(frozen=True)
class LocalQuizSnapshot:
    answers: Dict[str, Any] = field(default_factory=dict)
    updated_at: datetime = field(default_factory=_utcnow)

    def age(self, now: datetime) -> timedelta:
        return now - self.updated_at


class PersistenceLayer:
    def __init__(
        self,
        storage: Optional[LocalStorage],
        *,
        namespace: str = "quizflow",
        max_age: timedelta = DEFAULT_MAX_AGE,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage = storage
        self._namespace = namespace
        self._max_age = max_age
        self._now = now

    def _key(self, name: str) -> str:
        return f"{self._namespace}:{name}"

    def is_available(self) -> bool:
        """Probe storage with a write/remove round-trip."""
        if self._storage is None:
            return False
        probe = self._key(_PROBE_KEY)
        try:
            self._storage.set_item(probe, "1")
            self._storage.remove_item(probe)
            return True
        except Exception as exc:
            logger.warning("persistence_disabled reason=%s", exc)
            return False

    def save(self, answers: Mapping[str, Any]) -> bool:
        if not self.is_available():
            return False
        record = {"answers": dict(answers), "updatedAt": _to_ms(self._now())}
        try:
            self._storage.set_item(self._key(PROGRESS_KEY), json.dumps(record))
        except Exception:
            logger.warning("snapshot_save_failed answers=%s", len(answers), exc_info=True)
            return False
        return True

    def _discard(self, reason: str) -> None:
        logger.info("snapshot_discarded reason=%s", reason)
        self._remove(PROGRESS_KEY)

    def load(self) -> Optional[LocalQuizSnapshot]:
        if not self.is_available():
            return None
        try:
            raw = self._storage.get_item(self._key(PROGRESS_KEY))
        except UnicodeDecodeError:
            self._discard("invalid_encoding")
            return None
        except Exception:
            logger.warning("snapshot_read_failed", exc_info=True)
            return None
        if raw is None:
            return None

        try:
            record = json.loads(raw)
        except (TypeError, ValueError):
            self._discard("invalid_json")
            return None
        if not isinstance(record, dict):
            self._discard("not_an_object")
            return None
        updated_ms = record.get("updatedAt")
        if (
            isinstance(updated_ms, bool)
            or not isinstance(updated_ms, (int, float))
            or not math.isfinite(updated_ms)
            or updated_ms <= 0
        ):
            self._discard("missing_updated_at")
            return None
        answers = record.get("answers")
        if not isinstance(answers, dict):
            self._discard("invalid_answers")
            return None

        try:
            updated_at = datetime.fromtimestamp(updated_ms / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            self._discard("missing_updated_at")
            return None
        snapshot = LocalQuizSnapshot(answers=answers, updated_at=updated_at)
        age = snapshot.age(self._now())
        if age > self._max_age:
            logger.info("snapshot_expired age_days=%.1f", age.total_seconds() / 86400)
            self._discard("expired")
            return None
        return snapshot

    def clear(self) -> None:
        if self.is_available():
            self._remove(PROGRESS_KEY)

    def _remove(self, name: str) -> None:
        try:
            self._storage.remove_item(self._key(name))
        except Exception:
            logger.warning("storage_remove_failed key=%s", name, exc_info=True)

    def is_submitted(self) -> bool:
        if not self.is_available():
            return False
        try:
            return self._storage.get_item(self._key(SUBMITTED_KEY)) == "true"
        except Exception:
            logger.warning("submitted_flag_read_failed", exc_info=True)
            return False

    def mark_submitted(self) -> None:
        if not self.is_available():
            return
        try:
            self._storage.set_item(self._key(SUBMITTED_KEY), "true")
        except Exception:
            logger.warning("submitted_flag_write_failed", exc_info=True)

    def clear_submitted(self) -> None:
        if self.is_available():
            self._remove(SUBMITTED_KEY)

    def session_key(self) -> Optional[str]:
        """Return the session-correlation id, creating one on first use."""
        if not self.is_available():
            return None
        try:
            existing = self._storage.get_item(self._key(SESSION_KEY))
            if existing:
                return existing
            created = str(uuid.uuid4())
            self._storage.set_item(self._key(SESSION_KEY), created)
            return created
        except Exception:
            logger.warning("session_key_unavailable", exc_info=True)
            return None

    def clear_session_key(self) -> None:
        if self.is_available():
            self._remove(SESSION_KEY)


__all__ = ["PersistenceLayer", "LocalQuizSnapshot", "PROGRESS_KEY", "SUBMITTED_KEY", "SESSION_KEY"]
