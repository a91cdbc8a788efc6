from __future__ import annotations

"""Functional test bootstrap.

Routes run against a file-backed SQLite database created under `tmp/`,
migrated and seeded once per session. Client-core tests talk to an
in-process fake backend through `httpx.MockTransport`.
"""

import json
import os
import pathlib
from datetime import datetime, timedelta, timezone

import httpx
import pytest

# Point the app at a fresh SQLite file before any quizflow import
_ROOT = pathlib.Path(__file__).resolve().parents[2]
_TMP = _ROOT / "tmp"
_DB_FILE = _TMP / "functional_tests.db"
_TMP.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
os.environ["QUIZ_UPLOADS_DIR"] = str(_TMP / "uploads")
# Migrations are applied explicitly below, not by the startup hook
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"


@pytest.fixture(scope="session", autouse=True)
def functional_sqlite_bootstrap():
    """Apply migrations and seed the bundled question set once."""
    from quizflow.db.base import dispose_engine, get_engine
    from quizflow.db.migrations_runner import apply_migrations
    from quizflow.logic.seed import seed_reference_data

    engine = get_engine(os.environ["TEST_DATABASE_URL"])
    apply_migrations(engine)
    seed_reference_data(engine)
    yield
    dispose_engine()


@pytest.fixture(autouse=True)
def clean_user_data():
    yield
    from sqlalchemy import text as sql_text

    from quizflow.db.base import get_engine

    with get_engine().begin() as conn:
        conn.execute(sql_text("DELETE FROM answer"))
        conn.execute(sql_text("DELETE FROM app_user"))


@pytest.fixture
def app():
    from quizflow.main import create_app

    return create_app()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        yield c


@pytest.fixture
def uploads_dir() -> pathlib.Path:
    return pathlib.Path(os.environ["QUIZ_UPLOADS_DIR"])


# ----------------------------------------------------------------------------
# Client-core fakes
# ----------------------------------------------------------------------------


class FixedClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class FakeBackend:
    """Scripted quiz backend served through httpx.MockTransport."""

    def __init__(self) -> None:
        from quizflow.client.fallback import bundled_categories, bundled_questions

        self.questions = [q.model_dump(by_alias=True, mode="json") for q in bundled_questions()]
        self.categories = [c.model_dump(by_alias=True, mode="json") for c in bundled_categories()]
        self.completed: dict[str, bool] = {}
        self.failing: set[str] = set()
        self.submissions: list[dict] = []
        self.upload_body: object = {"success": True, "data": {"url": "/uploads/scalp.png"}}
        self.requests: list[httpx.Request] = []

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.failing:
            return httpx.Response(503, json={"error": "Unavailable", "message": "down"})
        if path == "/api/questions":
            return httpx.Response(200, json={"success": True, "data": self.questions})
        if path == "/api/categories":
            return httpx.Response(200, json={"success": True, "data": self.categories})
        if path == "/api/users/check":
            phone = request.url.params.get("phone", "")
            done = self.completed.get(phone)
            body = {"exists": done is not None, "hasCompleted": bool(done)}
            if done is not None:
                body["userId"] = f"user-{phone}"
            return httpx.Response(200, json=body)
        if path == "/api/submit":
            body = json.loads(request.content)
            self.submissions.append(body)
            return httpx.Response(
                201,
                json={"success": True, "data": {"userId": f"user-{body['phone']}", "phone": body["phone"]}},
            )
        if path == "/api/upload":
            return httpx.Response(201, json=self.upload_body)
        return httpx.Response(404, json={"error": "Not found", "message": path})


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api(backend):
    from quizflow.client.api import QuizApiClient

    return QuizApiClient("http://quiz.test", transport=httpx.MockTransport(backend.handler))


@pytest.fixture
def storage():
    from quizflow.client.storage import MemoryStorage

    return MemoryStorage()


@pytest.fixture
def persistence(storage, clock):
    from quizflow.client.persistence import PersistenceLayer

    return PersistenceLayer(storage, namespace="test", now=clock)


@pytest.fixture
def make_controller(api, persistence):
    """Factory building a controller over the fake backend."""
    from quizflow.client.completion import CompletionGate
    from quizflow.client.controller import QuizController
    from quizflow.client.fallback import bundled_reference_data
    from quizflow.client.reference_cache import ReferenceDataCache
    from quizflow.client.submission import SubmissionClient

    def _make(*, layer=None, fallback=bundled_reference_data) -> QuizController:
        layer = layer or persistence
        return QuizController(
            cache=ReferenceDataCache(api.fetch_questions, api.fetch_categories),
            persistence=layer,
            gate=CompletionGate(api),
            submitter=SubmissionClient(api, layer),
            api=api,
            fallback=fallback,
        )

    return _make


@pytest.fixture
def valid_answers() -> dict:
    """A valid value for every bundled question except the upload."""
    return {
        "name": "Asha",
        "phone": "999-888-7770",
        "gender": "female",
        "age": "29",
        "hair-loss-stage": "stage-2",
        "dandruff": "mild",
        "sleep": "peaceful",
        "stress": "low",
        "constipation": "no",
        "gas": "sometimes",
        "energy": "high",
        "supplements": "no",
    }
