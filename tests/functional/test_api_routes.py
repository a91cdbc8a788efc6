"""Functional tests for the HTTP API against a seeded SQLite database."""

from __future__ import annotations

import pytest

from quizflow.logic.repository_answers import count_answers


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "db": True}
    assert resp.headers["X-Request-Id"]


def test_questions_are_ordered_and_served_from_cache(client):
    first = client.get("/api/questions")
    assert first.status_code == 200
    assert first.headers["X-Cache"] == "MISS"
    body = first.json()
    assert body["success"] is True
    ids = [q["id"] for q in body["data"]]
    assert ids[:2] == ["name", "phone"] and ids[-1] == "scalp-photo"
    sections = [q["section"] for q in body["data"]]
    assert sections == sorted(sections)
    gender = next(q for q in body["data"] if q["id"] == "gender")
    assert gender["type"] == "gender"
    assert [o["value"] for o in gender["options"]] == ["male", "female"]

    second = client.get("/api/questions")
    assert second.headers["X-Cache"] == "HIT"
    assert second.json() == body


def test_categories_are_ordered(client):
    resp = client.get("/api/categories")
    assert resp.status_code == 200
    assert [c["title"] for c in resp.json()["data"]] == ["About", "Hair", "Internal", "Scalp"]


def test_users_check_requires_phone(client):
    resp = client.get("/api/users/check")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Validation error", "message": "Phone number is required"}


def test_users_check_reports_completion_by_answers(client):
    assert client.get("/api/users/check", params={"phone": "9876543210"}).json() == {
        "exists": False,
        "hasCompleted": False,
    }

    user = client.post("/api/users", json={"phone": "9876543210", "name": "Ravi"}).json()["data"]
    status = client.get("/api/users/check", params={"phone": "9876543210"}).json()
    assert status == {"exists": True, "hasCompleted": False, "userId": user["id"]}

    client.post("/api/answers", json={"userId": user["id"], "questionId": "name", "answerType": "STRING", "value": "Ravi"})
    assert client.get("/api/users/check", params={"phone": "987-654-3210"}).json()["hasCompleted"] is True


def test_user_upsert_keeps_existing_fields(client):
    created = client.post("/api/users", json={"phone": "9000000001", "name": "A", "email": "a@x.io"})
    assert created.status_code == 201
    updated = client.post("/api/users", json={"phone": "9000000001", "name": "B"}).json()["data"]
    assert updated["id"] == created.json()["data"]["id"]
    assert updated["name"] == "B" and updated["email"] == "a@x.io"

    by_email = client.get("/api/users", params={"email": "a@x.io"})
    assert by_email.status_code == 200
    assert by_email.json()["data"]["answers"] == []


def test_user_lookup_errors(client):
    assert client.get("/api/users").status_code == 400
    missing = client.get("/api/users", params={"phone": "9111111111"})
    assert missing.status_code == 404
    assert missing.json()["message"] == "User not found"
    assert client.post("/api/users", json={"name": "nobody"}).status_code == 400


def test_answer_upsert_overwrites_the_same_pair(client):
    user_id = client.post("/api/users", json={"phone": "9000000002"}).json()["data"]["id"]
    payload = {"userId": user_id, "questionId": "age", "answerType": "NUMBER", "value": 30}
    first = client.post("/api/answers", json=payload)
    assert first.status_code == 201
    second = client.post("/api/answers", json={**payload, "value": "31"})
    assert second.json()["data"]["numberValue"] == 31

    answers = client.get("/api/answers", params={"userId": user_id}).json()["data"]
    assert len(answers) == 1
    assert answers[0]["id"] == first.json()["data"]["id"]
    assert count_answers(user_id) == 1


@pytest.mark.parametrize(
    "payload,message",
    [
        ({"questionId": "age", "answerType": "NUMBER", "value": 1}, "userId, questionId, and answerType are required"),
        ({"userId": "u", "questionId": "age", "answerType": "COLOUR", "value": 1}, "invalid answerType 'COLOUR'"),
    ],
)
def test_answer_payload_errors(client, payload, message):
    resp = client.post("/api/answers", json=payload)
    assert resp.status_code == 400
    assert resp.json()["message"] == message


def test_answer_type_must_match_the_question_type(client):
    user_id = client.post("/api/users", json={"phone": "9000000005"}).json()["data"]["id"]
    resp = client.post(
        "/api/answers",
        json={"userId": user_id, "questionId": "age", "answerType": "BOOLEAN", "value": True},
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "answerType BOOLEAN does not match question type number (expected NUMBER)"
    assert count_answers(user_id) == 0


def test_answer_for_unknown_user_or_question_is_rejected(client):
    user_id = client.post("/api/users", json={"phone": "9000000006"}).json()["data"]["id"]
    unknown_question = client.post(
        "/api/answers",
        json={"userId": user_id, "questionId": "no-such-question", "answerType": "STRING", "value": "x"},
    )
    assert unknown_question.status_code == 400
    assert unknown_question.json()["message"] == "Unknown questionId 'no-such-question'"

    unknown_user = client.post(
        "/api/answers",
        json={"userId": "nobody", "questionId": "name", "answerType": "STRING", "value": "x"},
    )
    assert unknown_user.status_code == 400
    assert unknown_user.json()["message"] == "Unknown userId 'nobody'"
    assert count_answers() == 0


def test_sqlite_enforces_answer_foreign_keys():
    from sqlalchemy.exc import IntegrityError

    from quizflow.db.base import get_engine
    from quizflow.logic.repository_answers import upsert_answer
    from quizflow.models.answer import StringAnswer

    with pytest.raises(IntegrityError):
        with get_engine().begin() as conn:
            upsert_answer(conn, "nobody", "name", StringAnswer(string_value="orphan"))
    assert count_answers() == 0


def test_submit_upserts_user_and_one_answer_per_question(client):
    payload = {
        "phone": "98765 43210",
        "name": "Asha",
        "answers": {
            "name": "Asha",
            "phone": "98765 43210",
            "age": "29",
            "gender": "female",
            "hair-loss-stage": "stage-2",
            "not-a-question": "ignored",
        },
    }
    first = client.post("/api/submit", json=payload)
    assert first.status_code == 201
    body = first.json()
    assert body["success"] is True and body["data"]["phone"] == "9876543210"
    user_id = body["data"]["userId"]
    assert count_answers(user_id) == 5

    again = client.post("/api/submit", json={**payload, "answers": {**payload["answers"], "age": 30}})
    assert again.json()["data"]["userId"] == user_id
    assert count_answers(user_id) == 5

    user = client.get("/api/users", params={"phone": "9876543210"}).json()["data"]
    by_question = {a["questionId"]: a for a in user["answers"]}
    assert by_question["age"]["numberValue"] == 30
    assert by_question["gender"]["answerType"] == "SINGLE"
    assert user["name"] == "Asha"


def test_submit_validation(client):
    assert client.post("/api/submit", json={"answers": {"name": "A"}}).status_code == 400
    resp = client.post("/api/submit", json={"phone": "9000000003", "answers": {}})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Answers are required"
    bad_value = client.post("/api/submit", json={"phone": "9000000003", "answers": {"age": "old"}})
    assert bad_value.status_code == 400


def test_upload_stores_image_and_removes_previous(client, uploads_dir):
    first = client.post("/api/upload", files={"file": ("scalp.png", b"\x89PNG-1", "image/png")})
    assert first.status_code == 201
    data = first.json()["data"]
    assert data["url"].startswith("/uploads/") and data["url"].endswith(".png")
    stored = uploads_dir / data["filename"]
    assert stored.read_bytes() == b"\x89PNG-1"

    second = client.post(
        "/api/upload",
        files={"file": ("scalp2.webp", b"RIFF", "image/webp")},
        data={"oldUrl": data["url"]},
    )
    assert second.status_code == 201
    assert not stored.exists()
    assert (uploads_dir / second.json()["data"]["filename"]).exists()


def test_upload_rejects_non_images(client):
    resp = client.post("/api/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid file type. Only images are allowed."
    assert client.post("/api/upload").status_code == 400


def test_session_header_is_echoed(client):
    resp = client.get("/api/categories", headers={"X-Quiz-Session": "abc"})
    assert resp.headers["X-Quiz-Session"] == "abc"
