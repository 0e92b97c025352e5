import inspect
import uuid

import pytest
from fastapi.testclient import TestClient

from engine_fakes import FakeGenerator, FakeStaticStore
from prep_api.app import app
from prep_api.dependencies.auth import get_current_user
from prep_api.routes import attempts as attempt_routes
from prep_api.routes import auth as auth_routes
from prep_api.routes import bookmarks as bookmark_routes
from prep_api.routes import questions as question_routes
from prep_api.services.session_registry import registry
from prep_engine.blueprint import SUBJECTS


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(registry, "generator", FakeGenerator())
    monkeypatch.setattr(
        registry, "static_store", FakeStaticStore(pool={subject: 50 for subject in SUBJECTS})
    )
    with TestClient(app) as test_client:
        yield test_client


def _register(client: TestClient, name: str = "Asha") -> dict[str, str]:
    email = f"{uuid.uuid4().hex[:10]}@gmail.com"
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": "secret123"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _settled(client: TestClient, headers, session_id: str, window: int = 0) -> dict:
    for _ in range(200):
        data = client.get(f"/api/sessions/{session_id}", headers=headers).json()
        if data["windows"][window]["settled"]:
            return data
    raise AssertionError("window never settled")


def test_auth_flow(client: TestClient) -> None:
    email = f"{uuid.uuid4().hex[:10]}@gmail.com"
    payload = {"name": "Ravi", "email": email, "password": "secret123"}
    assert client.post("/api/auth/register", json=payload).status_code == 201
    assert client.post("/api/auth/register", json=payload).status_code == 400

    bad = client.post("/api/auth/login", json={"email": email, "password": "wrong"})
    assert bad.status_code == 401

    login = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Ravi"


def test_endpoints_require_token(client: TestClient) -> None:
    assert client.get("/api/tests/history").status_code == 401
    assert client.post("/api/sessions", json={"test_type": "Full"}).status_code == 401
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get("/api/progress", headers=bad).status_code == 401


def test_subject_session_end_to_end(client: TestClient) -> None:
    headers = _register(client)

    started = client.post(
        "/api/sessions", json={"test_type": "Subject", "subject": "Physics"}, headers=headers
    )
    assert started.status_code == 201
    session_id = started.json()["id"]
    data = _settled(client, headers, session_id)

    assert data["phase"] == "active"
    assert data["total_question_count"] == 30
    assert data["time_remaining_label"].count(":") == 1
    first = data["slots"][0]["question"]
    assert "correctAnswer" not in first
    assert "explanation" not in first

    for slot in data["slots"]:
        if slot["state"] == "loaded":
            answered = client.post(
                f"/api/sessions/{session_id}/answers",
                json={"slot": slot["index"], "option": 0},
                headers=headers,
            )
            assert answered.status_code == 200

    flagged = client.post(f"/api/sessions/{session_id}/flags/4", headers=headers)
    assert flagged.json() == {"slot": 4, "value": True}
    assert client.post(f"/api/sessions/{session_id}/bookmarks/7", headers=headers).status_code == 200

    submitted = client.post(f"/api/sessions/{session_id}/submit", headers=headers)
    assert submitted.status_code == 200
    result = submitted.json()["result"]
    assert (result["score"], result["total"], result["accuracy"]) == (30, 30, 100)
    assert submitted.json()["phase"] == "reviewing"
    assert "correctAnswer" in submitted.json()["slots"][0]["question"]

    # Read-only after submission, but bookmarks still work
    late = client.post(
        f"/api/sessions/{session_id}/answers", json={"slot": 0, "option": 1}, headers=headers
    )
    assert late.status_code == 409
    assert client.post(f"/api/sessions/{session_id}/flags/5", headers=headers).status_code == 409
    assert client.post(f"/api/sessions/{session_id}/bookmarks/9", headers=headers).status_code == 200

    review = client.get(f"/api/sessions/{session_id}/review", headers=headers)
    assert review.status_code == 200
    assert {entry["outcome"] for entry in review.json()["slots"]} == {"correct"}

    history = client.get("/api/tests/history", headers=headers).json()
    assert len(history) == 1
    assert history[0]["subject"] == "Physics"
    assert history[0]["score"] == 30

    bookmarks = client.get("/api/bookmarks", headers=headers).json()
    assert len(bookmarks) == 2

    assert client.delete(f"/api/sessions/{session_id}", headers=headers).status_code == 204
    assert client.get(f"/api/sessions/{session_id}", headers=headers).status_code == 404


def test_gated_full_session_rejects_early_advance(client: TestClient) -> None:
    headers = _register(client)
    started = client.post("/api/sessions", json={"test_type": "Full"}, headers=headers)
    assert started.status_code == 201
    session_id = started.json()["id"]
    _settled(client, headers, session_id)

    locked = client.post(
        f"/api/sessions/{session_id}/answers", json={"slot": 60, "option": 0}, headers=headers
    )
    assert locked.status_code == 409

    out_of_range = client.post(
        f"/api/sessions/{session_id}/answers", json={"slot": 500, "option": 0}, headers=headers
    )
    assert out_of_range.status_code == 400

    advance = client.post(f"/api/sessions/{session_id}/advance", headers=headers)
    assert advance.status_code == 200
    assert advance.json()["advanced"] is False
    assert advance.json()["session"]["current_window_index"] == 0

    review = client.get(f"/api/sessions/{session_id}/review", headers=headers)
    assert review.status_code == 409
    client.delete(f"/api/sessions/{session_id}", headers=headers)


def test_session_of_another_user_is_hidden(client: TestClient) -> None:
    owner = _register(client, "Owner")
    other = _register(client, "Other")
    started = client.post(
        "/api/sessions", json={"test_type": "Subject", "subject": "Chemistry"}, headers=owner
    )
    session_id = started.json()["id"]
    assert client.get(f"/api/sessions/{session_id}", headers=other).status_code == 404
    client.delete(f"/api/sessions/{session_id}", headers=owner)


def test_start_validation_and_abort(client: TestClient, monkeypatch) -> None:
    headers = _register(client)
    unknown = client.post(
        "/api/sessions", json={"test_type": "Subject", "subject": "Astrology"}, headers=headers
    )
    assert unknown.status_code == 400

    monkeypatch.setattr(registry, "generator", FakeGenerator(failing={"Physics"}))
    monkeypatch.setattr(registry, "static_store", FakeStaticStore())
    aborted = client.post(
        "/api/sessions", json={"test_type": "Subject", "subject": "Physics"}, headers=headers
    )
    assert aborted.status_code == 502
    assert "Could not start test" in aborted.json()["detail"]


def test_attempt_stats(client: TestClient) -> None:
    headers = _register(client, "Stats")
    for subject, score in (("Physics", 5), ("Chemistry", 9)):
        saved = client.post(
            "/api/tests/save",
            json={"test_type": "Subject", "subject": subject, "score": score, "total": 10, "duration": 7},
            headers=headers,
        )
        assert saved.status_code == 201
    client.post(
        "/api/tests/save",
        json={"test_type": "Full", "score": 100, "total": 200, "windowIndex": 2},
        headers=headers,
    )

    progress = client.get("/api/progress", headers=headers).json()
    assert progress["total_tests"] == 3
    assert progress["total_score"] == 114
    assert progress["subjects_completed"] == ["Chemistry", "Physics"]
    assert "Full_2" in progress["windows_completed"]

    analytics = client.get("/api/analytics", headers=headers).json()
    assert analytics["weak_topics"] == ["Physics"]
    assert analytics["strong_topics"] == ["Chemistry"]
    assert analytics["average_accuracy"] == 70

    leaderboard = client.get("/api/leaderboard", headers=headers).json()
    assert any(entry["name"] == "Stats" and entry["tests_taken"] == 3 for entry in leaderboard)


def test_static_pool_endpoints(client: TestClient) -> None:
    headers = _register(client)
    question = {
        "text": "Which gate is universal?",
        "options": ["AND", "OR", "NAND", "XOR"],
        "correctAnswer": 2,
        "explanation": "NAND alone can build every gate",
        "subject": "Digital Electronics",
        "difficulty": "Easy",
        "is_important": True,
    }
    seeded = client.post(
        "/api/admin/seed-static", json={"questions": [question, question]}, headers=headers
    )
    assert seeded.status_code == 201
    assert seeded.json() == {"inserted": 2}

    sample = client.get("/api/questions/static/Digital Electronics").json()
    assert len(sample) >= 2
    assert sample[0]["correctAnswer"] == 2

    important = client.get("/api/questions/important").json()
    assert any(q["subject"] == "Digital Electronics" for q in important)

    counts = client.get("/api/admin/static-count", headers=headers).json()
    entry = next(c for c in counts if c["subject"] == "Digital Electronics")
    assert entry["count"] >= 2
    assert entry["important_count"] >= 2

    invalid = dict(question, subject="Astrology")
    rejected = client.post("/api/admin/seed-static", json={"questions": [invalid]}, headers=headers)
    assert rejected.status_code == 400


def test_generate_important_pool(client: TestClient) -> None:
    headers = _register(client)
    response = client.post(
        "/api/admin/generate-important-pool",
        json={"subject": "Computer Networks", "count": 30},
        headers=headers,
    )
    assert response.status_code == 201
    assert response.json() == {"inserted": 30}

    counts = client.get("/api/admin/static-count", headers=headers).json()
    entry = next(c for c in counts if c["subject"] == "Computer Networks")
    assert entry["important_count"] >= 30


def test_generate_bank_previews_without_storing(client: TestClient) -> None:
    headers = _register(client)
    before = client.get("/api/admin/static-count", headers=headers).json()

    response = client.post(
        "/api/admin/generate-bank",
        json={"subject": "Digital Electronics", "difficulty": "hard", "count": 5},
        headers=headers,
    )
    assert response.status_code == 200
    preview = response.json()
    assert len(preview) == 5
    assert {q["difficulty"] for q in preview} == {"Hard"}
    assert {q["subject"] for q in preview} == {"Digital Electronics"}
    assert client.get("/api/admin/static-count", headers=headers).json() == before

    seeded = client.post("/api/admin/seed-static", json={"questions": preview[:3]}, headers=headers)
    assert seeded.json() == {"inserted": 3}

    invalid = client.post(
        "/api/admin/generate-bank",
        json={"subject": "Digital Electronics", "difficulty": "Brutal"},
        headers=headers,
    )
    assert invalid.status_code == 422

def test_bookmark_crud(client: TestClient) -> None:
    headers = _register(client)
    question = {
        "text": "What does TCP stand for?",
        "options": ["a", "b", "c", "d"],
        "correctAnswer": 0,
        "subject": "Computer Networks",
    }
    created = client.post("/api/bookmarks", json={"question_data": question}, headers=headers)
    assert created.status_code == 201
    bookmark_id = created.json()["id"]
    assert created.json()["question_data"]["text"] == "What does TCP stand for?"

    other = _register(client, "Other")
    assert client.delete(f"/api/bookmarks/{bookmark_id}", headers=other).status_code == 404
    assert client.delete(f"/api/bookmarks/{bookmark_id}", headers=headers).status_code == 204
    assert client.get("/api/bookmarks", headers=headers).json() == []


@pytest.mark.parametrize(
    "handler",
    [
        auth_routes.register,
        auth_routes.login,
        attempt_routes.save_test,
        attempt_routes.get_leaderboard,
        attempt_routes.get_analytics,
        bookmark_routes.add_bookmark,
        question_routes.seed_static,
        question_routes.get_static_questions,
        get_current_user,
    ],
)
def test_database_handlers_run_in_threadpool(handler) -> None:
    assert not inspect.iscoroutinefunction(handler)
