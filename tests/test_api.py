"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from qualification_engine.api import endpoints
from qualification_engine.api.endpoints import app

QUESTIONS = [
    {"id": "budget", "text": "What budget have you allocated?", "orderIndex": 0, "scoringWeight": 3},
    {"id": "timeline", "text": "When do you plan to roll this out?", "orderIndex": 1, "scoringWeight": 1},
]

STRONG_ANSWER = "Yes, we have budget approved and need this urgently"


@pytest.fixture
def client():
    endpoints.sessions.clear()
    endpoints.record_writer.records.clear()
    endpoints.record_writer.lead_statuses.clear()
    endpoints.session_last_seen.clear()
    return TestClient(app)


def _open_session(client, **extra):
    response = client.post("/api/sessions", json={"questions": QUESTIONS, **extra})
    assert response.status_code == 200
    return response.json()


class TestInfoEndpoints:
    """Tests for info and health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "Lead Qualification Engine"

    def test_health(self, client):
        data = client.get("/api/health").json()
        assert data["status"] == "healthy"
        assert data["threshold_table"] == "standard"

    def test_config(self, client):
        data = client.get("/api/config").json()
        assert data["thresholds"]["hot"] == 70
        assert "yes" in data["keywords"]["positive"]

    def test_sample_run(self, client):
        data = client.post("/api/test").json()
        assert data["test"] == "success"
        assert data["extracted"]["budget"] == "budget is $50k"
        assert data["status"] in ("hot", "warm", "cold")


class TestScoringEndpoints:
    """Tests for stateless scoring and extraction."""

    def test_score(self, client):
        response = client.post("/api/qualify/score", json={
            "questions": QUESTIONS,
            "answers": {"budget": STRONG_ANSWER, "timeline": ""},
        })
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 100
        assert data["status"] == "hot"
        assert data["next_action"] == "Schedule demo meeting"
        assert data["answered_questions"] == 1

    def test_score_enhanced_table(self, client):
        data = client.post("/api/qualify/score", json={
            "questions": QUESTIONS,
            "answers": {"budget": "x" * 25, "timeline": "yes"},
            "threshold_table": "enhanced",
        }).json()
        assert data["score"] == 63
        assert data["status"] == "warm"
        assert data["next_action"] == "Follow up in 1 week"

    def test_score_unknown_table(self, client):
        response = client.post("/api/qualify/score", json={
            "questions": QUESTIONS,
            "answers": {},
            "threshold_table": "aggressive",
        })
        assert response.status_code == 422
        assert response.json()["type"] == "ConfigurationError"

    def test_duplicate_order_rejected(self, client):
        """Bad question configuration never reaches the scorer."""
        questions = [dict(q, orderIndex=0) for q in QUESTIONS]
        response = client.post("/api/qualify/score", json={"questions": questions, "answers": {}})
        assert response.status_code == 422

    def test_extract(self, client):
        data = client.post("/api/qualify/extract", json={
            "questions": QUESTIONS,
            "transcript": "Our budget is $50k for this. We go live within 3 months.",
        }).json()
        assert data["extracted"] == {"budget": "budget is $50k", "timeline": "within 3 months"}
        assert data["matches"][0]["technique"] == "pattern"

    def test_extract_prefer_existing(self, client):
        data = client.post("/api/qualify/extract", json={
            "questions": QUESTIONS,
            "transcript": "Our budget is $50k for this.",
            "existing_answers": {"budget": "around 40k"},
            "merge_policy": "prefer_existing",
        }).json()
        assert data["extracted"]["budget"] == "budget is $50k"
        assert data["answers"]["budget"] == "around 40k"

    def test_transcript_too_large(self, client, monkeypatch):
        monkeypatch.setitem(endpoints.API_CONFIG, "max_transcript_chars", 10)
        response = client.post("/api/qualify/extract", json={
            "questions": QUESTIONS,
            "transcript": "Our budget is $50k for this.",
        })
        assert response.status_code == 413
        assert response.json()["detail"]["limit"] == 10


class TestSessionEndpoints:
    """Tests for the session workflow over HTTP."""

    def test_full_flow(self, client):
        session = _open_session(client, client_id="client-1", rep_id="rep-1")
        session_id = session["session_id"]
        assert session["step"]["kind"] == "question"
        assert session["total_steps"] == 3

        response = client.put(f"/api/sessions/{session_id}/answers/budget", json={"answer": STRONG_ANSWER})
        assert response.json()["answers"]["budget"] == STRONG_ANSWER

        client.post(f"/api/sessions/{session_id}/next")
        data = client.post(f"/api/sessions/{session_id}/next").json()
        assert data["step"]["kind"] == "summary"

        record = client.post(f"/api/sessions/{session_id}/save").json()
        assert record["score"] == 100
        assert record["qualification_status"] == "hot"
        assert record["tags"] == ["hot-lead", "high-priority"]

        records = client.get("/api/records").json()
        assert records["count"] == 1
        assert records["lead_statuses"]["client-1"]["status"] == "completed"

    def test_session_resumes_saved_record(self, client):
        """Reopening a saved lead picks up its answers."""
        first = _open_session(client, client_id="client-1", rep_id="rep-1", answers={"budget": "$20k"})
        client.post(f"/api/sessions/{first['session_id']}/next")
        client.post(f"/api/sessions/{first['session_id']}/next")
        saved = client.post(f"/api/sessions/{first['session_id']}/save").json()

        second = _open_session(client, client_id="client-1", rep_id="rep-1")
        assert second["answers"] == {"budget": "$20k"}
        assert second["record_id"] == saved["record_id"]

    def test_save_before_summary(self, client):
        session = _open_session(client)
        response = client.post(f"/api/sessions/{session['session_id']}/save")
        assert response.status_code == 409
        assert response.json()["type"] == "InvalidTransitionError"

    def test_save_writer_failure(self, client, flaky_writer, monkeypatch):
        """A failed write maps to 502 and the same session can save again."""
        monkeypatch.setattr(endpoints.default_engine, "writer", flaky_writer)
        session = _open_session(client, client_id="client-1")
        session_id = session["session_id"]
        client.post(f"/api/sessions/{session_id}/next")
        client.post(f"/api/sessions/{session_id}/next")

        response = client.post(f"/api/sessions/{session_id}/save")
        assert response.status_code == 502
        assert response.json()["error"] == "database unavailable"
        assert client.post(f"/api/sessions/{session_id}/save").status_code == 200
        assert len(flaky_writer.records) == 1

    def test_idle_sessions_expire(self, client, monkeypatch):
        """Sessions idle past the TTL are evicted from the store."""
        session = _open_session(client)
        monkeypatch.setitem(endpoints.API_CONFIG, "session_ttl_seconds", 0)

        response = client.get(f"/api/sessions/{session['session_id']}")
        assert response.status_code == 404
        assert endpoints.sessions == {}
        assert endpoints.session_last_seen == {}

    def test_active_sessions_kept(self, client):
        first = _open_session(client)
        _open_session(client)
        assert client.get(f"/api/sessions/{first['session_id']}").status_code == 200
        assert len(endpoints.sessions) == 2

    def test_unknown_session(self, client):
        response = client.get("/api/sessions/missing")
        assert response.status_code == 404
        assert response.json()["type"] == "SessionNotFoundError"

    def test_unknown_question(self, client):
        session = _open_session(client)
        response = client.put(f"/api/sessions/{session['session_id']}/answers/nope", json={"answer": "x"})
        assert response.status_code == 404

    def test_transcript_prefill(self, client):
        session = _open_session(client, transcript="Our budget is $50k for this.")
        assert session["answers"]["budget"] == "budget is $50k"

        data = client.post(f"/api/sessions/{session['session_id']}/transcript", json={
            "transcript": "We go live within 3 months.",
        }).json()
        assert data["extracted"] == {"timeline": "within 3 months"}
        assert data["answers"]["budget"] == "budget is $50k"

    def test_get_session_preview(self, client):
        session = _open_session(client, answers={"budget": STRONG_ANSWER})
        data = client.get(f"/api/sessions/{session['session_id']}").json()
        assert data["preview"]["score"] == 100

    def test_prev_and_abandon(self, client):
        session = _open_session(client)
        session_id = session["session_id"]
        assert client.post(f"/api/sessions/{session_id}/prev").json()["current_step"] == 0

        assert client.delete(f"/api/sessions/{session_id}").json()["status"] == "abandoned"
        assert client.get(f"/api/sessions/{session_id}").status_code == 404
