"""
tests/test_api_routes.py — FastAPI Route Integration Tests
============================================================
Drives the full HTTP surface through the TestClient against a per-test
SQLite engine: request validation, response shapes, the error envelope
and the invite funnel end to end.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from conftest import make_invite, make_result, make_user
from quizloop.engine.question_bank import get_test_questions


def _answers(wrong: int = 0) -> list[dict]:
    return [
        {
            "questionId": q.id,
            "selectedAnswer": (q.correct_answer + 1) % 4 if i < wrong else q.correct_answer,
        }
        for i, q in enumerate(get_test_questions())
    ]


# ===========================================================================
# Health
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# Orchestrator
# ===========================================================================
class TestDecideEndpoint:
    def test_skip_is_200(self, client):
        resp = client.post("/api/orchestrator/decide", json={
            "userId": "user-1",
            "event": {"type": "practice_completed", "resultId": "missing"},
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["shouldTrigger"] is False
        assert body["reasonCode"] == "no_completion"
        assert body["rationale"] == "No practice test completion found"
        assert body["features_used"] == ["practice_completion_check"]
        assert "loopType" not in body
        assert body["decisionId"]

    def test_trigger(self, client, db_engine):
        make_user(db_engine)
        make_result(db_engine, score=90)
        resp = client.post("/api/orchestrator/decide", json={
            "userId": "user-1",
            "event": {"type": "practice_completed", "resultId": "result-1", "skillGaps": ["Algebra"]},
        })
        body = resp.json()
        assert body["shouldTrigger"] is True
        assert body["loopType"] == "buddy_challenge"
        assert body["reasonCode"] == "eligible"

    @pytest.mark.parametrize("payload", [
        {},
        {"userId": "user-1"},
        {"userId": "", "event": {"type": "practice_completed", "resultId": "r"}},
        {"userId": "u", "event": {"type": "something_else", "resultId": "r"}},
        {"userId": "u", "event": {"type": "practice_completed", "resultId": "  "}},
        {"userId": "u", "event": {"type": "practice_completed", "resultId": "r", "score": 101}},
        {"userId": "u", "event": {"type": "practice_completed", "resultId": "r", "skillGaps": "Algebra"}},
    ])
    def test_malformed_body_is_400(self, client, payload):
        resp = client.post("/api/orchestrator/decide", json=payload)
        assert resp.status_code == 400
        assert resp.json()["error"] == "bad_request"

    def test_unexpected_error_is_500_without_details(self, client):
        with patch(
            "quizloop.services.orchestrator.LoopOrchestrator.decide",
            side_effect=RuntimeError("secret internals"),
        ):
            resp = client.post("/api/orchestrator/decide", json={
                "userId": "u", "event": {"type": "practice_completed", "resultId": "r"},
            })
        assert resp.status_code == 500
        assert resp.json()["error"] == "server_error"
        assert "secret" not in resp.json()["message"]


# ===========================================================================
# Practice
# ===========================================================================
class TestPracticeEndpoint:
    def test_complete(self, client):
        resp = client.post("/api/practice/complete", json={
            "userId": "student-1", "answers": _answers(wrong=1), "name": "Dana Scully",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["score"] == 90
        assert body["skillGaps"] == ["Algebra"]
        assert body["shouldShowInvite"] is True
        assert body["resultId"]

    def test_too_few_answers(self, client):
        resp = client.post("/api/practice/complete", json={
            "userId": "student-1", "answers": _answers()[:3],
        })
        assert resp.status_code == 400
        assert "exactly 10" in resp.json()["message"]


# ===========================================================================
# Invites
# ===========================================================================
class TestInviteFunnel:
    def test_full_loop(self, client):
        practice = client.post("/api/practice/complete", json={
            "userId": "alice", "answers": _answers(wrong=1), "name": "Alice Smith",
        }).json()

        created = client.post("/api/invite/create", json={
            "userId": "alice", "resultId": practice["resultId"],
        })
        assert created.status_code == 200
        created = created.json()
        code = created["shortCode"]
        assert created["shareUrl"] == f"https://quiz.test/invite/{code}"
        assert created["shareCard"] == {
            "text": "Alice just crushed Algebra with 90%! Think you can beat that? 😎",
            "inviterName": "Alice",
            "score": 90,
            "skill": "Algebra",
        }

        preview = client.get(f"/api/invite/{code.upper()}")
        assert preview.status_code == 200
        body = preview.json()
        assert body["inviter"] == {"name": "Alice"}
        assert body["challenge"]["questionCount"] == 5
        assert body["challenge"]["estimatedTime"] == "2 min"
        assert body["callToAction"] == "Beat Alice's score!"

        client.get(f"/api/invite/{code}")

        accepted = client.post(f"/api/invite/{code}/accept", json={"name": "Bob"})
        assert accepted.status_code == 200
        accepted = accepted.json()
        assert accepted["redirectUrl"] == f"/challenge/{accepted['inviteId']}"
        assert len(accepted["challenge"]["questions"]) == 5

        again = client.post(f"/api/invite/{code}/accept", json={"name": "Carol"})
        assert again.status_code == 409
        assert again.json()["error"] == "already_accepted"

        stats = client.get("/api/analytics/k-factor").json()
        assert stats["totalUsers"] == 2
        assert stats["totalInvitesSent"] == 1
        assert stats["totalInvitesOpened"] == 1
        assert stats["totalInvitesAccepted"] == 1
        assert stats["totalFvmReached"] == 0
        assert stats["kFactor"] == 0.0

    def test_create_low_score_is_400(self, client, db_engine):
        make_user(db_engine)
        make_result(db_engine, score=30)
        resp = client.post("/api/invite/create", json={"userId": "user-1", "resultId": "result-1"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "score_too_low"

    def test_create_for_other_users_result_is_403(self, client, db_engine):
        make_user(db_engine)
        make_result(db_engine)
        resp = client.post("/api/invite/create", json={"userId": "intruder", "resultId": "result-1"})
        assert resp.status_code == 403
        assert resp.json()["error"] == "forbidden"

    def test_create_unknown_result_is_404(self, client):
        resp = client.post("/api/invite/create", json={"userId": "u", "resultId": "nope"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "not_found", "message": "Practice result not found"}

    def test_create_collision_exhausted_is_500(self, client, db_engine):
        make_user(db_engine)
        make_result(db_engine)
        with patch(
            "quizloop.services.short_codes.ShortCodeAllocator.check_unique",
            return_value=False,
        ):
            resp = client.post("/api/invite/create", json={"userId": "user-1", "resultId": "result-1"})
        assert resp.status_code == 500
        assert resp.json()["error"] == "server_error"

    def test_invalid_code_is_400(self, client):
        resp = client.get("/api/invite/ab!")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_code"

    def test_unknown_code_is_404(self, client):
        resp = client.get("/api/invite/zzz999")
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    def test_open_counted_once(self, client, db_engine):
        make_user(db_engine)
        make_invite(db_engine)
        client.get("/api/invite/abc123")
        client.get("/api/invite/abc123")
        assert client.get("/api/analytics/k-factor").json()["totalInvitesOpened"] == 1

    def test_accept_requires_name(self, client, db_engine):
        make_user(db_engine)
        make_invite(db_engine)
        resp = client.post("/api/invite/abc123/accept", json={"name": "  "})
        assert resp.status_code == 400
        assert resp.json() == {"error": "bad_request", "message": "Name is required"}

    def test_accept_bad_email(self, client, db_engine):
        make_user(db_engine)
        make_invite(db_engine)
        resp = client.post("/api/invite/abc123/accept", json={"name": "Bob", "email": "bob@"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid email format"


class TestUnknownRoute:
    def test_404_uses_envelope(self, client):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"
