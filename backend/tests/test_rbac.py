import uuid

from sqlalchemy import func, select

from app.db.session import SessionLocal
from app.models.attempt import QuizAttempt
from app.models.audit import AuditEvent
from app.models.user import User, UserRole


def _submit_all_correct(client, headers, quiz_id, qids, letter="A"):
    r = client.post(
        f"/quizzes/{quiz_id}/submit",
        json={"answers": [{"question_id": str(q), "selected_answer": letter} for q in qids]},
        headers=headers,
    )
    assert r.status_code == 200, r.text


def test_user_cannot_access_admin_endpoints(client, make_user, make_quiz, auth_for):
    uid = make_user()
    headers = auth_for(uid)
    quiz_id, _ = make_quiz(["A"])

    r = client.post(f"/quizzes/{quiz_id}/reset", headers=headers)
    assert r.status_code == 403
    assert r.json()["error_code"] == "forbidden"

    r = client.get("/admin/credits/reconcile", headers=headers)
    assert r.status_code == 403


def test_admin_reset_allows_retake_and_keeps_credits(client, make_user, make_quiz, auth_for):
    admin_id = make_user(role=UserRole.admin)
    uid = make_user()
    user_headers = auth_for(uid)
    quiz_id, qids = make_quiz(["A", "A"], reward=20)

    _submit_all_correct(client, user_headers, quiz_id, qids)

    r = client.post(
        f"/quizzes/{quiz_id}/reset",
        params={"user_id": str(uid)},
        headers=auth_for(admin_id, UserRole.admin),
    )
    assert r.status_code == 200, r.text
    assert r.json()["deleted_attempts"] == 1

    with SessionLocal() as db:
        assert db.scalar(select(func.count(QuizAttempt.id)).where(QuizAttempt.user_id == uid)) == 0
        assert db.scalar(select(User.credits).where(User.id == uid)) == 20
        event = db.scalar(
            select(AuditEvent).where(
                AuditEvent.event_type == "admin_quiz_attempt_reset", AuditEvent.target_user_id == uid
            )
        )
        assert event is not None
        assert event.actor_user_id == admin_id
        assert event.ref_id == quiz_id

    _submit_all_correct(client, user_headers, quiz_id, qids)
    with SessionLocal() as db:
        assert db.scalar(select(User.credits).where(User.id == uid)) == 40


def test_reset_unknown_user_is_not_found(client, make_user, make_quiz, auth_for):
    admin_id = make_user(role=UserRole.admin)
    quiz_id, _ = make_quiz(["A"])

    r = client.post(
        f"/quizzes/{quiz_id}/reset",
        params={"user_id": str(uuid.uuid4())},
        headers=auth_for(admin_id, UserRole.admin),
    )
    assert r.status_code == 404
    assert r.json()["error_message"] == "User not found"


def test_invalid_token_is_unauthorized(client):
    r = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401
    assert r.json()["error_code"] == "unauthorized"
