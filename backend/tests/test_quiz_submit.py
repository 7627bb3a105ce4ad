import uuid

from sqlalchemy import func, select

from app.db.session import SessionLocal
from app.models.attempt import QuizAttempt
from app.models.credit import CreditTransaction, CreditTransactionType
from app.models.practice import UserWeakArea
from app.models.quiz import Question
from app.models.user import User


def _balance_and_ledger(user_id):
    with SessionLocal() as db:
        balance = db.scalar(select(User.credits).where(User.id == user_id))
        ledger = db.scalar(
            select(func.coalesce(func.sum(CreditTransaction.amount), 0)).where(CreditTransaction.user_id == user_id)
        )
        return int(balance), int(ledger)


def _submit(client, headers, quiz_id, answers):
    return client.post(
        f"/quizzes/{quiz_id}/submit",
        json={"answers": [{"question_id": str(qid), "selected_answer": letter} for qid, letter in answers]},
        headers=headers,
    )


def test_submit_awards_proportional_credits(client, make_user, make_quiz, auth_for):
    uid = make_user()
    headers = auth_for(uid)
    quiz_id, qids = make_quiz(["A"] * 10, reward=100)

    answers = [(qid, "A") for qid in qids[:7]] + [(qid, "B") for qid in qids[7:]]
    r = _submit(client, headers, quiz_id, answers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["score"] == 7
    assert body["total_questions"] == 10
    assert body["credits_earned"] == 70
    assert body["balance"] == 70
    assert len(body["results"]) == 10

    with SessionLocal() as db:
        tx = db.scalars(select(CreditTransaction).where(CreditTransaction.user_id == uid)).all()
        assert len(tx) == 1
        assert tx[0].amount == 70
        assert tx[0].type == CreditTransactionType.earned
        assert tx[0].description.startswith("Completed quiz: ")
        assert tx[0].related_id == uuid.UUID(body["attempt_id"])

    assert _balance_and_ledger(uid) == (70, 70)


def test_submit_floors_partial_reward(client, make_user, make_quiz, auth_for):
    uid = make_user()
    quiz_id, qids = make_quiz(["C"] * 6, reward=50)

    answers = [(qid, "C") for qid in qids[:4]] + [(qid, "D") for qid in qids[4:]]
    r = _submit(client, auth_for(uid), quiz_id, answers)
    assert r.status_code == 200, r.text
    assert r.json()["credits_earned"] == 33


def test_second_submission_is_rejected_and_balance_unchanged(client, make_user, make_quiz, auth_for):
    uid = make_user()
    headers = auth_for(uid)
    quiz_id, qids = make_quiz(["A", "B"], reward=40)

    r1 = _submit(client, headers, quiz_id, [(qids[0], "A"), (qids[1], "B")])
    assert r1.status_code == 200
    assert r1.json()["credits_earned"] == 40

    r2 = _submit(client, headers, quiz_id, [(qids[0], "A"), (qids[1], "B")])
    assert r2.status_code == 400
    assert r2.json()["error_code"] == "validation_error"
    assert r2.json()["error_message"] == "You have already completed this quiz"

    assert _balance_and_ledger(uid) == (40, 40)
    with SessionLocal() as db:
        n = db.scalar(select(func.count(QuizAttempt.id)).where(QuizAttempt.user_id == uid))
        assert n == 1


def test_zero_score_writes_attempt_but_no_ledger_entry(client, make_user, make_quiz, auth_for):
    uid = make_user()
    quiz_id, qids = make_quiz(["A", "A"])

    r = _submit(client, auth_for(uid), quiz_id, [(qids[0], "B"), (qids[1], "C")])
    assert r.status_code == 200
    assert r.json()["credits_earned"] == 0

    with SessionLocal() as db:
        assert db.scalar(select(func.count(CreditTransaction.id)).where(CreditTransaction.user_id == uid)) == 0
        attempt = db.scalar(select(QuizAttempt).where(QuizAttempt.user_id == uid))
        assert attempt is not None and attempt.completed


def test_completed_flag(client, make_user, make_quiz, auth_for):
    uid = make_user()
    headers = auth_for(uid)
    quiz_id, qids = make_quiz(["A"])

    assert client.get(f"/quizzes/{quiz_id}/completed", headers=headers).json()["completed"] is False
    _submit(client, headers, quiz_id, [(qids[0], "A")])
    assert client.get(f"/quizzes/{quiz_id}/completed", headers=headers).json()["completed"] is True


def test_questions_never_expose_answer_key(client, make_quiz):
    quiz_id, _ = make_quiz(["A", "B", "C"])

    r = client.get(f"/quizzes/{quiz_id}/questions")
    assert r.status_code == 200
    questions = r.json()["questions"]
    assert len(questions) == 3
    for q in questions:
        assert "correct_answer" not in q
        assert "explanation" not in q
        assert set(q["options"]) == {"A", "B", "C", "D"}

    r = client.get("/quizzes/random", params={"limit": 5})
    assert r.status_code == 200
    for q in r.json()["questions"]:
        assert "correct_answer" not in q


def test_answers_for_other_quizzes_are_ignored(client, make_user, make_quiz, auth_for):
    uid = make_user()
    quiz_id, qids = make_quiz(["A", "A"], reward=100)
    _, other_qids = make_quiz(["A"])

    r = _submit(client, auth_for(uid), quiz_id, [(qids[0], "A"), (other_qids[0], "A")])
    assert r.status_code == 200
    body = r.json()
    assert body["score"] == 1
    assert body["total_questions"] == 2
    assert body["credits_earned"] == 50
    assert [x["question_id"] for x in body["results"]] == [str(qids[0])]


def test_empty_quiz_is_rejected(client, make_user, make_quiz, auth_for):
    uid = make_user()
    quiz_id, _ = make_quiz([])

    r = _submit(client, auth_for(uid), quiz_id, [])
    assert r.status_code == 400
    assert r.json()["error_code"] == "validation_error"
    assert _balance_and_ledger(uid) == (0, 0)


def test_unknown_and_inactive_quiz_are_not_found(client, make_user, make_quiz, auth_for):
    uid = make_user()
    headers = auth_for(uid)

    r = client.get(f"/quizzes/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json()["error_code"] == "not_found"

    quiz_id, qids = make_quiz(["A"], is_active=False)
    r = _submit(client, headers, quiz_id, [(qids[0], "A")])
    assert r.status_code == 404
    assert r.json()["error_message"] == "Quiz not found"


def test_invalid_option_letter_is_validation_error(client, make_user, make_quiz, auth_for):
    uid = make_user()
    quiz_id, qids = make_quiz(["A"])

    r = _submit(client, auth_for(uid), quiz_id, [(qids[0], "E")])
    assert r.status_code == 400
    assert r.json()["error_code"] == "validation_error"


def test_submit_requires_authentication(client, make_quiz):
    quiz_id, qids = make_quiz(["A"])
    r = _submit(client, {}, quiz_id, [(qids[0], "A")])
    assert r.status_code == 401
    assert r.json()["error_code"] == "unauthorized"


def test_history_lists_attempts(client, make_user, make_quiz, auth_for):
    uid = make_user()
    headers = auth_for(uid)
    quiz_id, qids = make_quiz(["A", "B"], reward=10)
    _submit(client, headers, quiz_id, [(qids[0], "A"), (qids[1], "A")])

    r = client.get("/quizzes/history", headers=headers)
    assert r.status_code == 200
    items = r.json()["items"]
    assert len(items) == 1
    assert items[0]["quiz_id"] == str(quiz_id)
    assert items[0]["score"] == 1
    assert items[0]["credits_earned"] == 5


def test_submission_updates_weak_areas(client, make_user, make_quiz, auth_for):
    uid = make_user()
    quiz_id, qids = make_quiz(["A", "A", "A"], categories=["Algebra", "Algebra", None])

    _submit(client, auth_for(uid), quiz_id, [(qids[0], "B"), (qids[1], "A"), (qids[2], "C")])

    with SessionLocal() as db:
        areas = {a.category: a for a in db.scalars(select(UserWeakArea).where(UserWeakArea.user_id == uid))}
        assert areas["Algebra"].incorrect_count == 1
        assert areas["Algebra"].total_attempts == 2
        assert areas["General"].incorrect_count == 1


def test_quiz_listing_counts_questions(client, make_quiz):
    quiz_id, _ = make_quiz(["A", "B", "C"], reward=60)

    r = client.get("/quizzes")
    assert r.status_code == 200
    row = next(x for x in r.json() if x["id"] == str(quiz_id))
    assert row["question_count"] == 3
    assert row["credits_reward"] == 60

    with SessionLocal() as db:
        assert db.scalar(select(func.count(Question.id)).where(Question.quiz_id == quiz_id)) == 3
