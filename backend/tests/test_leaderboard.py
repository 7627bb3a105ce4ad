import uuid
from datetime import datetime, timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.models.attempt import QuizAttempt
from app.models.quiz import Quiz
from app.models.user import User
from app.services.leaderboard import top_n


def _isolated_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)()


def _user(db, name: str, created_at: datetime) -> User:
    u = User(name=name, credits=0, password_hash="x", created_at=created_at)
    db.add(u)
    db.flush()
    return u


def _attempt(db, user: User, quiz: Quiz, score: int, completed: bool = True) -> None:
    db.add(
        QuizAttempt(
            quiz_id=quiz.id,
            user_id=user.id,
            score=score,
            total_questions=max(score, 1),
            completed=completed,
            credits_earned=0,
        )
    )


def test_ties_are_broken_by_creation_time():
    db = _isolated_session()
    t0 = datetime(2026, 1, 1)
    quiz = Quiz(title="Q", credits_reward=100)
    db.add(quiz)
    db.flush()

    c = _user(db, "carol", t0 + timedelta(minutes=2))
    a = _user(db, "alice", t0 + timedelta(minutes=3))
    b = _user(db, "bob", t0 + timedelta(minutes=1))
    _attempt(db, a, quiz, 20)
    _attempt(db, a, quiz, 10)
    _attempt(db, b, quiz, 10)
    _attempt(db, c, quiz, 10)
    db.commit()

    rows = top_n(db, 10)
    assert [r.name for r in rows] == ["alice", "bob", "carol"]
    assert [r.rank for r in rows] == [1, 2, 3]
    assert rows[0].total_score == 30
    assert rows[0].total_attempts == 2
    assert rows[0].avg_score == 15.0


def test_users_without_attempts_rank_with_zero_and_incomplete_attempts_are_ignored():
    db = _isolated_session()
    t0 = datetime(2026, 1, 1)
    quiz = Quiz(title="Q", credits_reward=100)
    db.add(quiz)
    db.flush()

    scorer = _user(db, "scorer", t0 + timedelta(minutes=5))
    idle = _user(db, "idle", t0)
    _attempt(db, scorer, quiz, 3)
    _attempt(db, idle, quiz, 50, completed=False)
    db.commit()

    rows = top_n(db, 10)
    assert [(r.name, r.total_score, r.total_attempts) for r in rows] == [("scorer", 3, 1), ("idle", 0, 0)]
    assert rows[1].avg_score == 0.0


def test_limit_is_respected():
    db = _isolated_session()
    for i in range(5):
        _user(db, f"user{i}", datetime(2026, 1, 1) + timedelta(seconds=i))
    db.commit()

    assert len(top_n(db, 3)) == 3


def test_leaderboard_endpoint_clamps_limit(client, make_user, monkeypatch):
    from app.core.config import settings

    make_user(name=f"lb_{uuid.uuid4().hex[:6]}")
    monkeypatch.setattr(settings, "leaderboard_max_limit", 2)

    r = client.get("/leaderboard", params={"limit": 50})
    assert r.status_code == 200
    body = r.json()
    assert body["limit"] == 2
    assert len(body["items"]) <= 2

    r = client.get("/leaderboard", params={"limit": 0})
    assert r.status_code == 400
