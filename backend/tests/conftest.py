import os
import sys
from pathlib import Path
import uuid
import time

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db import session as session_module
from app.main import create_app

# Import models so that they are registered in Base.metadata before create_all.
import app.models  # noqa: F401
from app.core.security import create_access_token, hash_password
from app.models.credit import CreditTransactionType
from app.models.quiz import OptionLetter, Question, Quiz
from app.models.user import User, UserRole


class _MemoryRedis:
    def __init__(self):
        self._data: dict[str, tuple[str, float | None]] = {}

    def ping(self):
        return True

    def _now(self) -> float:
        return time.time()

    def _get_entry(self, key: str):
        v = self._data.get(key)
        if not v:
            return None
        value, exp = v
        if exp is not None and exp <= self._now():
            self._data.pop(key, None)
            return None
        return value, exp

    def get(self, key: str):
        entry = self._get_entry(key)
        return entry[0] if entry else None

    def set(self, key: str, value: str, ex: int | None = None):
        exp = (self._now() + int(ex)) if ex else None
        self._data[key] = (value, exp)
        return True

    def delete(self, key: str):
        self._data.pop(key, None)
        return 1

    def incr(self, key: str):
        cur = self.get(key)
        n = int(cur or 0) + 1
        _, exp = self._data.get(key, ("", None))
        self._data[key] = (str(n), exp)
        return n

    def expire(self, key: str, seconds: int):
        entry = self._get_entry(key)
        if not entry:
            return False
        value, _ = entry
        self._data[key] = (value, self._now() + int(seconds))
        return True

    def ttl(self, key: str):
        entry = self._get_entry(key)
        if not entry:
            return -2
        _, exp = entry
        if exp is None:
            return -1
        return max(0, int(exp - self._now()))


# Configure test DB (SQLite in-memory) at import time so all tests importing
# app.db.session.SessionLocal will get the patched version.
_engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
Base.metadata.create_all(bind=_engine)
session_module.engine = _engine
session_module.SessionLocal = session_module.sessionmaker(autocommit=False, autoflush=False, bind=_engine)


# Stub Redis at import time (rate limiting + readiness probe).
_mem_redis = _MemoryRedis()
import app.core.redis_client as redis_client_module

redis_client_module.get_redis = lambda: _mem_redis

import app.core.rate_limit as rate_limit_module
rate_limit_module.get_redis = lambda: _mem_redis

import app.routers.health as health_router_module
health_router_module.get_redis = lambda: _mem_redis


@pytest.fixture(scope="session")
def client():
    app = create_app()

    # Ensure app dependencies use our session factory.
    def _get_db_override():
        db = session_module.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[session_module.get_db] = _get_db_override
    return TestClient(app)


@pytest.fixture(autouse=True)
def _isolate_requests(client):
    _mem_redis._data.clear()
    client.cookies.clear()
    yield


@pytest.fixture()
def db():
    with session_module.SessionLocal() as session:
        yield session


@pytest.fixture()
def user_token(client, monkeypatch):
    from app.core.config import settings
    username = f"test_{uuid.uuid4().hex[:8]}"
    password = "testpass123"

    monkeypatch.setattr(settings, "allow_public_register", True)
    r = client.post("/auth/register", json={"name": username, "password": password})
    assert r.status_code == 200

    r = client.post(
        "/auth/token",
        data={"username": username, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert r.status_code == 200
    token = r.json()["access_token"]
    return token


@pytest.fixture()
def auth_headers(user_token):
    return {"Authorization": f"Bearer {user_token}"}


def headers_for(user_id: uuid.UUID, role: UserRole = UserRole.user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id=str(user_id), role=role.value)}"}


@pytest.fixture()
def auth_for():
    return headers_for


_PASSWORD_HASH = hash_password("testpass123")


@pytest.fixture()
def make_user():
    """Create a user directly; starting credits go through the ledger as a bonus."""
    from app.services.credits import adjust_balance

    def _make(*, credits: int = 0, role: UserRole = UserRole.user, name: str | None = None) -> uuid.UUID:
        with session_module.SessionLocal() as db:
            user = User(
                name=name or f"u_{uuid.uuid4().hex[:10]}",
                role=role,
                credits=0,
                password_hash=_PASSWORD_HASH,
            )
            db.add(user)
            db.flush()
            if credits:
                adjust_balance(db, user=user, delta=credits, type=CreditTransactionType.bonus, description="Starting balance")
            db.commit()
            return user.id

    return _make


@pytest.fixture()
def make_quiz():
    """Create an active quiz; `answers` lists each question's correct letter."""

    def _make(
        answers: list[str],
        *,
        reward: int = 100,
        categories: list[str | None] | None = None,
        is_active: bool = True,
    ) -> tuple[uuid.UUID, list[uuid.UUID]]:
        with session_module.SessionLocal() as db:
            quiz = Quiz(
                title=f"Quiz {uuid.uuid4().hex[:6]}",
                description=None,
                category="Science",
                credits_reward=reward,
                is_active=is_active,
            )
            db.add(quiz)
            db.flush()
            ids: list[uuid.UUID] = []
            for i, letter in enumerate(answers):
                q = Question(
                    quiz_id=quiz.id,
                    prompt=f"Question {i + 1}?",
                    option_a="a",
                    option_b="b",
                    option_c="c",
                    option_d="d",
                    correct_answer=OptionLetter(letter),
                    category=(categories[i] if categories else "Science"),
                )
                db.add(q)
                db.flush()
                ids.append(q.id)
            db.commit()
            return quiz.id, ids

    return _make
