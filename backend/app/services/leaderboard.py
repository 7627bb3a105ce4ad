from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.attempt import QuizAttempt
from app.models.user import User


@dataclass(frozen=True)
class LeaderboardRow:
    rank: int
    user_id: uuid.UUID
    name: str
    credits: int
    total_score: int
    total_attempts: int
    avg_score: float


def top_n(db: Session, n: int) -> list[LeaderboardRow]:
    """Users ranked by summed completed-attempt scores.

    Ties go to the earlier-created user, then by name. Users without
    attempts are included with a zero score.
    """
    total_score = func.coalesce(func.sum(QuizAttempt.score), 0)
    rows = db.execute(
        select(
            User.id,
            User.name,
            User.credits,
            total_score.label("total_score"),
            func.count(QuizAttempt.id).label("total_attempts"),
        )
        .outerjoin(
            QuizAttempt,
            (QuizAttempt.user_id == User.id) & (QuizAttempt.completed == True),  # noqa: E712
        )
        .group_by(User.id, User.name, User.credits, User.created_at)
        .order_by(total_score.desc(), User.created_at.asc(), User.name.asc())
        .limit(int(n))
    ).all()

    out: list[LeaderboardRow] = []
    for rank, r in enumerate(rows, start=1):
        score = int(r[3] or 0)
        attempts = int(r[4] or 0)
        out.append(
            LeaderboardRow(
                rank=rank,
                user_id=r[0],
                name=r[1],
                credits=int(r[2] or 0),
                total_score=score,
                total_attempts=attempts,
                avg_score=round(score / attempts, 2) if attempts else 0.0,
            )
        )
    return out
