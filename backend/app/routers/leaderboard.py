from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.schemas.leaderboard import LeaderboardEntry, LeaderboardResponse
from app.services.leaderboard import top_n

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse)
def leaderboard(limit: int = Query(default=10, ge=1), db: Session = Depends(get_db)):
    limit = min(int(limit), int(settings.leaderboard_max_limit))
    rows = top_n(db, limit)
    return LeaderboardResponse(
        limit=limit,
        items=[
            LeaderboardEntry(
                rank=r.rank,
                user_id=str(r.user_id),
                name=r.name,
                credits=r.credits,
                total_score=r.total_score,
                total_attempts=r.total_attempts,
                avg_score=r.avg_score,
            )
            for r in rows
        ],
    )
