from __future__ import annotations

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    name: str
    credits: int
    total_score: int
    total_attempts: int
    avg_score: float


class LeaderboardResponse(BaseModel):
    limit: int
    items: list[LeaderboardEntry]
