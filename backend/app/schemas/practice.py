from __future__ import annotations

from pydantic import BaseModel, Field

from app.models.quiz import QuestionDifficulty


class WeakAreaItem(BaseModel):
    category: str
    incorrect_count: int
    total_attempts: int
    incorrect_ratio: float
    last_practiced_at: str | None


class WeakAreasResponse(BaseModel):
    items: list[WeakAreaItem]


class ScenarioCreateRequest(BaseModel):
    difficulty: QuestionDifficulty | None = None
    category: str | None = Field(default=None, max_length=100)


class ScenarioItem(BaseModel):
    id: str
    scenario: str
    category: str | None
    difficulty: str
    target_weak_area: str | None
    completed: bool
    score: int | None
    credits_earned: int
    created_at: str


class ScenariosResponse(BaseModel):
    items: list[ScenarioItem]


class MessageRequest(BaseModel):
    message: str = Field(min_length=1, max_length=4000)


class MessageItem(BaseModel):
    id: str
    role: str
    message: str
    created_at: str


class MessagesResponse(BaseModel):
    scenario_id: str
    items: list[MessageItem]


class ScenarioCompleteRequest(BaseModel):
    score: int = Field(ge=0, le=100)


class ScenarioCompleteResponse(BaseModel):
    ok: bool = True
    scenario_id: str
    score: int
    credits_earned: int
    balance: int
