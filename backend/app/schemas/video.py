from __future__ import annotations

from pydantic import BaseModel, Field

from app.models.quiz import OptionLetter


class VideoItem(BaseModel):
    id: str
    title: str
    description: str | None
    video_url: str
    thumbnail_url: str | None
    duration: int | None
    category: str | None
    difficulty: str


class VideosResponse(BaseModel):
    items: list[VideoItem]


class CheckpointPublic(BaseModel):
    id: str
    pause_time: int
    prompt: str
    options: dict[str, str]


class CheckpointsResponse(BaseModel):
    video_id: str
    checkpoints: list[CheckpointPublic]


class CheckpointAnswerRequest(BaseModel):
    selected_answer: OptionLetter


class CheckpointAnswerResponse(BaseModel):
    checkpoint_id: str
    is_correct: bool
    feedback: str | None
    hint: str | None
    correct_answer: OptionLetter | None
    attempt_count: int
    resume_at: int


class ProgressUpdateRequest(BaseModel):
    current_time: int = Field(ge=0)


class VideoProgressResponse(BaseModel):
    video_id: str
    current_time: int
    completed: bool
    quiz_score: int
    total_quiz_questions: int
    last_watched_at: str | None


class VideoCompleteResponse(BaseModel):
    ok: bool = True
    video_id: str
    credits_earned: int
    balance: int
