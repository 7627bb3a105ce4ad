from __future__ import annotations

from pydantic import BaseModel, Field

from app.models.quiz import OptionLetter


class QuizSummary(BaseModel):
    id: str
    title: str
    description: str | None
    category: str | None
    question_count: int
    credits_reward: int


class QuizQuestionPublic(BaseModel):
    """Question as shown to a learner; never carries the answer key."""

    id: str
    quiz_id: str | None
    prompt: str
    options: dict[str, str]
    difficulty: str
    category: str | None


class QuizQuestionsResponse(BaseModel):
    quiz_id: str
    questions: list[QuizQuestionPublic]


class RandomQuestionsResponse(BaseModel):
    questions: list[QuizQuestionPublic]


class QuizSubmitAnswer(BaseModel):
    question_id: str
    selected_answer: OptionLetter


class QuizSubmitRequest(BaseModel):
    answers: list[QuizSubmitAnswer] = Field(default_factory=list, max_length=500)


class QuizAnswerResult(BaseModel):
    question_id: str
    is_correct: bool
    correct_answer: OptionLetter


class QuizSubmitResponse(BaseModel):
    attempt_id: str
    quiz_id: str
    score: int
    total_questions: int
    credits_earned: int
    balance: int
    results: list[QuizAnswerResult]


class QuizCompletedResponse(BaseModel):
    quiz_id: str
    completed: bool


class QuizHistoryItem(BaseModel):
    attempt_id: str
    quiz_id: str
    quiz_title: str
    score: int
    total_questions: int
    completed: bool
    credits_earned: int
    started_at: str
    completed_at: str | None


class QuizHistoryResponse(BaseModel):
    items: list[QuizHistoryItem]


class QuizResetResponse(BaseModel):
    ok: bool = True
    quiz_id: str
    user_id: str
    deleted_attempts: int
