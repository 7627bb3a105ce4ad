from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.audit_log import audit_log
from app.core.config import settings
from app.core.errors import NotFoundError, parse_uuid
from app.core.rate_limit import rate_limit
from app.core.security import get_current_user, require_admin
from app.db.session import get_db
from app.models.quiz import Question, Quiz
from app.models.user import User
from app.schemas.quiz import (
    QuizAnswerResult,
    QuizCompletedResponse,
    QuizHistoryItem,
    QuizHistoryResponse,
    QuizQuestionPublic,
    QuizQuestionsResponse,
    QuizResetResponse,
    QuizSubmitRequest,
    QuizSubmitResponse,
    QuizSummary,
    RandomQuestionsResponse,
)
from app.services import quizzes as quiz_service

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def _public_question(q: Question) -> QuizQuestionPublic:
    return QuizQuestionPublic(
        id=str(q.id),
        quiz_id=str(q.quiz_id) if q.quiz_id else None,
        prompt=q.prompt,
        options={"A": q.option_a, "B": q.option_b, "C": q.option_c, "D": q.option_d},
        difficulty=q.difficulty.value,
        category=q.category,
    )


def _summary(quiz: Quiz, question_count: int) -> QuizSummary:
    return QuizSummary(
        id=str(quiz.id),
        title=quiz.title,
        description=quiz.description,
        category=quiz.category,
        question_count=int(question_count),
        credits_reward=int(quiz.credits_reward),
    )


@router.get("", response_model=list[QuizSummary])
def list_quizzes(db: Session = Depends(get_db)):
    return [_summary(quiz, n) for quiz, n in quiz_service.list_quizzes(db)]


@router.get("/random", response_model=RandomQuestionsResponse)
def random_questions(limit: int = Query(default=10, ge=1), db: Session = Depends(get_db)):
    limit = min(int(limit), int(settings.random_questions_max))
    return RandomQuestionsResponse(questions=[_public_question(q) for q in quiz_service.random_questions(db, limit=limit)])


@router.get("/history", response_model=QuizHistoryResponse)
def quiz_history(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    items = [
        QuizHistoryItem(
            attempt_id=str(a.id),
            quiz_id=str(a.quiz_id),
            quiz_title=title,
            score=int(a.score),
            total_questions=int(a.total_questions),
            completed=bool(a.completed),
            credits_earned=int(a.credits_earned),
            started_at=a.started_at.isoformat(),
            completed_at=a.completed_at.isoformat() if a.completed_at else None,
        )
        for a, title in quiz_service.quiz_history(db, user_id=user.id)
    ]
    return QuizHistoryResponse(items=items)


@router.get("/{quiz_id}", response_model=QuizSummary)
def get_quiz(quiz_id: str, db: Session = Depends(get_db)):
    quiz = quiz_service.get_quiz(db, parse_uuid(quiz_id, what="quiz id"))
    return _summary(quiz, quiz_service.count_questions(db, quiz.id))


@router.get("/{quiz_id}/questions", response_model=QuizQuestionsResponse)
def get_questions(quiz_id: str, db: Session = Depends(get_db)):
    quiz = quiz_service.get_quiz(db, parse_uuid(quiz_id, what="quiz id"))
    return QuizQuestionsResponse(
        quiz_id=str(quiz.id),
        questions=[_public_question(q) for q in quiz_service.quiz_questions(db, quiz.id)],
    )


@router.get("/{quiz_id}/completed", response_model=QuizCompletedResponse)
def check_completed(quiz_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    qid = parse_uuid(quiz_id, what="quiz id")
    return QuizCompletedResponse(quiz_id=str(qid), completed=quiz_service.has_completed(db, user_id=user.id, quiz_id=qid))


@router.post("/{quiz_id}/submit", response_model=QuizSubmitResponse)
def submit_quiz(
    quiz_id: str,
    body: QuizSubmitRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="quiz_submit", limit=20, window_seconds=60),
):
    qid = parse_uuid(quiz_id, what="quiz id")
    answers = [(parse_uuid(a.question_id, what="question id"), a.selected_answer) for a in body.answers]

    result = quiz_service.submit_quiz(db, user_id=user.id, quiz_id=qid, answers=answers)
    db.commit()

    return QuizSubmitResponse(
        attempt_id=str(result.attempt_id),
        quiz_id=str(qid),
        score=result.score,
        total_questions=result.total_questions,
        credits_earned=result.credits_earned,
        balance=result.balance,
        results=[
            QuizAnswerResult(question_id=str(r.question_id), is_correct=r.is_correct, correct_answer=r.correct_answer)
            for r in result.results
        ],
    )


@router.post("/{quiz_id}/reset", response_model=QuizResetResponse)
def reset_attempt(
    request: Request,
    quiz_id: str,
    user_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    qid = parse_uuid(quiz_id, what="quiz id")
    if db.scalar(select(Quiz.id).where(Quiz.id == qid)) is None:
        raise NotFoundError("Quiz not found")

    target_id = parse_uuid(user_id, what="user id") if user_id else admin.id
    if db.scalar(select(User.id).where(User.id == target_id)) is None:
        raise NotFoundError("User not found")

    deleted = quiz_service.reset_attempts(db, user_id=target_id, quiz_id=qid)
    audit_log(
        db=db,
        request=request,
        event_type="admin_quiz_attempt_reset",
        actor_user_id=admin.id,
        target_user_id=target_id,
        ref_id=qid,
        meta={"deleted_attempts": deleted},
    )
    db.commit()
    return QuizResetResponse(quiz_id=str(qid), user_id=str(target_id), deleted_attempts=deleted)
