"""Question store reads and quiz-attempt settlement."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationFailed
from app.models.attempt import QuizAttempt, QuizAttemptAnswer
from app.models.credit import CreditTransactionType
from app.models.quiz import OptionLetter, Question, Quiz
from app.services.credits import adjust_balance, lock_user
from app.services.scoring import AnswerResult, proportional_credits, score_answers
from app.services.weak_areas import record_outcomes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuizSubmission:
    attempt_id: uuid.UUID
    score: int
    total_questions: int
    credits_earned: int
    balance: int
    results: list[AnswerResult]


def get_quiz(db: Session, quiz_id: uuid.UUID) -> Quiz:
    quiz = db.scalar(select(Quiz).where(Quiz.id == quiz_id, Quiz.is_active == True))  # noqa: E712
    if quiz is None:
        raise NotFoundError("Quiz not found")
    return quiz


def list_quizzes(db: Session) -> list[tuple[Quiz, int]]:
    counts = (
        select(Question.quiz_id, func.count(Question.id).label("n"))
        .where(Question.quiz_id.is_not(None))
        .group_by(Question.quiz_id)
        .subquery()
    )
    rows = db.execute(
        select(Quiz, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.quiz_id == Quiz.id)
        .where(Quiz.is_active == True)  # noqa: E712
        .order_by(Quiz.created_at, Quiz.title)
    ).all()
    return [(r[0], int(r[1] or 0)) for r in rows]


def count_questions(db: Session, quiz_id: uuid.UUID) -> int:
    return int(db.scalar(select(func.count(Question.id)).where(Question.quiz_id == quiz_id)) or 0)


def quiz_questions(db: Session, quiz_id: uuid.UUID) -> list[Question]:
    return list(
        db.scalars(select(Question).where(Question.quiz_id == quiz_id).order_by(Question.created_at, Question.id))
    )


def random_questions(db: Session, *, limit: int) -> list[Question]:
    active_quiz_ids = select(Quiz.id).where(Quiz.is_active == True)  # noqa: E712
    return list(
        db.scalars(
            select(Question)
            .where(or_(Question.quiz_id.is_(None), Question.quiz_id.in_(active_quiz_ids)))
            .order_by(func.random())
            .limit(int(limit))
        )
    )


def has_completed(db: Session, *, user_id: uuid.UUID, quiz_id: uuid.UUID) -> bool:
    n = db.scalar(
        select(func.count(QuizAttempt.id)).where(
            QuizAttempt.user_id == user_id,
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.completed == True,  # noqa: E712
        )
    )
    return bool(n)


def submit_quiz(
    db: Session,
    *,
    user_id: uuid.UUID,
    quiz_id: uuid.UUID,
    answers: Sequence[tuple[uuid.UUID, OptionLetter]],
) -> QuizSubmission:
    """Score a submission and settle its credits.

    Runs in the caller's transaction; the caller commits. The user row is
    locked before the completion check so two concurrent submissions for the
    same user cannot both pass it.
    """
    quiz = get_quiz(db, quiz_id)
    user = lock_user(db, user_id)

    if has_completed(db, user_id=user.id, quiz_id=quiz.id):
        raise ValidationFailed("You have already completed this quiz")

    questions = quiz_questions(db, quiz.id)
    scored = score_answers(questions, answers)
    if scored.skipped:
        logger.warning(
            "quiz submit skipped %d answer(s) for questions outside quiz=%s user=%s",
            len(scored.skipped),
            quiz.id,
            user.id,
        )

    credits_earned = proportional_credits(scored.correct, scored.total, quiz.credits_reward)

    now = datetime.utcnow()
    attempt = QuizAttempt(
        quiz_id=quiz.id,
        user_id=user.id,
        score=scored.correct,
        total_questions=scored.total,
        completed=True,
        credits_earned=credits_earned,
        started_at=now,
        completed_at=now,
    )
    db.add(attempt)
    db.flush()

    for r in scored.results:
        db.add(
            QuizAttemptAnswer(
                attempt_id=attempt.id,
                question_id=r.question_id,
                selected_answer=r.selected_answer,
                is_correct=r.is_correct,
            )
        )

    if credits_earned > 0:
        adjust_balance(
            db,
            user=user,
            delta=credits_earned,
            type=CreditTransactionType.earned,
            description=f"Completed quiz: {quiz.title}",
            related_id=attempt.id,
        )

    record_outcomes(db, user_id=user.id, outcomes=[(r.category, r.is_correct) for r in scored.results])
    db.flush()

    logger.info(
        "quiz settled quiz=%s user=%s score=%d/%d credits=%d",
        quiz.id,
        user.id,
        scored.correct,
        scored.total,
        credits_earned,
    )
    return QuizSubmission(
        attempt_id=attempt.id,
        score=scored.correct,
        total_questions=scored.total,
        credits_earned=credits_earned,
        balance=int(user.credits or 0),
        results=scored.results,
    )


def quiz_history(db: Session, *, user_id: uuid.UUID) -> list[tuple[QuizAttempt, str]]:
    rows = db.execute(
        select(QuizAttempt, Quiz.title)
        .join(Quiz, Quiz.id == QuizAttempt.quiz_id)
        .where(QuizAttempt.user_id == user_id)
        .order_by(QuizAttempt.started_at.desc(), QuizAttempt.id)
    ).all()
    return [(r[0], r[1]) for r in rows]


def reset_attempts(db: Session, *, user_id: uuid.UUID, quiz_id: uuid.UUID) -> int:
    """Delete a user's attempts (and their answers) for one quiz.

    Earned credits stay: the ledger is append-only.
    """
    attempt_ids = list(
        db.scalars(select(QuizAttempt.id).where(QuizAttempt.user_id == user_id, QuizAttempt.quiz_id == quiz_id))
    )
    if not attempt_ids:
        return 0
    db.execute(delete(QuizAttemptAnswer).where(QuizAttemptAnswer.attempt_id.in_(attempt_ids)))
    db.execute(delete(QuizAttempt).where(QuizAttempt.id.in_(attempt_ids)))
    return len(attempt_ids)
