from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from app.core.errors import ValidationFailed
from app.models.quiz import OptionLetter, Question


@dataclass(frozen=True)
class AnswerResult:
    question_id: uuid.UUID
    selected_answer: OptionLetter
    is_correct: bool
    correct_answer: OptionLetter
    category: str | None = None


@dataclass
class ScoreResult:
    correct: int
    total: int
    results: list[AnswerResult] = field(default_factory=list)
    skipped: list[uuid.UUID] = field(default_factory=list)


def _letter(value) -> str:
    return getattr(value, "value", value)


def is_correct(question: Question, selected) -> bool:
    # Exact, case-sensitive letter match.
    return _letter(selected) == _letter(question.correct_answer)


def proportional_credits(correct: int, total: int, reward: int) -> int:
    """floor(correct / total * reward), computed exactly in integers."""
    if total <= 0:
        raise ValidationFailed("quiz has no questions")
    correct = max(0, min(int(correct), int(total)))
    return (correct * max(0, int(reward))) // int(total)


def score_answers(
    questions: Sequence[Question],
    answers: Iterable[tuple[uuid.UUID, OptionLetter]],
) -> ScoreResult:
    """Grade answers against the quiz's questions.

    `total` is the number of questions the quiz owns, so unanswered questions
    count as wrong. Answers for questions outside the set are collected in
    `skipped` and do not score.
    """
    if not questions:
        raise ValidationFailed("quiz has no questions")

    qmap = {q.id: q for q in questions}
    seen: set[uuid.UUID] = set()
    out = ScoreResult(correct=0, total=len(qmap))

    for question_id, selected in answers:
        if question_id in seen:
            raise ValidationFailed(f"duplicate answer for question {question_id}")
        seen.add(question_id)

        q = qmap.get(question_id)
        if q is None:
            out.skipped.append(question_id)
            continue

        ok = is_correct(q, selected)
        if ok:
            out.correct += 1
        out.results.append(
            AnswerResult(
                question_id=q.id,
                selected_answer=OptionLetter(_letter(selected)),
                is_correct=ok,
                correct_answer=OptionLetter(_letter(q.correct_answer)),
                category=q.category,
            )
        )

    return out
