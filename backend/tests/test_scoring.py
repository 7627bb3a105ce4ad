import uuid
from types import SimpleNamespace

import pytest

from app.core.errors import ValidationFailed
from app.models.quiz import OptionLetter
from app.services.scoring import is_correct, proportional_credits, score_answers


def _q(letter: str, category: str | None = "Math"):
    return SimpleNamespace(id=uuid.uuid4(), correct_answer=OptionLetter(letter), category=category)


def test_proportional_credits_examples():
    assert proportional_credits(7, 10, 100) == 70
    assert proportional_credits(4, 6, 50) == 33
    assert proportional_credits(10, 10, 100) == 100
    assert proportional_credits(0, 10, 100) == 0


def test_proportional_credits_is_monotonic_in_correct_count():
    for total, reward in [(10, 100), (6, 50), (7, 33), (3, 1)]:
        values = [proportional_credits(c, total, reward) for c in range(total + 1)]
        assert values == sorted(values)
        assert values[-1] == reward


def test_proportional_credits_rejects_empty_quiz():
    with pytest.raises(ValidationFailed):
        proportional_credits(0, 0, 100)


def test_is_correct_is_exact_letter_match():
    q = _q("B")
    assert is_correct(q, OptionLetter.B)
    assert is_correct(q, "B")
    assert not is_correct(q, "b")
    assert not is_correct(q, OptionLetter.A)


def test_score_answers_counts_unanswered_as_wrong():
    questions = [_q("A"), _q("B"), _q("C"), _q("D")]
    out = score_answers(questions, [(questions[0].id, OptionLetter.A), (questions[1].id, OptionLetter.C)])

    assert out.total == 4
    assert out.correct == 1
    assert [r.is_correct for r in out.results] == [True, False]
    assert out.results[1].correct_answer == OptionLetter.B
    assert out.skipped == []


def test_score_answers_skips_answers_for_other_questions():
    questions = [_q("A"), _q("B")]
    stray = uuid.uuid4()
    out = score_answers(questions, [(stray, OptionLetter.A), (questions[0].id, OptionLetter.A)])

    assert out.correct == 1
    assert out.total == 2
    assert out.skipped == [stray]
    assert [r.question_id for r in out.results] == [questions[0].id]


def test_score_answers_rejects_duplicate_question():
    questions = [_q("A")]
    with pytest.raises(ValidationFailed):
        score_answers(questions, [(questions[0].id, OptionLetter.A), (questions[0].id, OptionLetter.B)])


def test_score_answers_rejects_quiz_without_questions():
    with pytest.raises(ValidationFailed):
        score_answers([], [])


def test_results_carry_question_category():
    questions = [_q("A", "History"), _q("B", None)]
    out = score_answers(questions, [(questions[0].id, OptionLetter.B), (questions[1].id, OptionLetter.B)])
    assert [r.category for r in out.results] == ["History", None]
