"""AI practice: weak-area targeted scenarios and tutor conversations."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError, ServiceUnavailable, ValidationFailed
from app.models.credit import CreditTransactionType
from app.models.practice import MessageRole, PracticeMessage, PracticeScenario
from app.models.quiz import QuestionDifficulty
from app.services import tutor_llm
from app.services.credits import adjust_balance, lock_user
from app.services.weak_areas import GENERAL_CATEGORY, incorrect_ratio, weakest_area

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScenarioCompletion:
    scenario_id: uuid.UUID
    score: int
    credits_earned: int
    balance: int


def _difficulty_for_ratio(ratio: float) -> QuestionDifficulty:
    # The weaker the area, the gentler the scenario.
    if ratio >= 0.6:
        return QuestionDifficulty.easy
    if ratio >= 0.3:
        return QuestionDifficulty.medium
    return QuestionDifficulty.hard


def fallback_scenario(*, topic: str, difficulty: QuestionDifficulty) -> str:
    return (
        f"Practice case ({difficulty.value}) on {topic}: a classmate asks you for help with a problem "
        f"in {topic} that you recently answered incorrectly in a quiz. Explain, step by step, how you "
        f"would approach it, which facts you would check first, and how you would confirm your answer. "
        f"What is the first thing you would tell them?"
    )


def practice_credits(score: int) -> int:
    score = max(0, min(100, int(score)))
    return (score * max(0, int(settings.practice_max_credits))) // 100


def create_scenario(
    db: Session,
    *,
    user_id: uuid.UUID,
    difficulty: QuestionDifficulty | None = None,
    category: str | None = None,
) -> PracticeScenario:
    target = None
    if category:
        topic = category.strip()
    else:
        target = weakest_area(db, user_id=user_id)
        topic = target.category if target is not None else GENERAL_CATEGORY

    if difficulty is None:
        difficulty = _difficulty_for_ratio(incorrect_ratio(target)) if target is not None else QuestionDifficulty.medium

    debug: dict[str, Any] = {}
    text = tutor_llm.generate_scenario(topic=topic, difficulty=difficulty.value, debug_out=debug)
    if not text:
        logger.warning("scenario generation fell back to template user=%s reason=%s", user_id, debug.get("error"))
        text = fallback_scenario(topic=topic, difficulty=difficulty)

    scenario = PracticeScenario(
        user_id=user_id,
        scenario=text,
        category=topic,
        difficulty=difficulty,
        target_weak_area=target.category if target is not None else None,
        completed=False,
        credits_earned=0,
    )
    db.add(scenario)
    db.flush()
    return scenario


def list_scenarios(db: Session, *, user_id: uuid.UUID) -> list[PracticeScenario]:
    return list(
        db.scalars(
            select(PracticeScenario)
            .where(PracticeScenario.user_id == user_id)
            .order_by(PracticeScenario.created_at.desc(), PracticeScenario.id)
        )
    )


def get_scenario(db: Session, *, user_id: uuid.UUID, scenario_id: uuid.UUID) -> PracticeScenario:
    scenario = db.scalar(
        select(PracticeScenario).where(PracticeScenario.id == scenario_id, PracticeScenario.user_id == user_id)
    )
    if scenario is None:
        raise NotFoundError("Scenario not found")
    return scenario


def list_messages(db: Session, *, scenario_id: uuid.UUID) -> list[PracticeMessage]:
    return list(
        db.scalars(
            select(PracticeMessage)
            .where(PracticeMessage.scenario_id == scenario_id)
            .order_by(PracticeMessage.created_at, PracticeMessage.id)
        )
    )


def send_message(db: Session, *, user_id: uuid.UUID, scenario_id: uuid.UUID, message: str) -> PracticeMessage:
    """Store the student's message and the tutor's reply.

    When the tutor is unavailable the student's message is committed by the
    caller anyway and ServiceUnavailable is raised afterwards.
    """
    text = (message or "").strip()
    if not text:
        raise ValidationFailed("message must not be empty")

    scenario = get_scenario(db, user_id=user_id, scenario_id=scenario_id)
    if scenario.completed:
        raise ValidationFailed("scenario already completed")

    history = [(m.role.value, m.message) for m in list_messages(db, scenario_id=scenario.id)]
    db.add(PracticeMessage(scenario_id=scenario.id, role=MessageRole.user, message=text))
    db.flush()
    history.append((MessageRole.user.value, text))

    debug: dict[str, Any] = {}
    reply = tutor_llm.tutor_reply(scenario=scenario.scenario, history=history, debug_out=debug)
    if not reply:
        logger.warning("tutor reply unavailable scenario=%s reason=%s", scenario.id, debug.get("error"))
        raise ServiceUnavailable("tutor is unavailable, please try again later")

    assistant = PracticeMessage(scenario_id=scenario.id, role=MessageRole.assistant, message=reply)
    db.add(assistant)
    db.flush()
    return assistant


def complete_scenario(db: Session, *, user_id: uuid.UUID, scenario_id: uuid.UUID, score: int) -> ScenarioCompletion:
    user = lock_user(db, user_id)
    scenario = get_scenario(db, user_id=user.id, scenario_id=scenario_id)
    if scenario.completed:
        raise ValidationFailed("scenario already completed")

    earned = practice_credits(score)
    scenario.completed = True
    scenario.score = max(0, min(100, int(score)))
    scenario.credits_earned = earned

    if earned > 0:
        adjust_balance(
            db,
            user=user,
            delta=earned,
            type=CreditTransactionType.earned,
            description=f"Completed practice: {scenario.category or GENERAL_CATEGORY}",
            related_id=scenario.id,
        )
    db.flush()
    return ScenarioCompletion(scenario_id=scenario.id, score=int(scenario.score), credits_earned=earned, balance=int(user.credits or 0))
