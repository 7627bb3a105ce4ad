from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import ServiceUnavailable, parse_uuid
from app.core.rate_limit import rate_limit
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.practice import PracticeMessage, PracticeScenario
from app.models.user import User
from app.schemas.practice import (
    MessageItem,
    MessageRequest,
    MessagesResponse,
    ScenarioCompleteRequest,
    ScenarioCompleteResponse,
    ScenarioCreateRequest,
    ScenarioItem,
    ScenariosResponse,
    WeakAreaItem,
    WeakAreasResponse,
)
from app.services import practice as practice_service
from app.services.weak_areas import incorrect_ratio, list_weak_areas

router = APIRouter(prefix="/practice", tags=["practice"])


def _scenario_item(s: PracticeScenario) -> ScenarioItem:
    return ScenarioItem(
        id=str(s.id),
        scenario=s.scenario,
        category=s.category,
        difficulty=s.difficulty.value,
        target_weak_area=s.target_weak_area,
        completed=bool(s.completed),
        score=s.score,
        credits_earned=int(s.credits_earned or 0),
        created_at=s.created_at.isoformat(),
    )


def _message_item(m: PracticeMessage) -> MessageItem:
    return MessageItem(id=str(m.id), role=m.role.value, message=m.message, created_at=m.created_at.isoformat())


@router.get("/weak-areas", response_model=WeakAreasResponse)
def weak_areas(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return WeakAreasResponse(
        items=[
            WeakAreaItem(
                category=a.category,
                incorrect_count=int(a.incorrect_count or 0),
                total_attempts=int(a.total_attempts or 0),
                incorrect_ratio=round(incorrect_ratio(a), 4),
                last_practiced_at=a.last_practiced_at.isoformat() if a.last_practiced_at else None,
            )
            for a in list_weak_areas(db, user_id=user.id)
        ]
    )


@router.get("/scenarios", response_model=ScenariosResponse)
def my_scenarios(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return ScenariosResponse(items=[_scenario_item(s) for s in practice_service.list_scenarios(db, user_id=user.id)])


@router.post("/scenarios", response_model=ScenarioItem)
def create_scenario(
    body: ScenarioCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="practice_scenario", limit=10, window_seconds=60),
):
    scenario = practice_service.create_scenario(db, user_id=user.id, difficulty=body.difficulty, category=body.category)
    db.commit()
    db.refresh(scenario)
    return _scenario_item(scenario)


@router.get("/scenarios/{scenario_id}/messages", response_model=MessagesResponse)
def scenario_messages(scenario_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    scenario = practice_service.get_scenario(db, user_id=user.id, scenario_id=parse_uuid(scenario_id, what="scenario id"))
    return MessagesResponse(
        scenario_id=str(scenario.id),
        items=[_message_item(m) for m in practice_service.list_messages(db, scenario_id=scenario.id)],
    )


@router.post("/scenarios/{scenario_id}/messages", response_model=MessageItem)
def send_message(
    scenario_id: str,
    body: MessageRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="practice_message", limit=30, window_seconds=60),
):
    try:
        reply = practice_service.send_message(
            db,
            user_id=user.id,
            scenario_id=parse_uuid(scenario_id, what="scenario id"),
            message=body.message,
        )
    except ServiceUnavailable:
        # Keep the student's message so it can be retried against the history.
        db.commit()
        raise
    db.commit()
    db.refresh(reply)
    return _message_item(reply)


@router.post("/scenarios/{scenario_id}/complete", response_model=ScenarioCompleteResponse)
def complete_scenario(
    scenario_id: str,
    body: ScenarioCompleteRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = practice_service.complete_scenario(
        db,
        user_id=user.id,
        scenario_id=parse_uuid(scenario_id, what="scenario id"),
        score=body.score,
    )
    db.commit()
    return ScenarioCompleteResponse(
        scenario_id=str(result.scenario_id),
        score=result.score,
        credits_earned=result.credits_earned,
        balance=result.balance,
    )
