from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import parse_uuid
from app.core.rate_limit import rate_limit
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.rewards import (
    RedeemRequest,
    RedeemResponse,
    RedemptionItem,
    RedemptionsResponse,
    RewardItem,
    RewardsResponse,
    TransactionItem,
    TransactionsResponse,
)
from app.services import credits as credit_service
from app.services import rewards as reward_service

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("", response_model=RewardsResponse)
def list_rewards(db: Session = Depends(get_db)):
    items = []
    for r in reward_service.list_rewards(db):
        icon, color = reward_service.category_style(r.category, r.icon)
        items.append(
            RewardItem(
                id=str(r.id),
                name=r.name,
                description=r.description,
                category=r.category.value,
                credit_cost=int(r.credit_cost),
                icon=icon,
                color=color,
            )
        )
    return RewardsResponse(items=items)


@router.post("/redeem", response_model=RedeemResponse)
def redeem(
    body: RedeemRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="rewards_redeem", limit=10, window_seconds=60),
):
    result = reward_service.redeem(db, user_id=user.id, reward_id=parse_uuid(body.reward_id, what="reward id"))
    db.commit()
    return RedeemResponse(
        redemption_id=str(result.redemption_id),
        reward_id=str(result.reward_id),
        credits_spent=result.credits_spent,
        balance=result.balance,
        status=result.status.value,
        expires_at=result.expires_at.isoformat() if result.expires_at else None,
    )


@router.get("/redemptions", response_model=RedemptionsResponse)
def my_redemptions(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    items = []
    for red, reward in reward_service.list_redemptions(db, user_id=user.id):
        items.append(
            RedemptionItem(
                id=str(red.id),
                reward_id=str(red.reward_id),
                reward_name=reward.name if reward else None,
                reward_description=reward.description if reward else None,
                category=reward.category.value if reward else None,
                icon=reward_service.category_style(reward.category, reward.icon)[0] if reward else None,
                credits_cost=int(red.credits_cost),
                status=red.status.value,
                redeemed_at=red.redeemed_at.isoformat(),
                expires_at=red.expires_at.isoformat() if red.expires_at else None,
                notes=red.notes,
            )
        )
    return RedemptionsResponse(items=items)


@router.get("/transactions", response_model=TransactionsResponse)
def my_transactions(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    items = [
        TransactionItem(
            id=str(t.id),
            amount=int(t.amount),
            type=t.type.value,
            description=t.description,
            related_id=str(t.related_id) if t.related_id else None,
            created_at=t.created_at.isoformat(),
        )
        for t in credit_service.list_transactions(db, user_id=user.id)
    ]
    return TransactionsResponse(balance=int(user.credits or 0), items=items)
