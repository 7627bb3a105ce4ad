from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError
from app.models.credit import CreditTransactionType
from app.models.reward import Redemption, RedemptionStatus, Reward, RewardCategory
from app.services.credits import adjust_balance, lock_user

logger = logging.getLogger(__name__)

# Presentation defaults per category: (icon, color).
CATEGORY_STYLE: dict[RewardCategory, tuple[str, str]] = {
    RewardCategory.parking: ("Car", "blue"),
    RewardCategory.exam_seating: ("Armchair", "purple"),
    RewardCategory.facilities_booking: ("Building", "green"),
    RewardCategory.quiz_time: ("Clock", "orange"),
    RewardCategory.participation_points: ("Star", "yellow"),
    RewardCategory.skillsfuture: ("GraduationCap", "indigo"),
    RewardCategory.culturepass: ("Ticket", "pink"),
    RewardCategory.cdc_voucher: ("ShoppingBag", "red"),
}


def category_style(category: RewardCategory, icon: str | None = None) -> tuple[str, str]:
    default_icon, color = CATEGORY_STYLE.get(category, ("Gift", "gray"))
    return (icon or default_icon), color


@dataclass(frozen=True)
class RedeemResult:
    redemption_id: uuid.UUID
    reward_id: uuid.UUID
    credits_spent: int
    balance: int
    status: RedemptionStatus
    expires_at: datetime | None


def list_rewards(db: Session) -> list[Reward]:
    return list(
        db.scalars(
            select(Reward)
            .where(Reward.is_active == True)  # noqa: E712
            .order_by(Reward.category, Reward.credit_cost, Reward.name)
        )
    )


def redeem(db: Session, *, user_id: uuid.UUID, reward_id: uuid.UUID) -> RedeemResult:
    reward = db.scalar(select(Reward).where(Reward.id == reward_id))
    if reward is None or not reward.is_active:
        raise NotFoundError("Reward not found")

    user = lock_user(db, user_id)

    now = datetime.utcnow()
    redemption = Redemption(
        user_id=user.id,
        reward_id=reward.id,
        credits_cost=int(reward.credit_cost),
        status=RedemptionStatus.pending,
        redeemed_at=now,
        expires_at=now + timedelta(days=int(settings.redemption_expiry_days)),
    )
    # Ids are client-generated, so the ledger entry can reference the
    # redemption before it is inserted. A failed debit leaves nothing behind.
    redemption.id = uuid.uuid4()

    adjust_balance(
        db,
        user=user,
        delta=-int(reward.credit_cost),
        type=CreditTransactionType.spent,
        description=f"Redeemed: {reward.name}",
        related_id=redemption.id,
    )
    db.add(redemption)
    db.flush()

    logger.info("reward redeemed user=%s reward=%s cost=%d", user.id, reward.id, reward.credit_cost)
    return RedeemResult(
        redemption_id=redemption.id,
        reward_id=reward.id,
        credits_spent=int(reward.credit_cost),
        balance=int(user.credits or 0),
        status=redemption.status,
        expires_at=redemption.expires_at,
    )


def list_redemptions(db: Session, *, user_id: uuid.UUID) -> list[tuple[Redemption, Reward | None]]:
    rows = db.execute(
        select(Redemption, Reward)
        .outerjoin(Reward, Reward.id == Redemption.reward_id)
        .where(Redemption.user_id == user_id)
        .order_by(Redemption.redeemed_at.desc(), Redemption.id)
    ).all()
    return [(r[0], r[1]) for r in rows]
