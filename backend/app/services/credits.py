"""Credit ledger.

Every balance change goes through `adjust_balance`, which mutates
`users.credits` and appends a `CreditTransaction` with the same delta in the
caller's transaction. The running balance must always equal the sum of the
user's transaction amounts; `ledger_drift` reports users where it does not.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import InsufficientCredits, NotFoundError, ValidationFailed
from app.models.credit import CreditTransaction, CreditTransactionType
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerDrift:
    user_id: uuid.UUID
    name: str
    balance: int
    ledger_sum: int

    @property
    def drift(self) -> int:
        return self.balance - self.ledger_sum


def lock_user(db: Session, user_id: uuid.UUID) -> User:
    """Load the user row with FOR UPDATE so settlements serialize per user."""
    user = db.scalar(
        select(User).where(User.id == user_id).with_for_update().execution_options(populate_existing=True)
    )
    if user is None:
        raise NotFoundError("User not found")
    return user


def adjust_balance(
    db: Session,
    *,
    user: User,
    delta: int,
    type: CreditTransactionType,
    description: str,
    related_id: uuid.UUID | None = None,
) -> CreditTransaction:
    delta = int(delta)
    if delta == 0:
        raise ValidationFailed("credit adjustment must be non-zero")

    if type == CreditTransactionType.spent:
        if delta > 0:
            raise ValidationFailed("spent transactions must be negative")
        balance = int(user.credits or 0)
        if balance + delta < 0:
            raise InsufficientCredits("Insufficient credits")
    elif delta < 0:
        raise ValidationFailed(f"{type.value} transactions must be positive")

    user.credits = int(user.credits or 0) + delta
    tx = CreditTransaction(
        user_id=user.id,
        amount=delta,
        type=type,
        description=description[:500],
        related_id=related_id,
    )
    db.add(tx)
    db.flush()

    logger.info(
        "credits %s user=%s delta=%s balance=%s related=%s",
        type.value,
        user.id,
        delta,
        user.credits,
        related_id,
    )
    return tx


def list_transactions(db: Session, *, user_id: uuid.UUID, limit: int = 200) -> list[CreditTransaction]:
    return list(
        db.scalars(
            select(CreditTransaction)
            .where(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id)
            .limit(int(limit))
        )
    )


def ledger_sum(db: Session, *, user_id: uuid.UUID) -> int:
    total = db.scalar(
        select(func.coalesce(func.sum(CreditTransaction.amount), 0)).where(CreditTransaction.user_id == user_id)
    )
    return int(total or 0)


def ledger_drift(db: Session) -> list[LedgerDrift]:
    sums = (
        select(CreditTransaction.user_id, func.sum(CreditTransaction.amount).label("total"))
        .group_by(CreditTransaction.user_id)
        .subquery()
    )
    rows = db.execute(
        select(User.id, User.name, User.credits, func.coalesce(sums.c.total, 0))
        .outerjoin(sums, sums.c.user_id == User.id)
        .where(User.credits != func.coalesce(sums.c.total, 0))
        .order_by(User.name)
    ).all()
    return [LedgerDrift(user_id=r[0], name=r[1], balance=int(r[2] or 0), ledger_sum=int(r[3] or 0)) for r in rows]
