import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class CreditTransactionType(str, enum.Enum):
    earned = "earned"
    spent = "spent"
    bonus = "bonus"


class CreditTransaction(Base):
    """Append-only ledger entry; never updated or deleted."""

    __tablename__ = "credit_transactions"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), index=True)

    amount: Mapped[int] = mapped_column(Integer)
    type: Mapped[CreditTransactionType] = mapped_column(Enum(CreditTransactionType), index=True)
    description: Mapped[str] = mapped_column(String(500), default="")

    # Attempt / redemption / video / scenario id. No FK: the ledger outlives resets.
    related_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
