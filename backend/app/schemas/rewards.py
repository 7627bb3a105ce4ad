from __future__ import annotations

from pydantic import BaseModel


class RewardItem(BaseModel):
    id: str
    name: str
    description: str
    category: str
    credit_cost: int
    icon: str | None
    color: str


class RewardsResponse(BaseModel):
    items: list[RewardItem]


class RedeemRequest(BaseModel):
    reward_id: str


class RedeemResponse(BaseModel):
    ok: bool = True
    redemption_id: str
    reward_id: str
    credits_spent: int
    balance: int
    status: str
    expires_at: str | None


class RedemptionItem(BaseModel):
    id: str
    reward_id: str
    reward_name: str | None
    reward_description: str | None
    category: str | None
    icon: str | None
    credits_cost: int
    status: str
    redeemed_at: str
    expires_at: str | None
    notes: str | None


class RedemptionsResponse(BaseModel):
    items: list[RedemptionItem]


class TransactionItem(BaseModel):
    id: str
    amount: int
    type: str
    description: str
    related_id: str | None
    created_at: str


class TransactionsResponse(BaseModel):
    balance: int
    items: list[TransactionItem]
