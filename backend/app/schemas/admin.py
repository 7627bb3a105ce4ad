from __future__ import annotations

from pydantic import BaseModel


class LedgerDriftItem(BaseModel):
    user_id: str
    name: str
    balance: int
    ledger_sum: int
    drift: int


class LedgerReconcileResponse(BaseModel):
    ok: bool
    items: list[LedgerDriftItem]
