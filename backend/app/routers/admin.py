from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.audit_log import audit_log
from app.core.security import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.admin import LedgerDriftItem, LedgerReconcileResponse
from app.services.credits import ledger_drift

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/credits/reconcile", response_model=LedgerReconcileResponse)
def reconcile_credits(request: Request, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """Report users whose stored balance differs from the sum of their ledger."""
    rows = ledger_drift(db)
    audit_log(
        db=db,
        request=request,
        event_type="admin_credits_reconcile",
        actor_user_id=admin.id,
        meta={"drifted_users": len(rows)},
    )
    db.commit()
    return LedgerReconcileResponse(
        ok=not rows,
        items=[
            LedgerDriftItem(user_id=str(r.user_id), name=r.name, balance=r.balance, ledger_sum=r.ledger_sum, drift=r.drift)
            for r in rows
        ],
    )
