import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.core.errors import InsufficientCredits, ValidationFailed
from app.db.session import SessionLocal
from app.models.credit import CreditTransactionType
from app.models.user import User, UserRole
from app.services.credits import adjust_balance, ledger_drift, ledger_sum


def test_adjust_balance_keeps_ledger_in_step(make_user):
    uid = make_user()
    with SessionLocal() as db:
        user = db.scalar(select(User).where(User.id == uid))
        adjust_balance(db, user=user, delta=40, type=CreditTransactionType.earned, description="quiz")
        adjust_balance(db, user=user, delta=20, type=CreditTransactionType.bonus, description="video")
        adjust_balance(db, user=user, delta=-35, type=CreditTransactionType.spent, description="reward")
        db.commit()

        assert user.credits == 25
        assert ledger_sum(db, user_id=uid) == 25


def test_adjust_balance_rejects_overdraft(make_user):
    uid = make_user(credits=10)
    with SessionLocal() as db:
        user = db.scalar(select(User).where(User.id == uid))
        with pytest.raises(InsufficientCredits):
            adjust_balance(db, user=user, delta=-11, type=CreditTransactionType.spent, description="too much")
        db.rollback()
        assert ledger_sum(db, user_id=uid) == 10


@pytest.mark.parametrize(
    "delta,type_",
    [
        (0, CreditTransactionType.earned),
        (5, CreditTransactionType.spent),
        (-5, CreditTransactionType.earned),
        (-5, CreditTransactionType.bonus),
    ],
)
def test_adjust_balance_rejects_wrong_sign(make_user, delta, type_):
    uid = make_user(credits=10)
    with SessionLocal() as db:
        user = db.scalar(select(User).where(User.id == uid))
        with pytest.raises(ValidationFailed):
            adjust_balance(db, user=user, delta=delta, type=type_, description="bad")


def test_ledger_drift_reports_out_of_band_changes(client, make_user, auth_for):
    admin_id = make_user(role=UserRole.admin)
    uid = make_user(credits=15)

    with SessionLocal() as db:
        assert uid not in {d.user_id for d in ledger_drift(db)}
        user = db.scalar(select(User).where(User.id == uid))
        user.credits = 99
        db.commit()

    r = client.get("/admin/credits/reconcile", headers=auth_for(admin_id, UserRole.admin))
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is False
    row = next(x for x in body["items"] if x["user_id"] == str(uid))
    assert row["balance"] == 99
    assert row["ledger_sum"] == 15
    assert row["drift"] == 84

    with SessionLocal() as db:
        user = db.scalar(select(User).where(User.id == uid))
        user.credits = 15
        db.commit()


def test_database_rejects_negative_balance(make_user):
    uid = make_user(credits=5)
    with SessionLocal() as db:
        user = db.scalar(select(User).where(User.id == uid))
        user.credits = -1
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
        assert db.scalar(select(User.credits).where(User.id == uid)) == 5
