import uuid
from datetime import datetime, timedelta

from sqlalchemy import func, select

from app.db.session import SessionLocal
from app.models.credit import CreditTransaction, CreditTransactionType
from app.models.reward import Redemption, Reward, RewardCategory
from app.models.user import User


def _make_reward(*, cost: int, category: RewardCategory = RewardCategory.parking, is_active: bool = True, icon=None):
    with SessionLocal() as db:
        reward = Reward(
            name=f"Reward {uuid.uuid4().hex[:6]}",
            description="test reward",
            category=category,
            credit_cost=cost,
            icon=icon,
            is_active=is_active,
        )
        db.add(reward)
        db.commit()
        return reward.id


def _state(user_id):
    with SessionLocal() as db:
        balance = db.scalar(select(User.credits).where(User.id == user_id))
        ledger = db.scalar(
            select(func.coalesce(func.sum(CreditTransaction.amount), 0)).where(CreditTransaction.user_id == user_id)
        )
        redemptions = db.scalar(select(func.count(Redemption.id)).where(Redemption.user_id == user_id))
        return int(balance), int(ledger), int(redemptions)


def test_redeem_with_insufficient_credits_changes_nothing(client, make_user, auth_for):
    uid = make_user(credits=50)
    reward_id = _make_reward(cost=80)

    r = client.post("/rewards/redeem", json={"reward_id": str(reward_id)}, headers=auth_for(uid))
    assert r.status_code == 402
    assert r.json()["error_code"] == "insufficient_credits"
    assert r.json()["error_message"] == "Insufficient credits"

    assert _state(uid) == (50, 50, 0)


def test_redeem_debits_balance_and_records_redemption(client, make_user, auth_for):
    uid = make_user(credits=100)
    reward_id = _make_reward(cost=80)

    before = datetime.utcnow()
    r = client.post("/rewards/redeem", json={"reward_id": str(reward_id)}, headers=auth_for(uid))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["credits_spent"] == 80
    assert body["balance"] == 20
    assert body["status"] == "pending"

    expires_at = datetime.fromisoformat(body["expires_at"]).replace(tzinfo=None)
    assert before + timedelta(days=29) < expires_at <= datetime.utcnow() + timedelta(days=30)

    assert _state(uid) == (20, 20, 1)
    with SessionLocal() as db:
        tx = db.scalar(
            select(CreditTransaction).where(
                CreditTransaction.user_id == uid, CreditTransaction.type == CreditTransactionType.spent
            )
        )
        assert tx.amount == -80
        assert tx.description.startswith("Redeemed: ")
        assert tx.related_id == uuid.UUID(body["redemption_id"])


def test_redeem_exact_balance_reaches_zero(client, make_user, auth_for):
    uid = make_user(credits=30)
    reward_id = _make_reward(cost=30)

    r = client.post("/rewards/redeem", json={"reward_id": str(reward_id)}, headers=auth_for(uid))
    assert r.status_code == 200
    assert r.json()["balance"] == 0

    r = client.post("/rewards/redeem", json={"reward_id": str(reward_id)}, headers=auth_for(uid))
    assert r.status_code == 402
    assert _state(uid) == (0, 0, 1)


def test_redeem_unknown_or_inactive_reward(client, make_user, auth_for):
    uid = make_user(credits=100)
    headers = auth_for(uid)

    r = client.post("/rewards/redeem", json={"reward_id": str(uuid.uuid4())}, headers=headers)
    assert r.status_code == 404
    assert r.json()["error_message"] == "Reward not found"

    inactive = _make_reward(cost=10, is_active=False)
    r = client.post("/rewards/redeem", json={"reward_id": str(inactive)}, headers=headers)
    assert r.status_code == 404

    r = client.post("/rewards/redeem", json={"reward_id": "nope"}, headers=headers)
    assert r.status_code == 400

    assert _state(uid) == (100, 100, 0)


def test_list_rewards_only_active_with_category_style(client):
    active = _make_reward(cost=15, category=RewardCategory.culturepass)
    custom = _make_reward(cost=25, category=RewardCategory.parking, icon="Bike")
    hidden = _make_reward(cost=5, is_active=False)

    r = client.get("/rewards")
    assert r.status_code == 200
    items = {x["id"]: x for x in r.json()["items"]}
    assert str(hidden) not in items
    assert items[str(active)]["icon"] == "Ticket"
    assert items[str(active)]["color"] == "pink"
    assert items[str(custom)]["icon"] == "Bike"
    assert items[str(custom)]["color"] == "blue"


def test_redemptions_and_transactions_history(client, make_user, auth_for):
    uid = make_user(credits=60)
    headers = auth_for(uid)
    reward_id = _make_reward(cost=25)
    client.post("/rewards/redeem", json={"reward_id": str(reward_id)}, headers=headers)

    r = client.get("/rewards/redemptions", headers=headers)
    assert r.status_code == 200
    items = r.json()["items"]
    assert len(items) == 1
    assert items[0]["reward_id"] == str(reward_id)
    assert items[0]["credits_cost"] == 25

    r = client.get("/rewards/transactions", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["balance"] == 35
    assert sorted(t["amount"] for t in body["items"]) == [-25, 60]
    assert sum(t["amount"] for t in body["items"]) == body["balance"]
