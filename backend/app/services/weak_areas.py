from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.practice import UserWeakArea

GENERAL_CATEGORY = "General"


def incorrect_ratio(area: UserWeakArea) -> float:
    total = int(area.total_attempts or 0)
    if total <= 0:
        return 0.0
    return int(area.incorrect_count or 0) / total


def record_outcomes(db: Session, *, user_id: uuid.UUID, outcomes: Iterable[tuple[str | None, bool]]) -> None:
    """Fold (category, is_correct) pairs into the user's per-category counters."""
    per_category: dict[str, tuple[int, int]] = {}
    for category, ok in outcomes:
        key = (category or "").strip() or GENERAL_CATEGORY
        incorrect, total = per_category.get(key, (0, 0))
        per_category[key] = (incorrect + (0 if ok else 1), total + 1)

    if not per_category:
        return

    existing = {
        a.category: a
        for a in db.scalars(
            select(UserWeakArea).where(
                UserWeakArea.user_id == user_id,
                UserWeakArea.category.in_(list(per_category)),
            )
        )
    }
    now = datetime.utcnow()
    for category, (incorrect, total) in per_category.items():
        area = existing.get(category)
        if area is None:
            db.add(
                UserWeakArea(
                    user_id=user_id,
                    category=category,
                    incorrect_count=incorrect,
                    total_attempts=total,
                    last_practiced_at=now,
                )
            )
            continue
        area.incorrect_count = int(area.incorrect_count or 0) + incorrect
        area.total_attempts = int(area.total_attempts or 0) + total
        area.last_practiced_at = now


def list_weak_areas(db: Session, *, user_id: uuid.UUID) -> list[UserWeakArea]:
    areas = list(db.scalars(select(UserWeakArea).where(UserWeakArea.user_id == user_id)))
    areas.sort(key=lambda a: (-incorrect_ratio(a), -int(a.total_attempts or 0), a.category))
    return areas


def weakest_area(db: Session, *, user_id: uuid.UUID) -> UserWeakArea | None:
    areas = [a for a in list_weak_areas(db, user_id=user_id) if int(a.incorrect_count or 0) > 0]
    return areas[0] if areas else None
