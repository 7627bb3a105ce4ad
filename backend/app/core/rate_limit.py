from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request

from app.core.audit_log import client_ip
from app.core.redis_client import get_redis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimit:
    key: str
    limit: int
    window_seconds: int
    remaining: int


def _subject(request: Request) -> str:
    # Authenticated dependencies run first and stamp request.state.user_id.
    uid = getattr(getattr(request, "state", None), "user_id", None)
    if uid:
        return f"u:{uid}"
    return f"ip:{client_ip(request) or 'unknown'}"


def rate_limit(*, key_prefix: str, limit: int, window_seconds: int):
    """Fixed-window limiter backed by Redis INCR/EXPIRE.

    Redis outages fail open: the request proceeds and a warning is logged.
    """

    async def _dep(request: Request) -> RateLimit:
        key = f"rl:{key_prefix}:{request.method}:{request.url.path}:{_subject(request)}"

        try:
            r = get_redis()
            current = int(r.incr(key))
            if current == 1:
                r.expire(key, int(window_seconds))
        except Exception as e:
            logger.warning("rate limit backend unavailable key=%s err=%s", key, type(e).__name__)
            return RateLimit(key=key, limit=int(limit), window_seconds=int(window_seconds), remaining=int(limit))

        if current > int(limit):
            ttl = r.ttl(key)
            retry_after = int(ttl) if ttl and ttl > 0 else int(window_seconds)
            raise HTTPException(
                status_code=429,
                detail="rate limit exceeded",
                headers={"Retry-After": str(retry_after)},
            )

        return RateLimit(
            key=key,
            limit=int(limit),
            window_seconds=int(window_seconds),
            remaining=max(0, int(limit) - current),
        )

    return Depends(_dep)
