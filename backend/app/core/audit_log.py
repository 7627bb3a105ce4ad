from __future__ import annotations

import json
import logging

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.audit import AuditEvent

logger = logging.getLogger(__name__)


def request_id(request: Request) -> str | None:
    rid = getattr(getattr(request, "state", None), "request_id", None)
    rid = str(rid or "").strip()
    return rid or None


def client_ip(request: Request) -> str | None:
    if bool(settings.trust_proxy_headers):
        xri = str(request.headers.get("x-real-ip") or "").strip()
        if xri:
            return xri

        xff = str(request.headers.get("x-forwarded-for") or "")
        if xff:
            ip = xff.split(",")[0].strip()
            if ip:
                return ip
    if request.client and request.client.host:
        return request.client.host
    return None


def audit_log(
    *,
    db: Session,
    request: Request,
    event_type: str,
    actor_user_id=None,
    target_user_id=None,
    ref_id=None,
    meta: dict | str | None = None,
) -> None:
    if isinstance(meta, dict):
        meta_str = json.dumps(meta, ensure_ascii=False, default=str)
    elif isinstance(meta, str):
        meta_str = meta
    else:
        meta_str = None

    db.add(
        AuditEvent(
            actor_user_id=actor_user_id,
            target_user_id=target_user_id,
            ref_id=ref_id,
            event_type=str(event_type),
            meta=meta_str,
            request_id=request_id(request),
            ip=client_ip(request),
        )
    )
    logger.info("audit %s actor=%s target=%s ref=%s", event_type, actor_user_id, target_user_id, ref_id)
