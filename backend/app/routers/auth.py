from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.audit_log import audit_log
from app.core.config import settings
from app.core.errors import Forbidden
from app.core.rate_limit import rate_limit
from app.core.security import create_access_token, get_current_user, hash_password, verify_password
from app.db.session import get_db
from app.models.user import User, UserRole

router = APIRouter(prefix="/auth", tags=["auth"])


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None


class MeResponse(BaseModel):
    id: str
    name: str
    role: str
    credits: int


class RegisterRequest(BaseModel):
    name: str = Field(max_length=200)
    password: str

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


def _expires_in() -> int:
    return int(settings.jwt_access_token_minutes) * 60


def _issue_token(response: Response, user: User) -> TokenResponse:
    access_token = create_access_token(user_id=str(user.id), role=user.role.value)
    response.set_cookie(
        settings.auth_cookie_name,
        access_token,
        max_age=_expires_in(),
        httponly=True,
        samesite="lax",
        secure=(settings.app_env or "").strip().lower() in {"prod", "production"},
    )
    return TokenResponse(access_token=access_token, expires_in=_expires_in())


@router.post("/register", response_model=TokenResponse)
def register(
    request: Request,
    response: Response,
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_register", limit=10, window_seconds=60),
):
    if not settings.allow_public_register:
        raise Forbidden("registration disabled")

    if not payload.password or len(payload.password) < int(settings.password_min_length or 0):
        raise HTTPException(status_code=400, detail="password too short")

    name = payload.name
    existing = db.scalar(select(User).where(User.name == name))
    if existing is not None:
        audit_log(db=db, request=request, event_type="auth_register_failed", meta={"reason": "user_exists", "username": name})
        db.commit()
        raise HTTPException(status_code=409, detail="user already exists")

    user = User(
        name=name,
        role=UserRole.user,
        credits=0,
        password_hash=hash_password(payload.password),
        last_signed_in_at=datetime.utcnow(),
    )
    db.add(user)
    db.flush()

    audit_log(db=db, request=request, event_type="auth_register_success", actor_user_id=user.id, target_user_id=user.id)
    db.commit()
    db.refresh(user)

    return _issue_token(response, user)


@router.post("/token", response_model=TokenResponse)
def token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_token", limit=20, window_seconds=60),
):
    user = db.scalar(select(User).where(User.name == form_data.username))
    if user is None or not verify_password(form_data.password, user.password_hash):
        audit_log(db=db, request=request, event_type="auth_login_failed", meta={"username": form_data.username})
        db.commit()
        raise HTTPException(status_code=401, detail="invalid credentials")

    user.last_signed_in_at = datetime.utcnow()
    audit_log(
        db=db,
        request=request,
        event_type="auth_login_success",
        actor_user_id=user.id,
        target_user_id=user.id,
        meta={"user_agent": str(request.headers.get("user-agent") or "").strip()},
    )
    db.commit()

    return _issue_token(response, user)


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return {
        "id": str(user.id),
        "name": user.name,
        "role": user.role.value,
        "credits": int(user.credits or 0),
    }


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(settings.auth_cookie_name)
    return {"ok": True}
