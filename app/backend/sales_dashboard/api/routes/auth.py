"""Login and user registration endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sales_dashboard.core.auth import (
    USER_ROLE_TO_APP_ROLE,
    AppRole,
    RequestUserContext,
    authenticate_user,
    create_user,
    require_roles,
)
from sales_dashboard.core.config import Settings, get_app_settings
from sales_dashboard.core.security import create_access_token
from sales_dashboard.db.dependencies import get_db_session
from sales_dashboard.models.entities import User

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginPayload(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=128)


class RegisterPayload(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=6, max_length=72)
    display_name: str = Field(min_length=1, max_length=255)
    role: AppRole = AppRole.USER


def _serialize_user(user: User) -> dict[str, object]:
    return {
        "id": user.id,
        "username": user.username,
        "display_name": user.display_name,
        "role": USER_ROLE_TO_APP_ROLE[user.role].value,
    }


@router.post("/login")
def login(
    payload: LoginPayload,
    db: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, object]:
    user = authenticate_user(db, username=payload.username, password=payload.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = create_access_token(
        user_id=user.id,
        username=user.username,
        role=user.role.value,
        settings=settings,
    )
    return {"access_token": token, "token_type": "bearer", "user": _serialize_user(user)}


@router.post("/register", status_code=201)
def register(
    payload: RegisterPayload,
    context: RequestUserContext = Depends(require_roles(AppRole.ADMIN)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    try:
        user = create_user(
            db,
            username=payload.username,
            password=payload.password,
            display_name=payload.display_name,
            role=payload.role,
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already exists.",
        ) from exc

    db.refresh(user)
    return _serialize_user(user)
