"""Authentication context extraction and role guard utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sales_dashboard.core.config import Settings, get_app_settings, get_settings
from sales_dashboard.core.errors import RepositoryUnavailable
from sales_dashboard.core.security import InvalidTokenError, decode_access_token, hash_password, verify_password
from sales_dashboard.db.dependencies import get_db_session
from sales_dashboard.models.entities import User, UserRole
from sales_dashboard.repositories.sales_repository import SalesRepository

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class AppRole(str, Enum):
    """Application role names exposed by the API."""

    ADMIN = "admin"
    USER = "user"


USER_ROLE_TO_APP_ROLE: dict[UserRole, AppRole] = {
    UserRole.ADMIN: AppRole.ADMIN,
    UserRole.USER: AppRole.USER,
}


APP_ROLE_TO_USER_ROLE: dict[AppRole, UserRole] = {
    AppRole.ADMIN: UserRole.ADMIN,
    AppRole.USER: UserRole.USER,
}


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from the bearer token and DB state."""

    user_id: int
    username: str
    display_name: str
    role: AppRole

    @property
    def is_admin(self) -> bool:
        """Whether current user has the admin role."""

        return self.role is AppRole.ADMIN


def authenticate_user(db: Session, *, username: str, password: str) -> User | None:
    """Return the user when the password matches, otherwise ``None``."""

    user = SalesRepository(db).get_user_by_username(username.strip())
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for username %r", username)
        return None
    return user


def create_user(
    db: Session,
    *,
    username: str,
    password: str,
    display_name: str,
    role: AppRole = AppRole.USER,
) -> User:
    """Persist a new user with a salted password hash (caller commits)."""

    normalized_username = username.strip()
    user = User(
        username=normalized_username,
        password_hash=hash_password(password),
        display_name=display_name.strip() or normalized_username,
        role=APP_ROLE_TO_USER_ROLE[role],
        created_at=datetime.utcnow(),
    )
    return SalesRepository(db).add_user(user)


def ensure_default_admin(db: Session, settings: Settings | None = None) -> User | None:
    """Create the bootstrap administrator when no user exists yet.

    Returns the created user, or ``None`` when users were already present.
    """

    settings = settings or get_settings()
    repo = SalesRepository(db)
    if repo.user_count() > 0:
        logger.info("Users already present; skipping admin bootstrap")
        return None

    user = create_user(
        db,
        username=settings.bootstrap_admin_username,
        password=settings.bootstrap_admin_password,
        display_name=settings.bootstrap_admin_display_name,
        role=AppRole.ADMIN,
    )
    db.commit()
    db.refresh(user)
    logger.info("Created bootstrap administrator %r", user.username)
    return user


def get_current_user_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> RequestUserContext:
    """Resolve current request user from the ``Authorization: Bearer`` header.

    Missing credentials are 401; a token that fails verification or names a
    user that no longer exists is 403.
    """

    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials, settings)
        user_id = int(str(payload["sub"]))
    except (InvalidTokenError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token is invalid or expired.",
        ) from exc

    try:
        user = SalesRepository(db).get_user(user_id)
    except SQLAlchemyError as exc:
        logger.exception("User lookup failed while verifying bearer token")
        raise RepositoryUnavailable("Could not verify credentials; try again later.") from exc
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token is invalid or expired.",
        )

    return RequestUserContext(
        user_id=user.id,
        username=user.username,
        display_name=user.display_name,
        role=USER_ROLE_TO_APP_ROLE[user.role],
    )


def has_role(context: RequestUserContext, allowed_roles: set[AppRole]) -> bool:
    """Check whether user has any of the allowed roles."""

    return context.role in allowed_roles


def require_roles(*roles: AppRole):
    """Dependency factory requiring at least one provided role."""

    allowed = set(roles)

    def dependency(context: RequestUserContext = Depends(get_current_user_context)) -> RequestUserContext:
        if not has_role(context, allowed):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role permissions for this operation.",
            )
        return context

    return dependency
