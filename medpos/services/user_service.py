import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from medpos.config import get_settings
from medpos.core.constants import ROLE_ADMIN, USER_ROLES
from medpos.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from medpos.core.security import create_access_token, hash_password, verify_password
from medpos.models.user import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _validate_role(role: str) -> str:
    if role not in USER_ROLES:
        raise InvalidInputError("role must be one of: {}".format(", ".join(USER_ROLES)))
    return role


def _validate_password(password: str) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users(db: Session, *, role: Optional[str] = None, is_active: Optional[bool] = None) -> list[User]:
    filters = []
    if role:
        filters.append(User.role == role)
    if is_active is not None:
        filters.append(User.is_active.is_(is_active))
    rows = db.execute(select(User).where(*filters).order_by(User.username)).scalars().all()
    return list(rows)


def create_user(
    db: Session,
    *,
    username: str,
    password: str,
    role: str,
    full_name: str = "",
    email: Optional[str] = None,
) -> User:
    username = (username or "").strip().lower()
    if not username:
        raise InvalidInputError("username is required")
    _validate_role(role)
    password_hash, salt = hash_password(_validate_password(password))
    user = User(
        username=username,
        full_name=full_name or username,
        email=email,
        role=role,
        password_hash=password_hash,
        password_salt=salt,
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Username already exists") from exc
    db.refresh(user)
    logger.info("User %s created with role %s", user.username, user.role)
    return user


def update_user(db: Session, user_id: int, values: dict) -> User:
    user = get_user(db, user_id)
    if values.get("role") is not None:
        user.role = _validate_role(values["role"])
    for key in ("full_name", "email", "is_active"):
        if values.get(key) is not None:
            setattr(user, key, values[key])
    if values.get("password"):
        user.password_hash, user.password_salt = hash_password(_validate_password(values["password"]))
    db.commit()
    db.refresh(user)
    return user


def deactivate_user(db: Session, user_id: int) -> User:
    return update_user(db, user_id, {"is_active": False})


def authenticate(db: Session, username: str, password: str) -> tuple[User, str]:
    username = (username or "").strip().lower()
    user = db.execute(select(User).where(User.username == username)).scalars().first()
    if user is None or not user.is_active or not verify_password(password or "", user.password_hash, user.password_salt):
        logger.warning("Failed login for %s", username or "<blank>", extra={"username": username or None})
        raise AuthenticationError("Invalid username or password")
    user.last_login = datetime.now(timezone.utc)
    db.commit()
    token = create_access_token(str(user.id), user.role)
    return user, token


def ensure_bootstrap_admin(db: Session) -> Optional[User]:
    """Create the configured admin when the user table is empty."""
    settings = get_settings()
    if not settings.BOOTSTRAP_ADMIN_USERNAME or not settings.BOOTSTRAP_ADMIN_PASSWORD:
        return None
    has_users = db.execute(select(func.count(User.id))).scalar_one()
    if has_users:
        return None
    return create_user(
        db,
        username=settings.BOOTSTRAP_ADMIN_USERNAME,
        password=settings.BOOTSTRAP_ADMIN_PASSWORD,
        role=ROLE_ADMIN,
        full_name="Administrator",
    )
