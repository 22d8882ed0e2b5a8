from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from medpos.core.exceptions import AuthenticationError, PermissionDeniedError
from medpos.core.security import decode_access_token, get_bearer_token
from medpos.database.session import SessionLocal, get_db
from medpos.models.user import User
from medpos.services.unit_of_work import SqlAlchemyUnitOfWork


def get_uow() -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(SessionLocal)


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    token = get_bearer_token(authorization)
    if not token:
        raise AuthenticationError("Not authenticated")
    payload = decode_access_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token subject") from None
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("User is inactive or no longer exists")
    return user


def require_roles(*roles: str):
    """Dependency factory: the caller must hold one of ``roles``."""

    def _check(user: User = Depends(get_current_user)) -> User:
        if roles and user.role not in roles:
            raise PermissionDeniedError(
                "Access denied. Required roles: {}".format(", ".join(roles))
            )
        return user

    return _check


__all__ = ["get_current_user", "get_db", "get_uow", "require_roles"]
