from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medpos.core.constants import ROLE_ADMIN
from medpos.core.exceptions import InvalidStateError
from medpos.dependencies import get_db, require_roles
from medpos.models.user import User
from medpos.schemas.user import UserCreate, UserRead, UserUpdate
from medpos.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])

admin_only = require_roles(ROLE_ADMIN)


@router.get("", response_model=List[UserRead])
def list_users(
    role: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    db: Session = Depends(get_db),
    _user: User = Depends(admin_only),
):
    return user_service.list_users(db, role=role, is_active=is_active)


@router.post("", response_model=UserRead, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    _user: User = Depends(admin_only),
):
    return user_service.create_user(
        db,
        username=payload.username,
        password=payload.password,
        role=payload.role,
        full_name=payload.full_name,
        email=payload.email,
    )


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db), _user: User = Depends(admin_only)):
    return user_service.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(admin_only),
):
    return user_service.update_user(db, user_id, payload.model_dump(exclude_unset=True))


@router.delete("/{user_id}", response_model=UserRead)
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    if current_user.id == user_id:
        raise InvalidStateError("You cannot deactivate your own account")
    return user_service.deactivate_user(db, user_id)


__all__ = ["router"]
