from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from medpos.dependencies import get_current_user, get_db
from medpos.models.user import User
from medpos.schemas.user import LoginRequest, TokenResponse, UserRead
from medpos.services.user_service import authenticate

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user, token = authenticate(db, payload.username, payload.password)
    return TokenResponse(access_token=token, user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user


__all__ = ["router"]
