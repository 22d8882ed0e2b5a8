from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from medpos.config import get_settings
from medpos.core.exceptions import AuthenticationError


def hash_password(password: str, salt: Optional[str] = None, rounds: Optional[int] = None) -> tuple[str, str]:
    settings = get_settings()
    salt = salt or secrets.token_hex(16)
    rounds = rounds or settings.PASSWORD_PBKDF2_ROUNDS
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        rounds,
    )
    return digest.hex(), salt


def verify_password(password: str, password_hash: str, salt: str) -> bool:
    if not password_hash or not salt:
        return False
    computed, _ = hash_password(password, salt)
    return hmac.compare_digest(computed, password_hash)


def get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _jwt_secret() -> str:
    settings = get_settings()
    if not settings.JWT_SECRET:
        raise AuthenticationError("JWT auth is not configured")
    return settings.JWT_SECRET


def create_access_token(subject: str, role: str, *, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expires = now + timedelta(minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload = {"sub": subject, "role": role, "iat": now, "exp": expires}
    return jwt.encode(payload, _jwt_secret(), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, _jwt_secret(), algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc
