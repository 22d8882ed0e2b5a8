from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from medpos.database.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(80), nullable=False, unique=True)
    full_name = Column(String(255), nullable=False, default="")
    email = Column(String(255))
    role = Column(String(20), nullable=False, index=True)

    password_hash = Column(String(128), nullable=False)
    password_salt = Column(String(64), nullable=False)

    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True))
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


__all__ = ["User"]
