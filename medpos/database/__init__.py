from medpos.database.base import Base
from medpos.database.engine import engine, is_sqlite
from medpos.database.session import SessionLocal, get_db, session_scope

__all__ = ["Base", "SessionLocal", "engine", "get_db", "is_sqlite", "session_scope"]
