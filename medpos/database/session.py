from contextlib import contextmanager

from sqlalchemy.orm import Session, sessionmaker

from medpos.database.engine import engine

SessionLocal = sessionmaker(
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


@contextmanager
def session_scope(session_factory=SessionLocal):
    """Session for startup hooks and scripts; uncommitted work is rolled back on error."""
    db: Session = session_factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db():
    # Services commit their own writes; a failing request leaves nothing half-flushed.
    with session_scope() as db:
        yield db
