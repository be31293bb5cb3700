"""Database session management."""

from collections.abc import Generator
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from quota_gate.database.engine import get_engine

# Session factory
SessionLocal = sessionmaker(
    bind=get_engine(),
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, Any, None]:
    """
    FastAPI dependency that yields a database session.

    Each gate request gets its own session; nothing is shared between
    handlers, so concurrent requests only meet at the profile row.

    Usage:
        @router.post("/track-ai")
        def track_ai(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
