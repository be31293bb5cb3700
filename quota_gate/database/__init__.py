from .base import Base, utc_now
from .engine import get_engine
from .session import SessionLocal, get_db

__all__ = [
    "Base",
    "utc_now",
    "get_engine",
    "SessionLocal",
    "get_db",
]
