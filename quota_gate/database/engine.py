from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL

from quota_gate.config import get_settings

LOCAL_SQLITE_URL = "sqlite:///./local.db"


@lru_cache
def get_engine() -> Engine:
    """Create and cache the engine backing the profiles table."""
    settings = get_settings()

    # PostgreSQL - use separate params to handle special chars in password
    if settings.db_host:
        url = URL.create(
            drivername="postgresql",
            username=settings.db_user,
            password=settings.db_password,
            host=settings.db_host,
            port=settings.db_port,
            database=settings.db_name,
        )
    else:
        url = settings.database_url or LOCAL_SQLITE_URL

    if str(url).startswith("sqlite"):
        # Handlers run in FastAPI's threadpool
        return create_engine(url, connect_args={"check_same_thread": False})

    # Gate handlers are short; keep a small pool per process
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )
