from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from quota_gate.config import get_settings
from quota_gate.database.base import Base
from quota_gate.models import Profile

# Ensure all models are imported so they're registered with Base.metadata
__all__ = ["Profile"]

# Test secret - only used in tests
TEST_SECRET = "test-secret-key-for-testing-only-0123456789"

# Mid-afternoon UTC so "today" is unambiguous in every timezone-free test
FIXED_NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)
TODAY = FIXED_NOW.date()


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    """Pin auth/quota settings so the host environment cannot leak in."""
    monkeypatch.delenv("DEV_USER_ID", raising=False)
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("DISTINCT_STATUS_CODES", raising=False)
    monkeypatch.delenv("FREE_DAILY_AI_LIMIT", raising=False)
    monkeypatch.delenv("PREMIUM_DAILY_AI_LIMIT", raising=False)
    monkeypatch.setenv("SUPABASE_JWT_SECRET", TEST_SECRET)
    monkeypatch.setattr("quota_gate.auth.jwt._jwks_client", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing.

    Uses StaticPool to ensure all connections share the same in-memory database.
    Without this, each connection would get a fresh database without tables.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture
def session(engine) -> Session:
    """Create a test database session."""
    TestSessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
    )
    session = TestSessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-00000000-0000-0000-0000-000000000001"


@pytest.fixture
def make_profile(session: Session) -> Callable[..., Profile]:
    """Factory for profile rows, as profile provisioning would create them."""

    def _make_profile(
        user_id: str,
        is_premium: bool = False,
        count: int = 0,
        usage_date: date | None = TODAY,
    ) -> Profile:
        profile = Profile(
            id=user_id,
            is_premium=is_premium,
            ai_usage_count=count,
            ai_usage_date=usage_date,
        )
        session.add(profile)
        session.commit()
        return profile

    return _make_profile


@pytest.fixture
def reload(session: Session) -> Callable[[str], Profile]:
    """Read a row as committed, ignoring anything cached in the session."""

    def _reload(user_id: str) -> Profile:
        session.expire_all()
        return session.get(Profile, user_id)

    return _reload


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Mint Supabase-style access tokens signed with the test secret."""

    def _make_token(
        user_id: str,
        email: str | None = "test@test.com",
        expired: bool = False,
        secret: str = TEST_SECRET,
    ) -> str:
        if expired:
            exp = datetime.now(timezone.utc) - timedelta(hours=1)
        else:
            exp = datetime.now(timezone.utc) + timedelta(hours=1)

        payload = {"sub": user_id, "exp": exp, "role": "authenticated"}
        if email:
            payload["email"] = email

        return jwt.encode(payload, secret, algorithm="HS256")

    return _make_token


@pytest.fixture
def client(engine) -> TestClient:
    """
    Create a FastAPI test client with in-memory database.

    The gate is pinned to FIXED_NOW so day boundaries are deterministic.
    """
    from quota_gate.database import session as session_module
    from quota_gate.dependencies import quota as quota_deps
    from quota_gate.main import app
    from quota_gate.services.quota_gate import ProfileStore, QuotaGate

    # Create session factory bound to test engine
    TestSessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
    )

    def override_get_db():
        db = TestSessionLocal()
        try:
            yield db
        finally:
            db.close()

    def override_get_quota_gate():
        db = TestSessionLocal()
        try:
            yield QuotaGate(ProfileStore(db), now=lambda: FIXED_NOW)
        finally:
            db.close()

    app.dependency_overrides[session_module.get_db] = override_get_db
    app.dependency_overrides[quota_deps.get_quota_gate] = override_get_quota_gate

    with TestClient(app) as client:
        yield client

    # Clear overrides after test
    app.dependency_overrides.clear()
