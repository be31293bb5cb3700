"""Test SQLAlchemy models."""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quota_gate.models import Profile
from quota_gate.models.enums import GateStatus, Tier


class TestProfile:
    """Test Profile model."""

    def test_create_profile_defaults(self, session: Session, test_user_id: str):
        """New profiles start on the free tier with no usage."""
        profile = Profile(id=test_user_id)
        session.add(profile)
        session.commit()

        assert profile.id == test_user_id
        assert profile.is_premium is False
        assert profile.ai_usage_count == 0
        assert profile.ai_usage_date is None
        assert profile.created_at is not None
        assert profile.updated_at is not None

    def test_tier(self, session: Session):
        free = Profile(id="free", is_premium=False)
        premium = Profile(id="premium", is_premium=True)

        assert free.tier == Tier.FREE
        assert premium.tier == Tier.PREMIUM

    def test_negative_count_rejected(self, session: Session, test_user_id: str):
        session.add(Profile(id=test_user_id, ai_usage_count=-1))

        with pytest.raises(IntegrityError):
            session.commit()


class TestEnums:
    """Wire values of the envelope discriminator."""

    def test_gate_status_values(self):
        assert [s.value for s in GateStatus] == ["ok", "limit_exceeded", "unauthorized", "error"]
