"""Profile row holding the per-user daily AI quota."""

from datetime import date, datetime

from sqlalchemy import Boolean, CheckConstraint, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from quota_gate.database.base import Base, created_at_column, updated_at_column
from quota_gate.models.enums import Tier


class Profile(Base):
    """
    One row per user, created by profile provisioning (not by the gate).

    ai_usage_count only applies to ai_usage_date. A row whose date is not
    today (UTC) has an effective count of 0; stale rows are never rewritten
    until the user's next granted call.
    """

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("ai_usage_count >= 0", name="ck_profiles_ai_usage_count_non_negative"),
    )

    # Supabase auth user id
    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )

    is_premium: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Usage counters
    ai_usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    ai_usage_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    @property
    def tier(self) -> Tier:
        return Tier.PREMIUM if self.is_premium else Tier.FREE
