"""
Per-user daily AI quota gate.

Every AI-invoking feature calls QuotaGate.check_and_consume() once before
spending an AI call. The gate reads the caller's profile row, works out how
many calls are left today (UTC) and reserves one with a conditional UPDATE
guarded by the values it just read. Handlers share no memory, so that
single-row compare-and-swap is the only coordination there is.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quota_gate.config import get_settings
from quota_gate.database.base import utc_now
from quota_gate.models.enums import GateError, Tier
from quota_gate.models.profile import Profile

logger = logging.getLogger(__name__)

# One retry after a lost swap
MAX_ATTEMPTS = 2


# ─────────────────────────────────────────────────────────────────────
# Decisions
# ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Allowed:
    """The call may proceed; ``remaining`` calls are left after this one."""

    remaining: int


@dataclass(frozen=True)
class Denied:
    """Today's quota is exhausted."""

    limit: int


@dataclass(frozen=True)
class NotFound:
    """No profile exists for the identity."""


@dataclass(frozen=True)
class TransientFailure:
    """Nothing was reserved; the whole gate call may be retried later."""

    reason: GateError = GateError.UPDATE_CONFLICT


@dataclass(frozen=True)
class Unauthorized:
    """No identity could be resolved; the store was not touched."""


Decision = Allowed | Denied | NotFound | TransientFailure | Unauthorized


# ─────────────────────────────────────────────────────────────────────
# Usage records
# ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class UsageRecord:
    """Quota fields of a profile row as last read from the store."""

    user_id: str
    is_premium: bool
    usage_count: int
    usage_date: date | None


@dataclass(frozen=True)
class UsageSnapshot:
    """Read-only view of a user's quota for today."""

    used: int
    remaining: int
    limit: int
    tier: Tier
    resets_at: datetime


def as_utc(moment: datetime) -> datetime:
    """Normalise a clock reading to UTC. Naive values are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def next_reset(now: datetime) -> datetime:
    """Next UTC midnight after ``now``."""
    today = as_utc(now).date()
    return datetime.combine(today + timedelta(days=1), time.min, tzinfo=timezone.utc)


def seconds_until_reset(now: datetime) -> int:
    """Calculate whole seconds until midnight UTC (at least 1)."""
    now = as_utc(now)
    return max(1, int((next_reset(now) - now).total_seconds()))


def effective_count(record: UsageRecord, today: date) -> int:
    """
    Count that applies today.

    A stored count only counts for its own date. Yesterday's rows and
    future-dated rows (clock skew) both read as 0.
    """
    if record.usage_date == today:
        return record.usage_count
    return 0


# ─────────────────────────────────────────────────────────────────────
# Store
# ─────────────────────────────────────────────────────────────────────


class ProfileStore:
    """Read-by-key and conditional-update-by-key over the profiles table."""

    def __init__(self, db: Session):
        self.db = db

    def load(self, user_id: str) -> UsageRecord | None:
        """Fresh read of the quota columns (bypasses the session identity map)."""
        row = self.db.execute(
            select(
                Profile.id,
                Profile.is_premium,
                Profile.ai_usage_count,
                Profile.ai_usage_date,
            ).where(Profile.id == user_id)
        ).one_or_none()

        if row is None:
            return None

        return UsageRecord(
            user_id=row.id,
            is_premium=bool(row.is_premium),
            usage_count=row.ai_usage_count or 0,
            usage_date=row.ai_usage_date,
        )

    def compare_and_swap(
        self,
        user_id: str,
        expected_count: int,
        expected_date: date | None,
        new_count: int,
        new_date: date,
    ) -> bool:
        """
        Write the new count/date only if the row still holds the expected ones.

        Commits on success and rolls back otherwise. Returns True when
        exactly one row was updated.
        """
        if expected_date is None:
            date_matches = Profile.ai_usage_date.is_(None)
        else:
            date_matches = Profile.ai_usage_date == expected_date

        result = self.db.execute(
            update(Profile)
            .where(
                Profile.id == user_id,
                Profile.ai_usage_count == expected_count,
                date_matches,
            )
            .values(
                ai_usage_count=new_count,
                ai_usage_date=new_date,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 1:
            self.db.commit()
            return True

        self.db.rollback()
        return False

    def rollback(self) -> None:
        self.db.rollback()


# ─────────────────────────────────────────────────────────────────────
# Gate
# ─────────────────────────────────────────────────────────────────────


class QuotaGate:
    """Decides whether one more AI call is allowed today and reserves it."""

    def __init__(
        self,
        store: ProfileStore,
        *,
        free_limit: int | None = None,
        premium_limit: int | None = None,
        now: Callable[[], datetime] = utc_now,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        settings = get_settings()
        self.store = store
        self.free_limit = free_limit if free_limit is not None else settings.free_daily_ai_limit
        self.premium_limit = (
            premium_limit if premium_limit is not None else settings.premium_daily_ai_limit
        )
        self.now = now
        self.max_attempts = max_attempts

    def limit_for(self, is_premium: bool) -> int:
        return self.premium_limit if is_premium else self.free_limit

    def today(self) -> date:
        """Current UTC date, read from the clock on every call."""
        return as_utc(self.now()).date()

    def check_and_consume(self, user_id: str | None) -> Decision:
        """
        Spend one unit of today's quota for ``user_id``.

        Never raises: store errors come back as TransientFailure and the
        caller must only run the AI action on Allowed.
        """
        if not user_id:
            return Unauthorized()

        try:
            return self._consume(user_id)
        except SQLAlchemyError:
            logger.error("Quota store failure for user %s", user_id, exc_info=True)
            self.store.rollback()
            return TransientFailure(GateError.STORE_UNAVAILABLE)

    def _consume(self, user_id: str) -> Decision:
        record = self.store.load(user_id)
        if record is None:
            logger.warning("No profile for user %s", user_id)
            return NotFound()

        for attempt in range(1, self.max_attempts + 1):
            today = self.today()
            limit = self.limit_for(record.is_premium)
            count = effective_count(record, today)

            if count >= limit:
                logger.info("Daily AI limit reached for user %s (%d/%d)", user_id, count, limit)
                return Denied(limit=limit)

            swapped = self.store.compare_and_swap(
                user_id,
                expected_count=record.usage_count,
                expected_date=record.usage_date,
                new_count=count + 1,
                new_date=today,
            )
            if swapped:
                logger.debug("User %s AI calls today: %d/%d", user_id, count + 1, limit)
                return Allowed(remaining=limit - (count + 1))

            logger.warning(
                "Quota update conflict for user %s (attempt %d/%d)",
                user_id,
                attempt,
                self.max_attempts,
            )
            record = self.store.load(user_id)
            if record is None:
                logger.warning("Profile for user %s disappeared during update", user_id)
                return NotFound()

        # Out of attempts: only a fresh read that shows the cap is reached
        # turns into a denial, anything else stays ambiguous.
        limit = self.limit_for(record.is_premium)
        if effective_count(record, self.today()) >= limit:
            return Denied(limit=limit)

        logger.warning("Giving up on quota update for user %s", user_id)
        return TransientFailure(GateError.UPDATE_CONFLICT)

    def peek(self, user_id: str | None) -> UsageSnapshot | Decision:
        """Today's usage for ``user_id`` without reserving anything."""
        if not user_id:
            return Unauthorized()

        try:
            record = self.store.load(user_id)
        except SQLAlchemyError:
            logger.error("Quota store failure for user %s", user_id, exc_info=True)
            self.store.rollback()
            return TransientFailure(GateError.STORE_UNAVAILABLE)

        if record is None:
            return NotFound()

        now = self.now()
        limit = self.limit_for(record.is_premium)
        used = min(effective_count(record, as_utc(now).date()), limit)
        return UsageSnapshot(
            used=used,
            remaining=limit - used,
            limit=limit,
            tier=Tier.PREMIUM if record.is_premium else Tier.FREE,
            resets_at=next_reset(now),
        )
