"""Quota gate request and response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from quota_gate.models.enums import GateError, GateStatus, Tier


class TrackAIRequest(BaseModel):
    """Optional body of a gate call; user_id is only a fallback identity."""

    user_id: str | None = Field(default=None, alias="userId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GateResponse(BaseModel):
    """
    Envelope returned for every gate outcome.

    ``status`` is always present; ``remaining`` accompanies ``ok``,
    ``limit`` and ``retry_after`` accompany ``limit_exceeded`` and
    ``error`` accompanies ``error``.
    """

    status: GateStatus
    remaining: int | None = Field(default=None, ge=0)
    limit: int | None = None
    retry_after: int | None = None
    error: GateError | None = None
    error_id: str | None = None


class UsageResponse(BaseModel):
    """Today's quota state for a user, without consuming anything."""

    status: GateStatus = GateStatus.OK
    used: int = Field(ge=0)
    remaining: int = Field(ge=0)
    limit: int
    tier: Tier
    resets_at: datetime
