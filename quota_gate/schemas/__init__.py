"""Pydantic schemas for API request/response validation."""

from .quota import GateResponse, TrackAIRequest, UsageResponse

__all__ = [
    "GateResponse",
    "TrackAIRequest",
    "UsageResponse",
]
