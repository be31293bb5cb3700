"""API routers."""

from quota_gate.routers import health, track_ai

__all__ = [
    "health",
    "track_ai",
]
