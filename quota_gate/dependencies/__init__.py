"""FastAPI dependencies."""

from .quota import get_quota_gate

__all__ = ["get_quota_gate"]
