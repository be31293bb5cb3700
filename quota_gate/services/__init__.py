"""Quota services.

Re-exports the gate and its decision types.
"""

from quota_gate.services.quota_gate import (
    Allowed,
    Decision,
    Denied,
    NotFound,
    ProfileStore,
    QuotaGate,
    TransientFailure,
    Unauthorized,
    UsageRecord,
    UsageSnapshot,
)

__all__ = [
    "Allowed",
    "Decision",
    "Denied",
    "NotFound",
    "ProfileStore",
    "QuotaGate",
    "TransientFailure",
    "Unauthorized",
    "UsageRecord",
    "UsageSnapshot",
]
