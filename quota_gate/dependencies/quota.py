"""Quota gate dependencies for FastAPI."""

from fastapi import Depends
from sqlalchemy.orm import Session

from quota_gate.database.session import get_db
from quota_gate.services.quota_gate import ProfileStore, QuotaGate


def get_quota_gate(db: Session = Depends(get_db)) -> QuotaGate:
    """
    Gate bound to this request's database session.

    Usage:
        @router.post("/track-ai")
        def track_ai(gate: QuotaGate = Depends(get_quota_gate)):
            decision = gate.check_and_consume(user_id)
            ...
    """
    return QuotaGate(ProfileStore(db))
