"""AI quota endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from quota_gate.auth.dependencies import resolve_identity
from quota_gate.config import get_settings
from quota_gate.dependencies.quota import get_quota_gate
from quota_gate.models.enums import GateError, GateStatus
from quota_gate.schemas.quota import GateResponse, UsageResponse
from quota_gate.services.quota_gate import (
    Allowed,
    Decision,
    Denied,
    NotFound,
    QuotaGate,
    TransientFailure,
    Unauthorized,
    UsageSnapshot,
    seconds_until_reset,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["quota"])

# Used only when DISTINCT_STATUS_CODES is on; otherwise every outcome is a 200
_ERROR_STATUS_CODES = {
    GateError.PROFILE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    GateError.UPDATE_CONFLICT: status.HTTP_503_SERVICE_UNAVAILABLE,
    GateError.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    GateError.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_gate_response(decision: Decision, gate: QuotaGate) -> tuple[GateResponse, int]:
    """Map a gate decision to its envelope and the strict HTTP status code."""
    if isinstance(decision, Allowed):
        return GateResponse(status=GateStatus.OK, remaining=decision.remaining), status.HTTP_200_OK

    if isinstance(decision, Denied):
        body = GateResponse(
            status=GateStatus.LIMIT_EXCEEDED,
            limit=decision.limit,
            retry_after=seconds_until_reset(gate.now()),
        )
        return body, status.HTTP_429_TOO_MANY_REQUESTS

    if isinstance(decision, Unauthorized):
        return GateResponse(status=GateStatus.UNAUTHORIZED), status.HTTP_401_UNAUTHORIZED

    if isinstance(decision, NotFound):
        error = GateError.PROFILE_NOT_FOUND
    elif isinstance(decision, TransientFailure):
        error = decision.reason
    else:
        raise TypeError(f"Unknown gate decision: {decision!r}")

    return GateResponse(status=GateStatus.ERROR, error=error), _ERROR_STATUS_CODES[error]


def render(body: GateResponse | UsageResponse, strict_status: int) -> JSONResponse:
    """Serialize an envelope, honouring the configured status code convention."""
    settings = get_settings()
    status_code = strict_status if settings.distinct_status_codes else status.HTTP_200_OK

    headers = None
    if status_code == status.HTTP_429_TOO_MANY_REQUESTS and body.retry_after:
        headers = {"Retry-After": str(body.retry_after)}

    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


@router.post("/track-ai", response_model=GateResponse, response_model_exclude_none=True)
def track_ai(
    user_id: str | None = Depends(resolve_identity),
    gate: QuotaGate = Depends(get_quota_gate),
) -> JSONResponse:
    """
    Spend one AI call from the caller's daily quota.

    Callers must only run the AI action when ``status`` is ``ok``.
    """
    decision = gate.check_and_consume(user_id)
    body, strict_status = to_gate_response(decision, gate)

    if body.status != GateStatus.OK:
        logger.info("track-ai for %s -> %s", user_id or "<anonymous>", decision)

    return render(body, strict_status)


@router.get("/usage", response_model=UsageResponse | GateResponse, response_model_exclude_none=True)
def get_usage(
    user_id: str | None = Depends(resolve_identity),
    gate: QuotaGate = Depends(get_quota_gate),
) -> JSONResponse:
    """Report today's AI usage without consuming any of it."""
    result = gate.peek(user_id)

    if isinstance(result, UsageSnapshot):
        body = UsageResponse(
            used=result.used,
            remaining=result.remaining,
            limit=result.limit,
            tier=result.tier,
            resets_at=result.resets_at,
        )
        return render(body, status.HTTP_200_OK)

    body, strict_status = to_gate_response(result, gate)
    return render(body, strict_status)
