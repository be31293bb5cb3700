"""
Caller-side client for the quota gate.

AI-invoking features call check_and_consume() before each AI request and
only proceed on Allowed. A TransientFailure from a transport error does not
mean nothing was spent: the gate may have committed before the connection
dropped.
"""

import logging
from datetime import datetime
from typing import Any

import httpx

from quota_gate.models.enums import GateError, GateStatus, Tier
from quota_gate.services.quota_gate import (
    Allowed,
    Decision,
    Denied,
    NotFound,
    TransientFailure,
    Unauthorized,
    UsageSnapshot,
)

logger = logging.getLogger(__name__)


def parse_decision(body: Any) -> Decision:
    """Map a gate envelope back to a typed decision."""
    if not isinstance(body, dict):
        return TransientFailure(GateError.INTERNAL)

    gate_status = body.get("status")
    try:
        if gate_status == GateStatus.OK:
            return Allowed(remaining=int(body["remaining"]))
        if gate_status == GateStatus.LIMIT_EXCEEDED:
            return Denied(limit=int(body["limit"]))
    except (KeyError, TypeError, ValueError):
        logger.warning("Malformed gate envelope: %s", body)
        return TransientFailure(GateError.INTERNAL)

    if gate_status == GateStatus.UNAUTHORIZED:
        return Unauthorized()

    if gate_status == GateStatus.ERROR:
        error = body.get("error")
        if error == GateError.PROFILE_NOT_FOUND:
            return NotFound()
        try:
            return TransientFailure(GateError(error))
        except ValueError:
            return TransientFailure(GateError.INTERNAL)

    logger.warning("Unknown gate status: %r", gate_status)
    return TransientFailure(GateError.INTERNAL)


def parse_usage(body: Any) -> UsageSnapshot | Decision:
    """Map a /usage envelope to a snapshot, or to the decision it reports."""
    if isinstance(body, dict) and body.get("status") == GateStatus.OK:
        try:
            return UsageSnapshot(
                used=int(body["used"]),
                remaining=int(body["remaining"]),
                limit=int(body["limit"]),
                tier=Tier(body["tier"]),
                resets_at=datetime.fromisoformat(body["resets_at"]),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Malformed usage envelope: %s", body)
            return TransientFailure(GateError.INTERNAL)

    decision = parse_decision(body)
    if isinstance(decision, (Allowed, Denied)):
        return TransientFailure(GateError.INTERNAL)
    return decision


class QuotaGateClient:
    """Async HTTP client for the /track-ai and /usage endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self, access_token: str | None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        if self.api_key:
            headers["apikey"] = self.api_key
        return headers

    async def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            response = await client.request(method, path, **kwargs)
        # Both status code conventions carry the envelope in the body
        return response.json()

    async def check_and_consume(
        self,
        access_token: str | None = None,
        user_id: str | None = None,
    ) -> Decision:
        """
        Ask the gate for one AI call.

        Args:
            access_token: Supabase access token of the signed-in user
            user_id: Explicit id, only used by the gate if the token is unusable

        Returns:
            The gate's decision; transport and decoding failures come back
            as TransientFailure.
        """
        payload = {"user_id": user_id} if user_id else {}
        try:
            body = await self._send(
                "POST", "/track-ai", json=payload, headers=self._headers(access_token)
            )
        except httpx.HTTPError as e:
            logger.warning("Quota gate unreachable: %s", e)
            return TransientFailure(GateError.GATE_UNREACHABLE)
        except ValueError:
            logger.warning("Quota gate returned a non-JSON body")
            return TransientFailure(GateError.INTERNAL)

        return parse_decision(body)

    async def get_usage(
        self,
        access_token: str | None = None,
        user_id: str | None = None,
    ) -> UsageSnapshot | Decision:
        """Fetch today's usage without consuming any quota."""
        params = {"user_id": user_id} if user_id else None
        try:
            body = await self._send(
                "GET", "/usage", params=params, headers=self._headers(access_token)
            )
        except httpx.HTTPError as e:
            logger.warning("Quota gate unreachable: %s", e)
            return TransientFailure(GateError.GATE_UNREACHABLE)
        except ValueError:
            logger.warning("Quota gate returned a non-JSON body")
            return TransientFailure(GateError.INTERNAL)

        return parse_usage(body)
