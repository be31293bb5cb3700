"""FastAPI dependencies for resolving the caller's identity."""

import logging

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from quota_gate.auth.jwt import validate_supabase_jwt
from quota_gate.auth.schemas import User
from quota_gate.config import get_settings
from quota_gate.schemas.quota import TrackAIRequest

logger = logging.getLogger(__name__)

# HTTPBearer with auto_error=False so we can handle missing tokens ourselves
security = HTTPBearer(auto_error=False)


def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User | None:
    """
    Optional auth - returns None if no token provided or the token is rejected.

    - If DEV_USER_ID is set: return mock user (local dev)
    - Otherwise: validate the Supabase JWT and return the user from its claims
    """
    settings = get_settings()

    if settings.dev_user_id:
        return User(id=settings.dev_user_id, email="dev@local.test")

    if not credentials:
        return None

    try:
        token_payload = validate_supabase_jwt(credentials.credentials)
    except HTTPException as e:
        logger.info("Bearer credential rejected: %s", e.detail)
        return None

    if not token_payload.sub:
        logger.info("Bearer credential carries no subject")
        return None

    return User(
        id=token_payload.sub,
        email=token_payload.email,
    )


async def get_fallback_user_id(request: Request) -> str | None:
    """
    Explicit user id supplied by the caller.

    GET requests carry it as the ``user_id`` query parameter, everything else
    in the JSON body. Empty or malformed bodies mean "no fallback".
    """
    if request.method == "GET":
        return request.query_params.get("user_id") or None

    body = await request.body()
    if not body:
        return None

    try:
        payload = TrackAIRequest.model_validate_json(body)
    except ValidationError:
        logger.debug("Ignoring unparseable request body on %s", request.url.path)
        return None

    return payload.user_id or None


def resolve_identity(
    user: User | None = Depends(get_current_user_optional),
    fallback_user_id: str | None = Depends(get_fallback_user_id),
) -> str | None:
    """
    Resolve the user the quota applies to.

    The bearer credential always wins; the explicit id is only consulted
    when no credential could be resolved. Returns None if neither yields
    an identity.

    Usage:
        @router.post("/track-ai")
        def track_ai(user_id: str | None = Depends(resolve_identity)):
            ...
    """
    if user is not None and user.id:
        return user.id
    if fallback_user_id:
        logger.info("No usable credential, falling back to explicit user_id")
        return fallback_user_id
    return None
