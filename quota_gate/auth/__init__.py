"""Auth module for JWT validation and identity resolution."""

from quota_gate.auth.dependencies import (
    get_current_user_optional,
    get_fallback_user_id,
    resolve_identity,
)
from quota_gate.auth.jwt import validate_supabase_jwt
from quota_gate.auth.schemas import TokenPayload, User

__all__ = [
    "User",
    "TokenPayload",
    "validate_supabase_jwt",
    "get_current_user_optional",
    "get_fallback_user_id",
    "resolve_identity",
]
