from enum import Enum


class Tier(str, Enum):
    """Subscription tier; decides the daily AI limit."""

    FREE = "free"
    PREMIUM = "premium"


class GateStatus(str, Enum):
    """Discriminator carried by every gate response."""

    OK = "ok"
    LIMIT_EXCEEDED = "limit_exceeded"
    UNAUTHORIZED = "unauthorized"
    ERROR = "error"


class GateError(str, Enum):
    """Error codes reported alongside GateStatus.ERROR."""

    PROFILE_NOT_FOUND = "profile_not_found"
    UPDATE_CONFLICT = "update_conflict"
    STORE_UNAVAILABLE = "store_unavailable"
    INTERNAL = "internal"
    GATE_UNREACHABLE = "gate_unreachable"
