from .enums import GateError, GateStatus, Tier
from .profile import Profile

__all__ = [
    "GateError",
    "GateStatus",
    "Tier",
    "Profile",
]
