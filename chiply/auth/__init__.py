"""Authentication tokens and club access checks."""
from .access import can_edit_sessions, club_role, has_club_access
from .jwt_handler import TokenError, TokenPayload, create_access_token, verify_token
from .roles import ClubRole, SystemRole

__all__ = [
    "can_edit_sessions",
    "club_role",
    "has_club_access",
    "TokenError",
    "TokenPayload",
    "create_access_token",
    "verify_token",
    "ClubRole",
    "SystemRole",
]
