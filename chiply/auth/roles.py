"""Role definitions."""
from enum import Enum


class SystemRole(str, Enum):
    """Application-wide roles."""
    USER = "user"
    ADMIN = "admin"


class ClubRole(str, Enum):
    """Roles within a club."""
    MEMBER = "member"
    MANAGER = "manager"
    ADMIN = "admin"


# Club roles allowed to record and reset cash-outs.
SESSION_EDITOR_ROLES = frozenset({ClubRole.ADMIN, ClubRole.MANAGER})
