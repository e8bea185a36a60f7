"""Club access checks."""
from typing import Optional

from chiply.auth.jwt_handler import TokenPayload
from chiply.auth.roles import SESSION_EDITOR_ROLES, ClubRole, SystemRole


def has_club_access(user: TokenPayload, club_id: str) -> bool:
    """System admins see every club; everyone else only their own."""
    return user.system_role == SystemRole.ADMIN or club_id in user.clubs


def club_role(user: TokenPayload, club_id: str) -> Optional[ClubRole]:
    """The user's role in a club (system admins act as club admins)."""
    if user.system_role == SystemRole.ADMIN:
        return ClubRole.ADMIN
    return user.clubs.get(club_id)


def can_edit_sessions(user: TokenPayload, club_id: Optional[str]) -> bool:
    """Whether the user may record and reset cash-outs in the club's sessions."""
    if club_id is None:
        return user.system_role == SystemRole.ADMIN
    return club_role(user, club_id) in SESSION_EDITOR_ROLES
