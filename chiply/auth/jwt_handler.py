"""JWT token handling."""
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from dataclasses import dataclass, field

from chiply.config import config
from chiply.auth.roles import ClubRole, SystemRole


@dataclass
class TokenPayload:
    """Decoded token payload."""
    user_id: str
    email: Optional[str]
    system_role: SystemRole
    clubs: dict[str, ClubRole] = field(default_factory=dict)
    exp: Optional[datetime] = None
    iat: Optional[datetime] = None


class TokenError(Exception):
    """Token validation error."""
    pass


def create_access_token(
    user_id: str,
    email: Optional[str],
    system_role: SystemRole = SystemRole.USER,
    clubs: Optional[dict[str, ClubRole]] = None,
) -> str:
    """Create an access token.

    Args:
        user_id: Unique user identifier.
        email: User's email, used to match club roster entries.
        system_role: Application-wide role.
        clubs: Club memberships as {club_id: role}.

    Returns:
        Encoded JWT access token.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "system_role": system_role.value,
        "clubs": {club_id: role.value for club_id, role in (clubs or {}).items()},
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=config.jwt_access_expiry_minutes),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def verify_token(token: str) -> TokenPayload:
    """Verify and decode an access token.

    Args:
        token: The JWT token to verify.

    Returns:
        Decoded token payload.

    Raises:
        TokenError: If token is invalid, expired, or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[config.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("type") != "access":
        raise TokenError(f"Expected access token, got {payload.get('type')}")

    try:
        return TokenPayload(
            user_id=payload["sub"],
            email=payload.get("email"),
            system_role=SystemRole(payload.get("system_role", SystemRole.USER.value)),
            clubs={club_id: ClubRole(role) for club_id, role in (payload.get("clubs") or {}).items()},
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        )
    except (KeyError, ValueError) as e:
        raise TokenError(f"Malformed token payload: {e}")
