"""Principal tokens for the HTTP layer.

A principal (user id + role) is signed once by the session layer as an
HS256 JWT and verified on each request; services receive the verified
principal and never look identities up again by email.

Claims: sub (user id as string), role ("owner" | "tenant"), iat, exp.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

import jwt

from pgmanager.services.errors import ForbiddenError, LedgerError

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(hours=24)


class Role(str, Enum):
    OWNER = "owner"
    TENANT = "tenant"


class AuthenticationError(LedgerError):
    """Missing, malformed, expired or tampered bearer token."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, "not_authenticated", 401)


@dataclass(frozen=True)
class Principal:
    """Verified caller identity."""

    user_id: int
    role: Role

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER

    @property
    def is_tenant(self) -> bool:
        return self.role == Role.TENANT


def issue_token(
    principal: Principal,
    secret: str,
    expires_in: timedelta = TOKEN_LIFETIME,
    now: datetime | None = None,
) -> str:
    """Sign a principal into a bearer token.

    Args:
        principal: Identity to embed
        secret: HS256 signing key (TOKEN_SECRET)
        expires_in: Token lifetime (default: 24 hours)
        now: Issue time (default: current UTC time)

    Returns:
        Encoded JWT
    """
    now = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(principal.user_id),
        "role": principal.role.value,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=TOKEN_ALGORITHM)


def verify_token(token: str, secret: str) -> Principal:
    """Verify a bearer token and return its principal.

    Raises:
        AuthenticationError: If the token is malformed, expired or its signature does not match
    """
    if not token:
        raise AuthenticationError("Malformed token")

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[TOKEN_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        logger.warning("Rejected bearer token: %s", e)
        raise AuthenticationError("Invalid token") from e

    try:
        return Principal(user_id=int(payload["sub"]), role=Role(payload.get("role")))
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Malformed token") from e


def extract_bearer(authorization: str | None) -> str | None:
    """Extract the token from an "Authorization: Bearer <token>" header."""
    if not authorization:
        return None
    auth = authorization.strip()
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


def require_role(principal: Principal, role: Role) -> Principal:
    """Raise ForbiddenError unless the principal holds role."""
    if principal.role != role:
        raise ForbiddenError(f"Only {role.value}s can perform this action")
    return principal


__all__ = [
    "AuthenticationError",
    "Principal",
    "Role",
    "TOKEN_LIFETIME",
    "extract_bearer",
    "issue_token",
    "require_role",
    "verify_token",
]
