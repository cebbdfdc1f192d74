"""
Token verification and the per-request session context.

Tokens are issued by the identity provider; this service only verifies them.
``create_access_token`` exists for local development and tests.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from core.config import settings
from core.exceptions import PermissionDeniedError
from database.models.profiles import ProfileRole


@dataclass(frozen=True)
class SessionContext:
    """
    Who is calling.

    Resolved once per request from the bearer token and the profile row, then
    passed explicitly to every service call.
    """

    user_id: int
    role: ProfileRole
    full_name: str

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN


def require_admin(ctx: SessionContext) -> None:
    """Raise PermissionDeniedError unless the caller is an administrator."""
    if not ctx.is_admin:
        raise PermissionDeniedError("Admin access required")


def create_access_token(
    user_id: int,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed access token whose subject is the profile id.

    Args:
        user_id: Profile id
        secret_key: Signing key (defaults to configured key)
        algorithm: JWT algorithm (defaults to configured algorithm)
        expires_delta: Lifetime (defaults to configured minutes)

    Returns:
        Encoded JWT
    """
    issued_at = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    payload = {
        "sub": str(user_id),
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + expires_delta,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(
        payload,
        secret_key or settings.jwt_secret_key,
        algorithm=algorithm or settings.jwt_algorithm,
    )


def verify_jwt_token(
    token: str,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> dict[str, Any]:
    """
    Decode and verify a token.

    Raises:
        jwt.ExpiredSignatureError: Token expired
        jwt.InvalidTokenError: Bad signature, malformed token or missing subject
    """
    payload = jwt.decode(
        token,
        secret_key or settings.jwt_secret_key,
        algorithms=[algorithm or settings.jwt_algorithm],
        options={"require": ["sub", "exp"]},
    )
    if payload.get("type", "access") != "access":
        raise jwt.InvalidTokenError("Not an access token")
    return payload


def subject_user_id(payload: dict[str, Any]) -> int:
    """Profile id carried in the token subject."""
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise jwt.InvalidTokenError("Token subject is not a profile id") from exc
