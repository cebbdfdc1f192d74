"""FastAPI dependencies for dependency injection."""

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
import jwt

from core.security import SessionContext, subject_user_id, verify_jwt_token
from database.engine import get_db
from database.models.profiles import Profile

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_session_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> SessionContext:
    """
    Resolve the caller from the bearer token and their profile row.

    The token only proves identity; the role always comes from the profile.
    """
    if credentials is None:
        raise _unauthorized("Authentication required")

    try:
        payload = verify_jwt_token(credentials.credentials)
        user_id = subject_user_id(payload)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise _unauthorized("Invalid token")

    profile = await db.get(Profile, user_id)
    if profile is None:
        raise _unauthorized("Profile not found")

    request.state.user_id = profile.id
    return SessionContext(
        user_id=profile.id,
        role=profile.role,
        full_name=profile.full_name,
    )


async def require_admin_session(
    ctx: SessionContext = Depends(get_session_context),
) -> SessionContext:
    """Require the caller to be an administrator."""
    if not ctx.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return ctx
