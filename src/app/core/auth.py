"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
Tokens are issued by the account service; this module only validates them
and extracts the caller's id and role.

SECURITY NOTE:
- Development mode auth bypass is ONLY enabled when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production to disable test tokens
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)

TEACHER_ROLE = "teacher"
REVIEWER_ROLES = frozenset({"admin", "reviewer"})


@dataclass
class CurrentUser:
    """
    Represents an authenticated caller.

    Attributes:
        id: Teacher or staff identifier (UUID)
        role: Role claim from the token
    """

    id: UUID
    role: str

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, role={self.role})"


def _is_dev_mode_safe() -> bool:
    """
    Check if development mode is safe to enable.

    Both the settings and the raw PYTHON_ENV variable must agree that this
    is not a production or staging deployment.
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()
    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in {"production", "staging"}
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_user_token(token: str) -> CurrentUser:
    """
    Validate a bearer token and extract the caller.

    In development mode a bare UUID is accepted as a teacher token.

    Raises:
        HTTPException 401: If the token is invalid, expired or missing claims
    """
    if _DEVELOPMENT_MODE:
        try:
            return CurrentUser(id=UUID(token), role=TEACHER_ROLE)
        except ValueError:
            pass

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as e:
        logger.warning(f"Invalid or expired JWT token: {type(e).__name__}")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.") from e

    try:
        return CurrentUser(id=UUID(str(payload["sub"])), role=str(payload.get("role", "")))
    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_teacher(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated teacher.

    Raises:
        HTTPException 401: If the token is missing or invalid
        HTTPException 403: If the caller is not a teacher
    """
    user = decode_user_token(credentials.credentials)

    if user.role != TEACHER_ROLE:
        logger.warning(f"Access denied: user {user.id} has role '{user.role}', 'teacher' required")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "TEACHER_ACCESS_REQUIRED",
                "message": "Teacher access is required for this endpoint.",
            },
        )

    return user


async def get_current_reviewer(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated reviewer.

    Raises:
        HTTPException 401: If the token is missing or invalid
        HTTPException 403: If the caller may not review applications
    """
    user = decode_user_token(credentials.credentials)

    if user.role not in REVIEWER_ROLES:
        logger.warning(f"Access denied: user {user.id} has role '{user.role}', reviewer required")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "REVIEWER_ACCESS_REQUIRED",
                "message": "Reviewer access is required for this endpoint.",
            },
        )

    logger.debug(f"Authenticated reviewer: {user.id}")
    return user


__all__ = [
    "CurrentUser",
    "decode_user_token",
    "get_current_teacher",
    "get_current_reviewer",
]
