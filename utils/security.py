"""
Bearer token verification.

Tokens are issued by the auth service with a shared HS256 secret and carry
the user id in `sub` (or `id` for tokens from older clients). The role is
never trusted from the token; it is read from the user row on every request.
"""

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

import config
from exceptions.auth import AuthenticationException

logger = logging.getLogger(__name__)


def create_access_token(user_id: int, expires_minutes: int | None = None) -> str:
    """Issue a token for a user id. Used by scripts/create_admin.py and tests."""
    expires = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes or config.ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode({"sub": str(user_id), "exp": expires}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> int:
    """
    Verify a token and return the user id it was issued for.

    Raises:
        AuthenticationException: if the token is malformed, expired, badly
            signed or carries no usable user id
    """
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError as e:
        logger.info(f"[Auth] Rejected token: {e}")
        raise AuthenticationException()

    subject = payload.get("sub", payload.get("id"))
    try:
        return int(subject)
    except (TypeError, ValueError):
        logger.info("[Auth] Token without a numeric subject")
        raise AuthenticationException()


def extract_bearer(authorization: str | None) -> str:
    """
    Raises:
        AuthenticationException: if the header is missing or not a bearer credential
    """
    if not authorization:
        raise AuthenticationException()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationException()
    return token.strip()
