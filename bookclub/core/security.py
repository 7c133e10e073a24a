"""Verification of session tokens issued by the identity service."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from bookclub.core.config import settings


def create_session_token(
    user_id: UUID,
    email: str,
    name: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    """
    Create a signed session JWT in the identity service's format.

    Production tokens are minted by the identity service; this helper
    exists for local development and tests and signs with JWT_SECRET.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": now + (expires_in or timedelta(hours=settings.JWT_EXPIRES_HOURS)),
    }
    if name:
        payload["user_metadata"] = {"name": name}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=["HS256"],
                audience=settings.JWT_AUDIENCE,
            )
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore
