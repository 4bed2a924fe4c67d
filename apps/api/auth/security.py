"""JWT access token helpers.

Tokens are issued by the user/auth service; this API only verifies them.
``create_access_token`` exists for tests and local tooling.
"""

import secrets
from datetime import UTC, datetime, timedelta

import jwt

from apps.api.config import get_settings

ACCESS_TOKEN_EXPIRE_MINUTES = 15


def create_access_token(
    user_id: str,
    email: str,
    role: str = "user",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token."""
    settings = get_settings()
    now = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": now + expires_delta,
        "iat": now,
        "jti": secrets.token_hex(16),  # unique token id
    }

    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT access token.

    Returns:
        Token payload dict if valid, None if invalid/expired.
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
