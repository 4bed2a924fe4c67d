"""FastAPI dependencies for authentication."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from apps.api.auth.models import CurrentUser, UserRole
from apps.api.auth.security import decode_access_token

# Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CurrentUser:
    """Get current authenticated user from JWT token."""
    if not credentials:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("sub") or payload.get("id")
    email = payload.get("email")
    if not user_id or not email:
        raise _unauthorized("Invalid token payload")

    try:
        role = UserRole(payload.get("role", UserRole.USER.value))
    except ValueError:
        raise _unauthorized("Invalid token payload")

    return CurrentUser(id=str(user_id), email=email, role=role)
