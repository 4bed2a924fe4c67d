"""Authenticated identity carried on each request."""

import enum
from dataclasses import dataclass


class UserRole(str, enum.Enum):
    """User roles issued by the auth service."""

    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class CurrentUser:
    """Verified identity extracted from an access token."""

    id: str
    email: str
    role: UserRole = UserRole.USER
