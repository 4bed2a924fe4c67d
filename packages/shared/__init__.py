"""Shared utilities package: error types and storage backends."""

from packages.shared.exceptions import (
    AppException,
    InvalidNameError,
    NotFoundError,
    StorageUnavailableError,
)

__all__ = [
    "AppException",
    "InvalidNameError",
    "NotFoundError",
    "StorageUnavailableError",
]
