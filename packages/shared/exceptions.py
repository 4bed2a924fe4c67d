"""Shared exception classes and handlers."""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.errors = errors or []
        super().__init__(self.message)


class InvalidNameError(AppException):
    """Filename or storage key is malformed or attempts path traversal."""

    def __init__(self, message: str = "Invalid filename") -> None:
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


class NotFoundError(AppException):
    """Stored file does not exist."""

    def __init__(self, message: str = "File not found") -> None:
        super().__init__(message=message, status_code=status.HTTP_404_NOT_FOUND)


class UnsupportedTypeError(AppException):
    """Declared MIME type is not in the allow-list."""

    def __init__(self, content_type: str | None) -> None:
        super().__init__(
            message=f"File type {content_type} is not allowed",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class TooLargeError(AppException):
    """A single file exceeds the configured size limit."""

    def __init__(self, filename: str | None, max_bytes: int) -> None:
        super().__init__(
            message=f"File {filename} exceeds maximum size of {max_bytes} bytes",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class TooManyFilesError(AppException):
    """A request carries more files than allowed."""

    def __init__(self, max_files: int) -> None:
        super().__init__(
            message=f"Too many files. Maximum is {max_files} per request",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class NoFileError(AppException):
    """Upload request carried no file parts."""

    def __init__(self, message: str = "No file uploaded") -> None:
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


class InvalidOptionsError(AppException):
    """Processing options (resize, quality, format) are malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


class StorageUnavailableError(AppException):
    """Storage backend I/O failed."""

    def __init__(self, message: str = "Storage backend unavailable") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def error_envelope(message: str, errors: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    """Build the standard failure body."""
    content: dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    return content


async def app_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle AppException and return JSON response."""
    if isinstance(exc, AppException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.message, exc.errors),
        )
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_envelope("Internal server error"),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Render framework HTTP errors (auth, 404 routes) in the envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Reject structurally invalid requests with 400."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope("Validation failed", errors),
    )
