"""Structured error codes for upload failures."""

from enum import Enum

from packages.shared.exceptions import (
    AppException,
    InvalidNameError,
    InvalidOptionsError,
    NotFoundError,
    StorageUnavailableError,
    TooLargeError,
    TooManyFilesError,
    UnsupportedTypeError,
)


class UploadErrorCode(str, Enum):
    """
    Error codes reported for failed uploads.

    Categories:
    - Request errors: rejected before storage is touched
    - Storage errors: backend I/O failures
    - Processing: transform fallbacks (never fatal)
    """

    # --- Request Errors ---
    INVALID_NAME = "invalid_name"
    INVALID_OPTIONS = "invalid_options"
    UNSUPPORTED_TYPE = "unsupported_type"
    TOO_LARGE = "too_large"
    TOO_MANY_FILES = "too_many_files"

    # --- Storage Errors ---
    NOT_FOUND = "not_found"
    STORAGE_UNAVAILABLE = "storage_unavailable"

    # --- Processing ---
    PROCESSING_FAILED = "processing_failed"

    INTERNAL_ERROR = "internal_error"


# Human-readable error messages
ERROR_MESSAGES: dict[UploadErrorCode, str] = {
    UploadErrorCode.INVALID_NAME: "Invalid filename",
    UploadErrorCode.INVALID_OPTIONS: "Invalid processing options",
    UploadErrorCode.UNSUPPORTED_TYPE: "File type is not allowed",
    UploadErrorCode.TOO_LARGE: "File exceeds maximum size",
    UploadErrorCode.TOO_MANY_FILES: "Too many files in request",
    UploadErrorCode.NOT_FOUND: "File not found",
    UploadErrorCode.STORAGE_UNAVAILABLE: "Storage backend unavailable",
    UploadErrorCode.PROCESSING_FAILED: "Image processing failed; original file stored",
    UploadErrorCode.INTERNAL_ERROR: "File upload failed",
}

_EXCEPTION_CODES: list[tuple[type[AppException], UploadErrorCode]] = [
    (InvalidNameError, UploadErrorCode.INVALID_NAME),
    (InvalidOptionsError, UploadErrorCode.INVALID_OPTIONS),
    (UnsupportedTypeError, UploadErrorCode.UNSUPPORTED_TYPE),
    (TooLargeError, UploadErrorCode.TOO_LARGE),
    (TooManyFilesError, UploadErrorCode.TOO_MANY_FILES),
    (NotFoundError, UploadErrorCode.NOT_FOUND),
    (StorageUnavailableError, UploadErrorCode.STORAGE_UNAVAILABLE),
]


def get_error_message(code: UploadErrorCode, detail: str | None = None) -> str:
    """
    Get human-readable error message for an error code.

    Args:
        code: The error code
        detail: Optional additional detail to append

    Returns:
        Human-readable error message
    """
    base_message = ERROR_MESSAGES.get(code, f"Unknown error: {code}")
    if detail:
        return f"{base_message}: {detail}"
    return base_message


def error_code_for(exc: BaseException) -> UploadErrorCode:
    """Map an exception to its error code."""
    for exc_type, code in _EXCEPTION_CODES:
        if isinstance(exc, exc_type):
            return code
    return UploadErrorCode.INTERNAL_ERROR
