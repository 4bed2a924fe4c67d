"""Upload pipeline: intake, image processing and storage orchestration."""

from apps.api.uploads.error_codes import UploadErrorCode, get_error_message
from apps.api.uploads.image_processing import (
    ImageTransformer,
    TransformResult,
    clamp_dimensions,
    fit_within,
)
from apps.api.uploads.intake import cleanup_files, receive_uploads
from apps.api.uploads.models import FileResult, FileStatus, StoredFileRecord, UploadedFile
from apps.api.uploads.options import OutputFormat, ProcessingOptions
from apps.api.uploads.service import UploadService

__all__ = [
    # Error codes
    "UploadErrorCode",
    "get_error_message",
    # Image processing
    "ImageTransformer",
    "TransformResult",
    "clamp_dimensions",
    "fit_within",
    # Intake
    "cleanup_files",
    "receive_uploads",
    # Models
    "FileResult",
    "FileStatus",
    "StoredFileRecord",
    "UploadedFile",
    "OutputFormat",
    "ProcessingOptions",
    # Service
    "UploadService",
]
