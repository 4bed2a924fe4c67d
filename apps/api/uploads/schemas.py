"""Pydantic schemas for upload API responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from apps.api.uploads.models import FileStatus


# =============================================================================
# File Schemas
# =============================================================================


class StoredFileResponse(BaseModel):
    """A persisted upload."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "filename": "1760860800000-3f9a1c2b7d4e-holiday.webp",
                "original_name": "holiday.png",
                "size": 48213,
                "mimetype": "image/webp",
                "url": "/uploads/1760860800000-3f9a1c2b7d4e-holiday.webp",
                "processed": True,
                "storage_key": "1760860800000-3f9a1c2b7d4e-holiday.webp",
                "warning": None,
            }
        },
    )

    filename: str
    original_name: str
    size: int
    mimetype: str
    url: str
    processed: bool
    storage_key: str
    warning: str | None = Field(
        default=None,
        description="Set when image processing failed and the original was stored",
    )


class FileResultResponse(BaseModel):
    """One slot of a batch upload."""

    model_config = ConfigDict(from_attributes=True)

    original_name: str
    status: FileStatus
    record: StoredFileResponse | None = None
    error: str | None = None
    error_code: str | None = None


class FileInfoResponse(BaseModel):
    """Metadata about a stored file."""

    model_config = ConfigDict(from_attributes=True)

    filename: str
    storage_key: str
    size: int
    mimetype: str
    url: str
    created: datetime | None = None
    modified: datetime | None = None


# =============================================================================
# Envelopes
# =============================================================================


class EnvelopeBase(BaseModel):
    """Standard response envelope."""

    success: bool
    message: str | None = None


class MessageResponse(EnvelopeBase):
    pass


class SingleUploadResponse(EnvelopeBase):
    data: StoredFileResponse


class MultipleUploadResponse(EnvelopeBase):
    data: list[FileResultResponse]
    errors: list[dict[str, Any]] | None = None


class FileInfoEnvelope(EnvelopeBase):
    data: FileInfoResponse


class FileListResponse(EnvelopeBase):
    data: list[FileInfoResponse]
    total: int


class ErrorResponse(EnvelopeBase):
    """Shape of every failure response."""

    success: bool = False
    errors: list[dict[str, Any]] | None = None
