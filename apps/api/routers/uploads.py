"""
Upload API endpoints.

Endpoints:
- POST /upload/single: Upload one file (optional resize/quality/outputFormat)
- POST /upload/multiple: Upload several files with the same options
- DELETE /upload/{filename}: Delete a stored file
- GET /upload/info/{filename}: Stored file metadata
- GET /upload/list: All stored files, newest first
"""

import logging
from typing import Annotated

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    UploadFile as FastAPIUploadFile,
)

from apps.api.auth.dependencies import get_current_user
from apps.api.auth.models import CurrentUser
from apps.api.config import Settings, get_settings
from apps.api.uploads.intake import receive_uploads
from apps.api.uploads.options import ProcessingOptions
from apps.api.uploads.schemas import (
    ErrorResponse,
    FileInfoEnvelope,
    FileInfoResponse,
    FileListResponse,
    FileResultResponse,
    MessageResponse,
    MultipleUploadResponse,
    SingleUploadResponse,
    StoredFileResponse,
)
from apps.api.uploads.service import UploadService
from packages.shared.storage import FileStorageBackend, get_storage_backend

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request or filename"},
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    500: {"model": ErrorResponse, "description": "Storage unavailable"},
}


# =============================================================================
# Dependencies
# =============================================================================


def get_storage() -> FileStorageBackend:
    """Get the process-wide storage backend."""
    return get_storage_backend()


def get_upload_service(
    storage: Annotated[FileStorageBackend, Depends(get_storage)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UploadService:
    """Get upload service with dependencies."""
    return UploadService(storage, settings)


# =============================================================================
# POST /upload/single
# =============================================================================


@router.post(
    "/single",
    response_model=SingleUploadResponse,
    summary="Upload a single file",
    responses=ERROR_RESPONSES,
)
async def upload_single(
    service: Annotated[UploadService, Depends(get_upload_service)],
    settings: Annotated[Settings, Depends(get_settings)],
    user: Annotated[CurrentUser, Depends(get_current_user)],
    file: Annotated[FastAPIUploadFile | None, File(description="File to upload")] = None,
    resize: Annotated[str | None, Form(description='Resize box, e.g. "800x600"')] = None,
    quality: Annotated[str | None, Form(description="Output quality (1-100)")] = None,
    output_format: Annotated[
        str | None, Form(alias="outputFormat", description="jpg, png, webp or avif")
    ] = None,
) -> SingleUploadResponse:
    """Store one file, transforming it first when it is an image and processing is on."""
    options = ProcessingOptions.from_form(resize, quality, output_format)
    [uploaded] = await receive_uploads([file] if file else None, settings)

    record = await service.process_single_file(uploaded, options)
    logger.info(f"File uploaded: {uploaded.original_name} by user {user.email}")

    return SingleUploadResponse(
        success=True,
        message="File uploaded successfully",
        data=StoredFileResponse.model_validate(record),
    )


# =============================================================================
# POST /upload/multiple
# =============================================================================


@router.post(
    "/multiple",
    response_model=MultipleUploadResponse,
    summary="Upload multiple files",
    description="Each file is stored independently; failures are reported per file.",
    responses=ERROR_RESPONSES,
)
async def upload_multiple(
    service: Annotated[UploadService, Depends(get_upload_service)],
    settings: Annotated[Settings, Depends(get_settings)],
    user: Annotated[CurrentUser, Depends(get_current_user)],
    files: Annotated[
        list[FastAPIUploadFile] | None, File(description="Files to upload")
    ] = None,
    resize: Annotated[str | None, Form()] = None,
    quality: Annotated[str | None, Form()] = None,
    output_format: Annotated[str | None, Form(alias="outputFormat")] = None,
) -> MultipleUploadResponse:
    """Store several files sequentially with the same options."""
    options = ProcessingOptions.from_form(resize, quality, output_format)
    uploaded = await receive_uploads(files, settings, empty_message="No files uploaded")

    results = await service.process_multiple_files(uploaded, options)
    stored = sum(1 for r in results if r.ok)
    logger.info(f"{stored} of {len(results)} files uploaded by user {user.email}")

    errors = [
        {"file": r.original_name, "code": r.error_code, "message": r.error}
        for r in results
        if not r.ok
    ]
    return MultipleUploadResponse(
        success=not errors,
        message=f"{stored} of {len(results)} files uploaded successfully",
        data=[FileResultResponse.model_validate(r) for r in results],
        errors=errors or None,
    )


# =============================================================================
# DELETE /upload/{filename}
# =============================================================================


@router.delete(
    "/{filename}",
    response_model=MessageResponse,
    summary="Delete an uploaded file",
    responses={**ERROR_RESPONSES, 404: {"model": ErrorResponse, "description": "File not found"}},
)
async def delete_file(
    filename: str,
    service: Annotated[UploadService, Depends(get_upload_service)],
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> MessageResponse:
    """Delete a stored file by name."""
    await service.delete_file(filename)
    logger.info(f"File deleted: {filename} by user {user.email}")
    return MessageResponse(success=True, message="File deleted successfully")


# =============================================================================
# GET /upload/info/{filename}
# =============================================================================


@router.get(
    "/info/{filename}",
    response_model=FileInfoEnvelope,
    summary="Get file info",
    responses={**ERROR_RESPONSES, 404: {"model": ErrorResponse, "description": "File not found"}},
)
async def get_file_info(
    filename: str,
    service: Annotated[UploadService, Depends(get_upload_service)],
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> FileInfoEnvelope:
    """Size, MIME type, timestamps and URL of a stored file."""
    info = await service.get_file_info(filename)
    return FileInfoEnvelope(success=True, data=FileInfoResponse.model_validate(info))


# =============================================================================
# GET /upload/list
# =============================================================================


@router.get(
    "/list",
    response_model=FileListResponse,
    summary="List uploaded files",
    responses=ERROR_RESPONSES,
)
async def list_files(
    service: Annotated[UploadService, Depends(get_upload_service)],
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> FileListResponse:
    """All stored files, newest first."""
    files = await service.list_all_files()
    return FileListResponse(
        success=True,
        data=[FileInfoResponse.model_validate(f) for f in files],
        total=len(files),
    )
