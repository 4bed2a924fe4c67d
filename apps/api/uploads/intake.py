"""
Multipart intake: turns FastAPI upload parts into spooled UploadedFile records.

Enforces the MIME allow-list, per-file size limit and per-request file count
before anything reaches the orchestrator.
"""

import asyncio
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

import aiofiles
import aiofiles.os
from fastapi import UploadFile as FastAPIUploadFile

from apps.api.config import Settings
from apps.api.uploads.models import UploadedFile
from packages.shared.exceptions import (
    NoFileError,
    TooLargeError,
    TooManyFilesError,
    UnsupportedTypeError,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


async def remove_temp_file(path: Path) -> None:
    """Unlink a temporary artifact; missing files are fine."""
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Failed to cleanup temp file {path}: {e}")


async def cleanup_files(files: Iterable[UploadedFile]) -> None:
    """Best-effort removal of spooled temp files."""
    for file in files:
        await remove_temp_file(file.temp_path)


async def make_temp_path(settings: Settings) -> Path:
    """Reserve an empty temp file under upload_tmp_path (or the system temp dir)."""
    tmp_dir = settings.upload_tmp_path
    if tmp_dir:
        await aiofiles.os.makedirs(tmp_dir, exist_ok=True)
    fd, path = await asyncio.to_thread(tempfile.mkstemp, prefix="upload-", dir=tmp_dir)
    os.close(fd)
    return Path(path)


async def spool_upload(upload: FastAPIUploadFile, settings: Settings) -> UploadedFile:
    """
    Copy one multipart part to a temp file.

    Raises:
        UnsupportedTypeError: If the declared MIME type is not allowed
        TooLargeError: If the part exceeds max_file_size
    """
    content_type = (upload.content_type or "").lower()
    if content_type not in settings.allowed_mime_types:
        raise UnsupportedTypeError(upload.content_type)

    temp_path = await make_temp_path(settings)
    size = 0
    try:
        async with aiofiles.open(temp_path, "wb") as out:
            while chunk := await upload.read(CHUNK_SIZE):
                size += len(chunk)
                if size > settings.max_file_size:
                    raise TooLargeError(upload.filename, settings.max_file_size)
                await out.write(chunk)
    except Exception:
        await remove_temp_file(temp_path)
        raise

    return UploadedFile(
        original_name=upload.filename or "file",
        content_type=content_type,
        size=size,
        temp_path=temp_path,
    )


async def receive_uploads(
    uploads: list[FastAPIUploadFile] | None,
    settings: Settings,
    empty_message: str = "No file uploaded",
) -> list[UploadedFile]:
    """
    Validate and spool every part of a request.

    On any rejection, parts already spooled are removed before the error
    propagates.

    Raises:
        NoFileError: If the request carries no file
        TooManyFilesError: If more than max_files_per_request parts arrive
    """
    parts = [u for u in (uploads or []) if u is not None and u.filename]
    if not parts:
        raise NoFileError(empty_message)
    if len(parts) > settings.max_files_per_request:
        raise TooManyFilesError(settings.max_files_per_request)

    spooled: list[UploadedFile] = []
    try:
        for part in parts:
            spooled.append(await spool_upload(part, settings))
    except Exception:
        await cleanup_files(spooled)
        raise
    return spooled
