"""
Upload service: orchestrates the file upload pipeline.

Handles:
- Optional image transformation
- Persisting through the active storage backend
- Temp-file cleanup on every exit path
- Batch uploads with per-file failure capture
- Delete / info / list delegation
"""

import asyncio
import logging
from collections.abc import Sequence

import aiofiles

from apps.api.config import Settings
from apps.api.uploads.error_codes import UploadErrorCode, error_code_for, get_error_message
from apps.api.uploads.image_processing import ImageTransformer, TransformResult
from apps.api.uploads.intake import remove_temp_file
from apps.api.uploads.models import FileResult, FileStatus, StoredFileRecord, UploadedFile
from apps.api.uploads.options import ProcessingOptions
from packages.shared.exceptions import AppException, StorageUnavailableError
from packages.shared.storage import FileInfo, FileStorageBackend, generate_filename

logger = logging.getLogger(__name__)


class UploadService:
    """
    Service for storing uploaded files.

    Per file: received -> (transforming) -> persisting -> persisted | failed.
    The service owns the temporary input artifact; the storage backend owns
    the persisted file.
    """

    def __init__(
        self,
        storage: FileStorageBackend,
        settings: Settings,
        transformer: ImageTransformer | None = None,
    ):
        """
        Initialize upload service.

        Args:
            storage: File storage backend
            settings: Application settings
            transformer: Image transform stage (built from settings if omitted)
        """
        self.storage = storage
        self.settings = settings
        self.transformer = transformer or ImageTransformer(settings)

    # =========================================================================
    # Upload Processing
    # =========================================================================

    async def process_single_file(
        self,
        file: UploadedFile,
        options: ProcessingOptions | None = None,
    ) -> StoredFileRecord:
        """
        Transform (when applicable) and persist one uploaded file.

        The temp file is removed whether or not persisting succeeds.

        Args:
            file: Spooled upload
            options: Per-request processing options

        Returns:
            StoredFileRecord for the persisted file

        Raises:
            InvalidNameError: If the generated name is rejected by the backend
            StorageUnavailableError: If reading the temp file or writing fails
        """
        options = options or ProcessingOptions()
        try:
            data = await self._read_temp(file)

            result = TransformResult(data=data, content_type=file.content_type, processed=False)
            if self.transformer.should_process(file.content_type):
                result = await asyncio.to_thread(
                    self.transformer.transform, data, file.content_type, options
                )

            filename = generate_filename(
                file.original_name,
                output_format=result.output_format.value if result.output_format else None,
            )
            stored = await self.storage.save(
                filename,
                result.data,
                result.content_type,
                metadata={"original_filename": _ascii(file.original_name)},
            )
        finally:
            await remove_temp_file(file.temp_path)

        logger.info(
            f"Stored {file.original_name} as {stored.storage_key} "
            f"({stored.size} bytes, processed={result.processed})"
        )
        return StoredFileRecord(
            filename=stored.filename,
            original_name=file.original_name,
            size=stored.size,
            mimetype=stored.content_type,
            url=stored.url,
            processed=result.processed,
            storage_key=stored.storage_key,
            warning=result.warning,
        )

    async def process_multiple_files(
        self,
        files: Sequence[UploadedFile],
        options: ProcessingOptions | None = None,
    ) -> list[FileResult]:
        """
        Process files one after another.

        A failing file is reported in its own slot; the batch always returns
        one result per input, in input order.
        """
        results: list[FileResult] = []
        for file in files:
            try:
                record = await self.process_single_file(file, options)
            except AppException as e:
                logger.warning(f"Upload of {file.original_name} failed: {e.message}")
                results.append(
                    FileResult(
                        original_name=file.original_name,
                        status=FileStatus.FAILED,
                        error=e.message,
                        error_code=error_code_for(e).value,
                    )
                )
            except Exception:
                logger.exception(f"Unexpected error storing {file.original_name}")
                results.append(
                    FileResult(
                        original_name=file.original_name,
                        status=FileStatus.FAILED,
                        error=get_error_message(UploadErrorCode.INTERNAL_ERROR),
                        error_code=UploadErrorCode.INTERNAL_ERROR.value,
                    )
                )
            else:
                results.append(
                    FileResult(
                        original_name=file.original_name,
                        status=FileStatus.PERSISTED,
                        record=record,
                    )
                )
        return results

    # =========================================================================
    # Stored File Operations
    # =========================================================================

    async def delete_file(self, filename: str) -> None:
        """
        Delete a stored file.

        Raises:
            InvalidNameError: If the filename is unsafe
            NotFoundError: If the file doesn't exist
        """
        self.storage.validate_filename(filename)
        await self.storage.delete(filename)
        logger.info(f"File deleted: {filename}")

    async def get_file_info(self, filename: str) -> FileInfo:
        """
        Get metadata for a stored file.

        Raises:
            InvalidNameError: If the filename is unsafe
            NotFoundError: If the file doesn't exist
        """
        self.storage.validate_filename(filename)
        return await self.storage.get_info(filename)

    async def list_all_files(self) -> list[FileInfo]:
        """List stored files, newest first."""
        return await self.storage.list_files()

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _read_temp(self, file: UploadedFile) -> bytes:
        try:
            async with aiofiles.open(file.temp_path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.error(f"Cannot read temp file {file.temp_path}: {e}")
            raise StorageUnavailableError("Failed to read uploaded file") from e


def _ascii(value: str) -> str:
    """S3 user metadata must be ASCII."""
    return value.encode("ascii", "replace").decode("ascii")
