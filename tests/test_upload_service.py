"""
Tests for the upload orchestrator.

Covers:
- Single file persistence with and without image processing
- Temp file cleanup on success and failure
- Batch uploads with per-file failures
- Delete / info / list delegation
"""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from apps.api.config import Settings
from apps.api.uploads.models import FileStatus, UploadedFile
from apps.api.uploads.options import OutputFormat, ProcessingOptions
from apps.api.uploads.service import UploadService
from packages.shared.exceptions import InvalidNameError, NotFoundError, StorageUnavailableError
from packages.shared.storage import LocalFileStorage
from tests.conftest import make_image_bytes

MakeUpload = Callable[..., UploadedFile]


@pytest.fixture
def service(storage: LocalFileStorage, settings: Settings) -> UploadService:
    return UploadService(storage, settings)


@pytest.fixture
def processing_service(
    storage: LocalFileStorage, processing_settings: Settings
) -> UploadService:
    return UploadService(storage, processing_settings)


# =============================================================================
# Single File
# =============================================================================


class TestProcessSingleFile:
    """processSingleFile: transform (optional) and persist."""

    @pytest.mark.asyncio
    async def test_stores_original_bytes_when_processing_disabled(
        self, service: UploadService, make_upload: MakeUpload, upload_dir: Path
    ):
        data = make_image_bytes(10, 10)
        upload = make_upload(data, "photo.png")

        record = await service.process_single_file(upload)

        assert record.processed is False
        assert record.original_name == "photo.png"
        assert record.filename.endswith("-photo.png")
        assert record.mimetype == "image/png"
        assert record.size == len(data)
        assert record.url == f"/uploads/{record.filename}"
        assert record.warning is None
        assert (upload_dir / record.filename).read_bytes() == data

    @pytest.mark.asyncio
    async def test_temp_file_removed_on_success(
        self, service: UploadService, make_upload: MakeUpload
    ):
        upload = make_upload(b"hello", "notes.png")

        await service.process_single_file(upload)

        assert not upload.temp_path.exists()

    @pytest.mark.asyncio
    async def test_temp_file_removed_on_storage_failure(
        self, service: UploadService, make_upload: MakeUpload
    ):
        upload = make_upload(b"hello", "notes.png")
        service.storage.save = AsyncMock(side_effect=StorageUnavailableError("Failed to store file"))

        with pytest.raises(StorageUnavailableError):
            await service.process_single_file(upload)

        assert not upload.temp_path.exists()

    @pytest.mark.asyncio
    async def test_missing_temp_file_is_storage_unavailable(
        self, service: UploadService, make_upload: MakeUpload
    ):
        upload = make_upload(b"hello")
        upload.temp_path.unlink()

        with pytest.raises(StorageUnavailableError):
            await service.process_single_file(upload)

    @pytest.mark.asyncio
    async def test_non_image_never_transformed(
        self, processing_service: UploadService, make_upload: MakeUpload
    ):
        upload = make_upload(b"%PDF-1.4", "doc.pdf", "application/pdf")

        with patch.object(processing_service.transformer, "transform") as mock_transform:
            record = await processing_service.process_single_file(upload)

        mock_transform.assert_not_called()
        assert record.processed is False
        assert record.filename.endswith("-doc.pdf")

    @pytest.mark.asyncio
    async def test_oversized_image_resized(
        self, processing_service: UploadService, make_upload: MakeUpload
    ):
        data = make_image_bytes(400, 200)
        upload = make_upload(data, "wide.png")

        record = await processing_service.process_single_file(upload)

        assert record.processed is True
        stored = await processing_service.storage.read(record.filename)
        assert stored != data

    @pytest.mark.asyncio
    async def test_conversion_changes_extension_and_mimetype(
        self, processing_service: UploadService, make_upload: MakeUpload
    ):
        upload = make_upload(make_image_bytes(20, 20), "photo.png")

        record = await processing_service.process_single_file(
            upload, ProcessingOptions(output_format=OutputFormat.WEBP)
        )

        assert record.processed is True
        assert record.filename.endswith("-photo.webp")
        assert record.mimetype == "image/webp"

    @pytest.mark.asyncio
    async def test_corrupt_image_stored_with_warning(
        self, processing_service: UploadService, make_upload: MakeUpload
    ):
        data = b"not really a png"
        upload = make_upload(data, "broken.png")

        record = await processing_service.process_single_file(
            upload, ProcessingOptions(output_format=OutputFormat.JPG)
        )

        assert record.processed is False
        assert record.warning == "Image processing failed; original file stored"
        assert record.filename.endswith("-broken.png")
        assert await processing_service.storage.read(record.filename) == data

    @pytest.mark.asyncio
    async def test_original_name_passed_as_ascii_metadata(
        self, service: UploadService, make_upload: MakeUpload
    ):
        upload = make_upload(b"x", "café.png")
        service.storage.save = AsyncMock(wraps=service.storage.save)

        await service.process_single_file(upload)

        metadata = service.storage.save.await_args.kwargs["metadata"]
        assert metadata == {"original_filename": "caf?.png"}


# =============================================================================
# Multiple Files
# =============================================================================


class TestProcessMultipleFiles:
    """processMultipleFiles: independent slots in input order."""

    @pytest.mark.asyncio
    async def test_all_succeed(self, service: UploadService, make_upload: MakeUpload):
        uploads = [make_upload(b"1", "a.png"), make_upload(b"2", "b.png")]

        results = await service.process_multiple_files(uploads)

        assert [r.status for r in results] == [FileStatus.PERSISTED, FileStatus.PERSISTED]
        assert [r.original_name for r in results] == ["a.png", "b.png"]
        assert all(r.ok for r in results)
        assert len({r.record.filename for r in results}) == 2

    @pytest.mark.asyncio
    async def test_partial_failure(
        self, service: UploadService, make_upload: MakeUpload, upload_dir: Path
    ):
        uploads = [
            make_upload(b"1", "a.png"),
            make_upload(b"2", "b.png"),
            make_upload(b"3", "c.png"),
        ]
        real_save = service.storage.save
        calls = {"n": 0}

        async def flaky_save(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 2:
                raise StorageUnavailableError("Failed to store file")
            return await real_save(*args, **kwargs)

        service.storage.save = flaky_save

        results = await service.process_multiple_files(uploads)

        assert [r.status for r in results] == [
            FileStatus.PERSISTED,
            FileStatus.FAILED,
            FileStatus.PERSISTED,
        ]
        failed = results[1]
        assert failed.original_name == "b.png"
        assert failed.error == "Failed to store file"
        assert failed.error_code == "storage_unavailable"
        assert failed.record is None
        assert len(list(upload_dir.iterdir())) == 2
        assert not any(u.temp_path.exists() for u in uploads)

    @pytest.mark.asyncio
    async def test_unexpected_error_captured(
        self, service: UploadService, make_upload: MakeUpload
    ):
        uploads = [make_upload(b"1", "a.png")]
        service.storage.save = AsyncMock(side_effect=RuntimeError("boom"))

        results = await service.process_multiple_files(uploads)

        assert results[0].status == FileStatus.FAILED
        assert results[0].error_code == "internal_error"
        assert results[0].error == "File upload failed"

    @pytest.mark.asyncio
    async def test_empty_batch(self, service: UploadService):
        assert await service.process_multiple_files([]) == []


# =============================================================================
# Stored File Operations
# =============================================================================


class TestStoredFileOperations:
    """deleteFile / getFileInfo / listAllFiles."""

    @pytest.mark.asyncio
    async def test_delete_then_info_not_found(
        self, service: UploadService, make_upload: MakeUpload
    ):
        record = await service.process_single_file(make_upload(b"x", "a.png"))

        await service.delete_file(record.filename)

        with pytest.raises(NotFoundError):
            await service.get_file_info(record.filename)

    @pytest.mark.asyncio
    async def test_delete_twice(self, service: UploadService, make_upload: MakeUpload):
        record = await service.process_single_file(make_upload(b"x", "a.png"))
        await service.delete_file(record.filename)

        with pytest.raises(NotFoundError):
            await service.delete_file(record.filename)

    @pytest.mark.asyncio
    async def test_invalid_name_rejected_before_storage(self, service: UploadService):
        service.storage.delete = AsyncMock()
        service.storage.get_info = AsyncMock()

        with pytest.raises(InvalidNameError):
            await service.delete_file("../../etc/passwd")
        with pytest.raises(InvalidNameError):
            await service.get_file_info("..")

        service.storage.delete.assert_not_awaited()
        service.storage.get_info.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_info_and_list(self, service: UploadService, make_upload: MakeUpload):
        first = await service.process_single_file(make_upload(b"12", "a.png"))
        second = await service.process_single_file(make_upload(b"345", "b.png"))

        info = await service.get_file_info(second.filename)
        files = await service.list_all_files()

        assert info.size == 3
        assert info.mimetype == "image/png"
        assert {f.filename for f in files} == {first.filename, second.filename}
