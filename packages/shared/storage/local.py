"""Local disk file storage backend."""

import logging
import mimetypes
import stat
from datetime import datetime, timezone
from pathlib import Path

import aiofiles
import aiofiles.os

from packages.shared.exceptions import InvalidNameError, NotFoundError, StorageUnavailableError
from packages.shared.storage.base import FileInfo, FileStorageBackend, StoredObject

logger = logging.getLogger(__name__)


class LocalFileStorage(FileStorageBackend):
    """
    Local disk storage backend.

    Files live directly under the base directory (flat layout) and are
    served from ``public_url_prefix``.
    """

    def __init__(self, base_path: str = "./uploads", public_url_prefix: str = "/uploads"):
        """
        Initialize local file storage.

        Args:
            base_path: Base directory for file storage
            public_url_prefix: URL path under which base_path is mounted
        """
        self.base_path = Path(base_path)
        self.public_url_prefix = "/" + public_url_prefix.strip("/")
        # Create base directory synchronously on init
        self.base_path.mkdir(parents=True, exist_ok=True)

    @property
    def backend_name(self) -> str:
        return "local"

    def _full_path(self, filename: str) -> Path:
        return self.base_path / self.validate_filename(filename)

    async def save(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> StoredObject:
        """
        Write bytes to local disk.

        Args:
            filename: Storage filename
            data: File contents
            content_type: MIME type (reported back, not persisted)
            metadata: Ignored by the local backend

        Returns:
            StoredObject with filename, size and URL
        """
        full_path = self._full_path(filename)

        try:
            await aiofiles.os.makedirs(self.base_path, exist_ok=True)
            async with aiofiles.open(full_path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error(f"Failed to write {filename} to {self.base_path}: {e}")
            raise StorageUnavailableError("Failed to store file") from e

        return StoredObject(
            filename=filename,
            storage_key=filename,
            size=len(data),
            content_type=content_type,
            url=self.get_url(filename),
        )

    async def read(self, filename: str) -> bytes:
        """
        Read a file from local disk.

        Raises:
            NotFoundError: If file doesn't exist
        """
        full_path = self._full_path(filename)
        try:
            async with aiofiles.open(full_path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise NotFoundError()
        except OSError as e:
            raise StorageUnavailableError("Failed to read file") from e

    async def delete(self, filename: str) -> None:
        """
        Delete a file from local disk.

        Raises:
            NotFoundError: If file doesn't exist
        """
        full_path = self._full_path(filename)
        try:
            await aiofiles.os.remove(full_path)
        except FileNotFoundError:
            raise NotFoundError()
        except OSError as e:
            raise StorageUnavailableError("Failed to delete file") from e

    async def get_info(self, filename: str) -> FileInfo:
        """
        Stat a file on local disk.

        Raises:
            NotFoundError: If file doesn't exist
        """
        full_path = self._full_path(filename)
        try:
            st = await aiofiles.os.stat(full_path)
        except FileNotFoundError:
            raise NotFoundError()
        except OSError as e:
            raise StorageUnavailableError("Failed to read file info") from e

        if not stat.S_ISREG(st.st_mode):
            raise NotFoundError()
        return self._build_info(filename, st)

    async def list_files(self) -> list[FileInfo]:
        """List regular files in the base directory, newest first."""
        if not await aiofiles.os.path.isdir(self.base_path):
            return []

        try:
            names = await aiofiles.os.listdir(self.base_path)
        except OSError as e:
            raise StorageUnavailableError("Failed to list files") from e

        files: list[FileInfo] = []
        for name in names:
            try:
                self.validate_filename(name)
            except InvalidNameError:
                # Not addressable through the API
                continue
            try:
                st = await aiofiles.os.stat(self.base_path / name)
            except FileNotFoundError:
                # Deleted between listdir and stat
                continue
            except OSError as e:
                raise StorageUnavailableError("Failed to list files") from e
            if stat.S_ISREG(st.st_mode):
                files.append(self._build_info(name, st))

        files.sort(key=lambda info: info.created, reverse=True)
        return files

    def get_url(self, filename: str) -> str:
        return f"{self.public_url_prefix}/{self.validate_filename(filename)}"

    async def ping(self) -> None:
        if not await aiofiles.os.path.isdir(self.base_path):
            raise StorageUnavailableError(f"Upload directory {self.base_path} is missing")

    def _build_info(self, filename: str, st) -> FileInfo:
        mimetype, _ = mimetypes.guess_type(filename)
        return FileInfo(
            filename=filename,
            storage_key=filename,
            size=st.st_size,
            mimetype=mimetype or "application/octet-stream",
            url=self.get_url(filename),
            created=datetime.fromtimestamp(st.st_ctime, tz=timezone.utc),
            modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )
