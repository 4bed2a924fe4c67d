"""Abstract base class for file storage backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from packages.shared.exceptions import InvalidNameError


@dataclass
class StoredObject:
    """Information about a freshly persisted file."""

    filename: str
    storage_key: str
    size: int
    content_type: str
    url: str


@dataclass
class FileInfo:
    """Metadata about a stored file."""

    filename: str
    storage_key: str
    size: int
    mimetype: str
    url: str
    created: datetime | None = None
    modified: datetime | None = None


class FileStorageBackend(ABC):
    """
    Abstract base for file storage backends.

    Provides a common interface for storing and retrieving files,
    supporting both local disk and cloud storage (S3/MinIO).

    All filename-addressed operations validate the name before touching
    the backend.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the name of this backend (e.g., 'local', 's3')."""
        pass

    @abstractmethod
    async def save(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> StoredObject:
        """
        Persist bytes under the given filename.

        Saving twice under the same filename overwrites.

        Args:
            filename: Pre-generated storage filename
            data: File contents
            content_type: MIME type of the file
            metadata: Optional extra metadata (object storage only)

        Returns:
            StoredObject describing the persisted file

        Raises:
            InvalidNameError: If the filename is unsafe
            StorageUnavailableError: If the backend write fails
        """
        pass

    @abstractmethod
    async def read(self, filename: str) -> bytes:
        """
        Read a stored file.

        Raises:
            InvalidNameError: If the filename is unsafe
            NotFoundError: If the file doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, filename: str) -> None:
        """
        Delete a stored file.

        Raises:
            InvalidNameError: If the filename is unsafe
            NotFoundError: If the file doesn't exist
        """
        pass

    @abstractmethod
    async def list_files(self) -> list[FileInfo]:
        """List stored files, newest first."""
        pass

    @abstractmethod
    async def get_info(self, filename: str) -> FileInfo:
        """
        Get metadata for a stored file.

        Raises:
            InvalidNameError: If the filename is unsafe
            NotFoundError: If the file doesn't exist
        """
        pass

    @abstractmethod
    def get_url(self, filename: str) -> str:
        """Build the URL under which a stored file is reachable."""
        pass

    @abstractmethod
    async def ping(self) -> None:
        """
        Check that the backend is reachable.

        Raises:
            StorageUnavailableError: If it is not
        """
        pass

    @staticmethod
    def validate_filename(filename: str) -> str:
        """
        Reject names that could escape the storage root.

        Args:
            filename: Name supplied by a caller

        Returns:
            The unchanged filename

        Raises:
            InvalidNameError: On empty names, parent segments, separators or NUL
        """
        if not filename or filename in (".", ".."):
            raise InvalidNameError()
        if ".." in filename or "/" in filename or "\\" in filename or "\x00" in filename:
            raise InvalidNameError()
        return filename
