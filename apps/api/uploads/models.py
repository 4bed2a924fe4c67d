"""Data carried through the upload pipeline."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


@dataclass
class UploadedFile:
    """One multipart part spooled to a temporary file."""

    original_name: str
    content_type: str
    size: int
    temp_path: Path


@dataclass
class StoredFileRecord:
    """Result of persisting one upload."""

    filename: str
    original_name: str
    size: int
    mimetype: str
    url: str
    processed: bool
    storage_key: str
    warning: str | None = None


class FileStatus(str, Enum):
    """Terminal states of a file in a batch."""

    PERSISTED = "persisted"
    FAILED = "failed"


@dataclass
class FileResult:
    """One slot of a batch upload; exactly one of record/error is set."""

    original_name: str
    status: FileStatus
    record: StoredFileRecord | None = None
    error: str | None = None
    error_code: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == FileStatus.PERSISTED
