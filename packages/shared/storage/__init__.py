"""
File storage backends for the upload pipeline.

Provides abstract interface and implementations for:
- Local disk storage
- S3-compatible object storage (AWS S3, MinIO, Spaces)
"""

from packages.shared.storage.base import FileInfo, FileStorageBackend, StoredObject
from packages.shared.storage.factory import (
    get_storage_backend,
    get_storage_backend_from_settings,
)
from packages.shared.storage.local import LocalFileStorage
from packages.shared.storage.naming import extension_for_format, generate_filename
from packages.shared.storage.s3 import S3FileStorage

__all__ = [
    "FileInfo",
    "FileStorageBackend",
    "LocalFileStorage",
    "S3FileStorage",
    "StoredObject",
    "extension_for_format",
    "generate_filename",
    "get_storage_backend",
    "get_storage_backend_from_settings",
]
