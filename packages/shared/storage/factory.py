"""Factory for creating storage backends based on configuration."""

from functools import lru_cache
from typing import TYPE_CHECKING

from packages.shared.storage.base import FileStorageBackend
from packages.shared.storage.local import LocalFileStorage

if TYPE_CHECKING:
    from apps.api.config import Settings


@lru_cache(maxsize=1)
def get_storage_backend() -> FileStorageBackend:
    """
    Return the process-wide storage backend.

    The backend kind is read once from settings; switching backends
    requires a new process (or ``get_storage_backend.cache_clear()`` in tests).
    """
    # Import settings lazily to avoid circular imports
    from apps.api.config import get_settings

    return get_storage_backend_from_settings(get_settings())


def get_storage_backend_from_settings(settings: "Settings") -> FileStorageBackend:
    """
    Create storage backend directly from a Settings object.

    Useful for dependency injection in tests.

    Args:
        settings: Application settings

    Returns:
        Configured FileStorageBackend instance
    """
    if settings.storage_backend == "s3":
        from packages.shared.storage.s3 import S3FileStorage

        return S3FileStorage(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint_url,
            region=settings.s3_region,
            prefix=settings.s3_prefix,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
            force_path_style=settings.s3_force_path_style,
            public_url=settings.s3_public_url,
        )
    return LocalFileStorage(
        base_path=settings.upload_path,
        public_url_prefix=settings.public_url_prefix,
    )
