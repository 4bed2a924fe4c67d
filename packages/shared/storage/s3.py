"""S3-compatible object storage backend (AWS S3, MinIO, DigitalOcean Spaces)."""

import logging
from datetime import datetime

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from packages.shared.exceptions import NotFoundError, StorageUnavailableError
from packages.shared.storage.base import FileInfo, FileStorageBackend, StoredObject

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


def _is_missing(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _MISSING_CODES


class S3FileStorage(FileStorageBackend):
    """
    S3/MinIO storage backend.

    Supports both AWS S3 and S3-compatible services (via endpoint_url).
    Objects are stored flat under a key prefix: <prefix>/<filename>
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        region: str = "us-east-1",
        prefix: str = "uploads",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        force_path_style: bool = False,
        public_url: str | None = None,
    ):
        """
        Initialize S3 file storage.

        Args:
            bucket: S3 bucket name
            endpoint_url: Custom endpoint URL for MinIO etc. (None for AWS S3)
            region: AWS region
            prefix: Key prefix for all uploads
            aws_access_key_id: AWS access key (optional, uses env/IAM if not set)
            aws_secret_access_key: AWS secret key (optional, uses env/IAM if not set)
            force_path_style: Use path-style addressing (required by most MinIO setups)
            public_url: Base URL overriding the computed object URL (e.g. a CDN)
        """
        if not bucket:
            raise ValueError("s3_bucket must be set when using S3 storage")

        self.bucket = bucket
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self.region = region
        self.prefix = prefix.strip("/")
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.force_path_style = force_path_style
        self.public_url = public_url.rstrip("/") if public_url else None
        self._session = aioboto3.Session()

    @property
    def backend_name(self) -> str:
        return "s3"

    def _get_client_kwargs(self) -> dict:
        """Build kwargs for S3 client."""
        kwargs = {
            "region_name": self.region,
        }
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        if self.aws_access_key_id and self.aws_secret_access_key:
            kwargs["aws_access_key_id"] = self.aws_access_key_id
            kwargs["aws_secret_access_key"] = self.aws_secret_access_key
        if self.force_path_style:
            kwargs["config"] = Config(s3={"addressing_style": "path"})
        return kwargs

    def _client(self):
        return self._session.client("s3", **self._get_client_kwargs())

    def object_key(self, filename: str) -> str:
        """Map a validated filename to its object key."""
        filename = self.validate_filename(filename)
        if self.prefix:
            return f"{self.prefix}/{filename}"
        return filename

    def _filename_from_key(self, key: str) -> str:
        if self.prefix and key.startswith(f"{self.prefix}/"):
            return key[len(self.prefix) + 1:]
        return key

    async def save(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> StoredObject:
        """
        Upload bytes to S3.

        Args:
            filename: Storage filename
            data: File contents
            content_type: MIME type for Content-Type header
            metadata: Object metadata (e.g. original filename)

        Returns:
            StoredObject with the object key and URL
        """
        key = self.object_key(filename)

        try:
            async with self._client() as s3:
                await s3.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                    Metadata=metadata or {},
                )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error uploading {key} to bucket {self.bucket}: {e}")
            raise StorageUnavailableError("Failed to store file") from e

        logger.info(f"File uploaded to S3: {key}")
        return StoredObject(
            filename=filename,
            storage_key=key,
            size=len(data),
            content_type=content_type,
            url=self.get_url(filename),
        )

    async def read(self, filename: str) -> bytes:
        """
        Download an object from S3.

        Raises:
            NotFoundError: If the object doesn't exist
        """
        key = self.object_key(filename)
        try:
            async with self._client() as s3:
                response = await s3.get_object(Bucket=self.bucket, Key=key)
                return await response["Body"].read()
        except ClientError as e:
            if _is_missing(e):
                raise NotFoundError()
            raise StorageUnavailableError("Failed to read file") from e
        except BotoCoreError as e:
            raise StorageUnavailableError("Failed to read file") from e

    async def delete(self, filename: str) -> None:
        """
        Delete an object from S3.

        S3 reports success for deletes of missing keys, so existence is
        checked with HEAD first.

        Raises:
            NotFoundError: If the object doesn't exist
        """
        key = self.object_key(filename)
        try:
            async with self._client() as s3:
                await s3.head_object(Bucket=self.bucket, Key=key)
                await s3.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _is_missing(e):
                raise NotFoundError()
            raise StorageUnavailableError("Failed to delete file") from e
        except BotoCoreError as e:
            raise StorageUnavailableError("Failed to delete file") from e

        logger.info(f"File deleted from S3: {key}")

    async def get_info(self, filename: str) -> FileInfo:
        """
        HEAD an object in S3.

        Raises:
            NotFoundError: If the object doesn't exist
        """
        key = self.object_key(filename)
        try:
            async with self._client() as s3:
                head = await s3.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _is_missing(e):
                raise NotFoundError()
            raise StorageUnavailableError("Failed to read file info") from e
        except BotoCoreError as e:
            raise StorageUnavailableError("Failed to read file info") from e

        modified: datetime | None = head.get("LastModified")
        return FileInfo(
            filename=filename,
            storage_key=key,
            size=head.get("ContentLength", 0),
            mimetype=head.get("ContentType") or "application/octet-stream",
            url=self.get_url(filename),
            created=modified,
            modified=modified,
        )

    async def list_files(self) -> list[FileInfo]:
        """List objects under the prefix, newest first."""
        list_prefix = f"{self.prefix}/" if self.prefix else ""
        files: list[FileInfo] = []
        try:
            async with self._client() as s3:
                paginator = s3.get_paginator("list_objects_v2")
                async for page in paginator.paginate(Bucket=self.bucket, Prefix=list_prefix):
                    for obj in page.get("Contents", []):
                        filename = self._filename_from_key(obj["Key"])
                        # Skip "directory" placeholders and nested keys
                        if not filename or "/" in filename:
                            continue
                        files.append(
                            FileInfo(
                                filename=filename,
                                storage_key=obj["Key"],
                                size=obj.get("Size", 0),
                                mimetype="application/octet-stream",
                                url=self.get_url(filename),
                                created=obj.get("LastModified"),
                                modified=obj.get("LastModified"),
                            )
                        )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing bucket {self.bucket}: {e}")
            raise StorageUnavailableError("Failed to list files") from e

        files.sort(key=lambda info: info.created.timestamp() if info.created else 0.0, reverse=True)
        return files

    def get_url(self, filename: str) -> str:
        """
        Build the public URL of an object.

        Priority: configured public URL, custom endpoint (path style),
        AWS virtual-hosted style.
        """
        key = self.object_key(filename)
        if self.public_url:
            return f"{self.public_url}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def ping(self) -> None:
        try:
            async with self._client() as s3:
                await s3.head_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailableError(f"Bucket {self.bucket} is not reachable") from e
