"""S3 Storage Adapter - Implementation of ObjectStoragePort using boto3.

Provides S3-compatible storage operations for AWS S3, MinIO, and other S3-compatible services.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import hashlib
import logging
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from domain.documents.ports.object_storage_port import (
    ObjectStoragePort,
    StorageError,
    StoredFile,
)
from .storage_config import StorageConfig

logger = logging.getLogger(__name__)


class S3StorageAdapter(ObjectStoragePort):
    """S3-compatible storage adapter using boto3.

    Features:
    - Content-addressed keys: {prefix}/{year}/{month}/{sha256}.{ext}
    - Public URLs built from STORAGE_PUBLIC_BASE_URL or endpoint/bucket

    Example:
        storage = S3StorageAdapter.from_config(load_storage_config())
        stored = await storage.store_file(f, "sessions/<id>", "id-card.png", "image/png")
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
        public_base_url: Optional[str] = None,
    ):
        """Initialize S3 storage adapter.

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except (BotoCoreError, ValueError) as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url

        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    @classmethod
    def from_config(cls, config: StorageConfig) -> "S3StorageAdapter":
        return cls(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
            public_base_url=config.public_base_url,
        )

    async def store_file(
        self,
        file: BinaryIO,
        prefix: str,
        filename: str,
        mime_type: str,
    ) -> StoredFile:
        """Store a file in S3.

        Reads the stream in 8KB chunks while calculating SHA256, then uploads
        the buffered content under a content-addressed key.

        Raises:
            StorageError: If upload fails
            ValueError: If file is empty
        """
        sha256_hash = hashlib.sha256()
        buffer = BytesIO()

        while True:
            chunk = file.read(8192)
            if not chunk:
                break
            sha256_hash.update(chunk)
            buffer.write(chunk)

        size_bytes = buffer.tell()
        if size_bytes == 0:
            raise ValueError("Cannot store empty file")

        sha256_hex = sha256_hash.hexdigest()
        storage_key = self._generate_storage_key(prefix, sha256_hex, filename)

        try:
            buffer.seek(0)
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=storage_key,
                Body=buffer,
                ContentType=mime_type,
                Metadata={
                    "sha256": sha256_hex,
                    "original_filename": filename.encode("ascii", "ignore").decode(),
                },
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"S3 upload failed: storage_key={storage_key}, error={error_code}"
            )
            raise StorageError(f"Failed to upload file: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 upload failed: storage_key={storage_key}, error={e}")
            raise StorageError(f"Failed to upload file: {e}")

        logger.info(
            f"Uploaded file: storage_key={storage_key}, "
            f"size={size_bytes}, mime_type={mime_type}"
        )

        return StoredFile(
            storage_key=storage_key,
            url=self.public_url(storage_key),
            sha256=sha256_hex,
            size_bytes=size_bytes,
            mime_type=mime_type,
        )

    async def delete_file(self, storage_key: str) -> bool:
        """Delete a file from S3.

        Returns:
            bool: True if deleted, False if didn't exist

        Raises:
            StorageError: If deletion fails
        """
        if not await self.file_exists(storage_key):
            logger.info(f"File not found for deletion: storage_key={storage_key}")
            return False

        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=storage_key)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 deletion failed: storage_key={storage_key}, error={error_code}")
            raise StorageError(f"Failed to delete file: {error_code}")

        logger.info(f"Deleted file: storage_key={storage_key}")
        return True

    async def file_exists(self, storage_key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=storage_key)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Failed to check file: {error_code}")

    def public_url(self, storage_key: str) -> str:
        """Build the client-facing URL for a storage key."""
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{storage_key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{storage_key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{storage_key}"

    def _generate_storage_key(self, prefix: str, sha256: str, filename: str) -> str:
        """Generate storage key in format: {prefix}/{year}/{month}/{sha256}.{ext}

        Example:
            >>> adapter._generate_storage_key('sessions/42', 'abc123', 'scan.PDF')
            'sessions/42/2024/10/abc123.pdf'
        """
        now = datetime.now(timezone.utc)
        ext = Path(filename).suffix.lower()
        return f"{prefix.strip('/')}/{now.year}/{now.month:02d}/{sha256}{ext}"
