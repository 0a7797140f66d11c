"""Object Storage Port - Domain interface for S3-compatible storage.

This port defines the contract for storing files in object storage.
Adapters must implement this interface to provide S3, MinIO, or other storage backends.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO


class StorageError(Exception):
    """Raised when the storage backend cannot complete an operation."""
    pass


@dataclass
class StoredFile:
    """Metadata for a file stored in object storage.

    Attributes:
        storage_key: Unique key in object storage (format: {prefix}/{year}/{month}/{sha256}.{ext})
        url: Publicly reachable URL of the stored object
        sha256: SHA256 hash of file content (hex format)
        size_bytes: File size in bytes
        mime_type: MIME type of the file (e.g., 'application/pdf')
    """
    storage_key: str
    url: str
    sha256: str
    size_bytes: int
    mime_type: str


class ObjectStoragePort(ABC):
    """Port interface for S3-compatible object storage operations.

    Example Usage:
        storage = S3StorageAdapter(...)

        with open('contract.pdf', 'rb') as f:
            stored = await storage.store_file(
                file=f,
                prefix='notarizations/<user_id>',
                filename='contract.pdf',
                mime_type='application/pdf'
            )
        stored.url  # link saved on the document
    """

    @abstractmethod
    async def store_file(
        self,
        file: BinaryIO,
        prefix: str,
        filename: str,
        mime_type: str,
    ) -> StoredFile:
        """Store a file in object storage.

        Identical content under the same prefix maps to the same key, so
        re-uploading a file is idempotent.

        Raises:
            StorageError: If upload fails or storage is unavailable
            ValueError: If file is empty
        """
        pass

    @abstractmethod
    async def delete_file(self, storage_key: str) -> bool:
        """Delete a file from object storage.

        Returns:
            bool: True if file was deleted, False if it didn't exist

        Raises:
            StorageError: If deletion fails
        """
        pass

    @abstractmethod
    async def file_exists(self, storage_key: str) -> bool:
        """Check if a file exists in object storage (HEAD request only)."""
        pass
