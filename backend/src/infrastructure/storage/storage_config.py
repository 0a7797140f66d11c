"""Storage configuration for S3-compatible object storage.

Supports both MinIO (development) and AWS S3 (production) with the same interface.
"""

from dataclasses import dataclass
from typing import Optional

from config import Settings, get_settings


@dataclass
class StorageConfig:
    """Configuration for S3-compatible object storage.

    Attributes:
        endpoint_url: S3 endpoint URL (e.g., 'http://localhost:9000' for MinIO,
                      None for AWS S3 which uses default regional endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: S3 bucket name for storing notarization files
        region: AWS region (default: 'us-east-1')
        public_base_url: Base URL for links handed to clients; derived from
                         the endpoint and bucket when unset
    """
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "us-east-1"
    public_base_url: Optional[str] = None


def load_storage_config(settings: Optional[Settings] = None) -> StorageConfig:
    """Build storage configuration from application settings.

    Raises:
        ValueError: If credentials or bucket are missing
    """
    settings = settings or get_settings()

    config = StorageConfig(
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
        public_base_url=settings.STORAGE_PUBLIC_BASE_URL,
    )
    validate_storage_config(config)
    return config


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Raises:
        ValueError: If configuration is invalid
    """
    if not config.access_key or not config.secret_key:
        raise ValueError(
            "Missing required storage credentials. "
            "Set S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY."
        )

    if not config.bucket_name:
        raise ValueError("Storage bucket_name is required")

    if config.endpoint_url and not config.endpoint_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid endpoint_url: {config.endpoint_url}. "
            "Must start with http:// or https://"
        )
