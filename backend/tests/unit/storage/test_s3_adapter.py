"""Unit tests for S3 Storage Adapter using moto

This module tests the S3StorageAdapter implementation using moto to mock AWS S3.
Tests cover: store, delete, exists, content-addressed keys and public URLs.
"""

import hashlib
import io
from datetime import datetime, timezone

import boto3
import pytest
from moto import mock_aws

from domain.documents.ports.object_storage_port import StorageError, StoredFile
from infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from infrastructure.storage.storage_config import StorageConfig, validate_storage_config

# Test constants
TEST_BUCKET = "test-notaryflow-bucket"
TEST_REGION = "us-east-1"
TEST_ACCESS_KEY = "test-access-key"
TEST_SECRET_KEY = "test-secret-key"
TEST_PREFIX = "notarizations/7d3c1c52-44c4-4c1e-9a50-3f3c2b6c1a01"


@pytest.fixture
def storage_adapter():
    """Create S3StorageAdapter instance with mock S3"""
    with mock_aws():
        s3_client = boto3.client(
            "s3",
            region_name=TEST_REGION,
            aws_access_key_id=TEST_ACCESS_KEY,
            aws_secret_access_key=TEST_SECRET_KEY,
        )
        s3_client.create_bucket(Bucket=TEST_BUCKET)

        adapter = S3StorageAdapter(
            endpoint_url=None,  # AWS S3 (moto mocks this)
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name=TEST_BUCKET,
            region=TEST_REGION,
        )

        yield adapter


class TestStoreFile:
    """Test file storage operations"""

    @pytest.mark.asyncio
    async def test_store_file_success(self, storage_adapter):
        file_content = b"%PDF-1.4 contract"

        stored = await storage_adapter.store_file(
            file=io.BytesIO(file_content),
            prefix=TEST_PREFIX,
            filename="Contract.PDF",
            mime_type="application/pdf",
        )

        now = datetime.now(timezone.utc)
        sha256 = hashlib.sha256(file_content).hexdigest()
        assert isinstance(stored, StoredFile)
        assert stored.storage_key == f"{TEST_PREFIX}/{now.year}/{now.month:02d}/{sha256}.pdf"
        assert stored.sha256 == sha256
        assert stored.size_bytes == len(file_content)
        assert stored.mime_type == "application/pdf"
        assert stored.url == f"https://{TEST_BUCKET}.s3.{TEST_REGION}.amazonaws.com/{stored.storage_key}"

    @pytest.mark.asyncio
    async def test_object_is_written(self, storage_adapter):
        file_content = b"X" * (20 * 1024)  # larger than one 8KB chunk

        stored = await storage_adapter.store_file(
            file=io.BytesIO(file_content),
            prefix=TEST_PREFIX,
            filename="scan.png",
            mime_type="image/png",
        )

        obj = storage_adapter.s3_client.get_object(Bucket=TEST_BUCKET, Key=stored.storage_key)
        assert obj["Body"].read() == file_content
        assert obj["ContentType"] == "image/png"

    @pytest.mark.asyncio
    async def test_same_content_same_key(self, storage_adapter):
        first = await storage_adapter.store_file(io.BytesIO(b"abc"), TEST_PREFIX, "a.pdf", "application/pdf")
        second = await storage_adapter.store_file(io.BytesIO(b"abc"), TEST_PREFIX, "b.pdf", "application/pdf")
        assert first.storage_key == second.storage_key

    @pytest.mark.asyncio
    async def test_empty_file_raises(self, storage_adapter):
        with pytest.raises(ValueError, match="empty"):
            await storage_adapter.store_file(io.BytesIO(b""), TEST_PREFIX, "a.pdf", "application/pdf")

    @pytest.mark.asyncio
    async def test_missing_bucket_raises_storage_error(self):
        with mock_aws():
            adapter = S3StorageAdapter(
                endpoint_url=None,
                access_key=TEST_ACCESS_KEY,
                secret_key=TEST_SECRET_KEY,
                bucket_name="does-not-exist",
                region=TEST_REGION,
            )
            with pytest.raises(StorageError, match="Failed to upload"):
                await adapter.store_file(io.BytesIO(b"abc"), TEST_PREFIX, "a.pdf", "application/pdf")


class TestDeleteAndExists:

    @pytest.mark.asyncio
    async def test_exists_and_delete(self, storage_adapter):
        stored = await storage_adapter.store_file(io.BytesIO(b"abc"), TEST_PREFIX, "a.pdf", "application/pdf")

        assert await storage_adapter.file_exists(stored.storage_key) is True
        assert await storage_adapter.delete_file(stored.storage_key) is True
        assert await storage_adapter.file_exists(stored.storage_key) is False

    @pytest.mark.asyncio
    async def test_delete_missing_returns_false(self, storage_adapter):
        assert await storage_adapter.delete_file(f"{TEST_PREFIX}/missing.pdf") is False


class TestPublicUrl:

    def test_public_base_url_wins(self):
        with mock_aws():
            adapter = S3StorageAdapter(
                endpoint_url="http://localhost:9000",
                access_key=TEST_ACCESS_KEY,
                secret_key=TEST_SECRET_KEY,
                bucket_name=TEST_BUCKET,
                public_base_url="https://files.notaryflow.test/",
            )
            assert adapter.public_url("a/b.pdf") == "https://files.notaryflow.test/a/b.pdf"

    def test_endpoint_url(self):
        with mock_aws():
            adapter = S3StorageAdapter(
                endpoint_url="http://localhost:9000",
                access_key=TEST_ACCESS_KEY,
                secret_key=TEST_SECRET_KEY,
                bucket_name=TEST_BUCKET,
            )
            assert adapter.public_url("a/b.pdf") == f"http://localhost:9000/{TEST_BUCKET}/a/b.pdf"


class TestStorageConfig:

    def test_valid(self):
        validate_storage_config(StorageConfig(None, "key", "secret", "bucket"))

    def test_missing_credentials(self):
        with pytest.raises(ValueError, match="credentials"):
            validate_storage_config(StorageConfig(None, "", "secret", "bucket"))

    def test_bad_endpoint(self):
        with pytest.raises(ValueError, match="endpoint_url"):
            validate_storage_config(StorageConfig("localhost:9000", "key", "secret", "bucket"))
