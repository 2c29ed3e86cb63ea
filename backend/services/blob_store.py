"""
Blob store client for an S3-compatible bucket.

Uploaded files are staged here only for the duration of a request; the
database row is the permanent record.
"""
import asyncio
import os
import uuid
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from utils.logger import get_logger

logger = get_logger("services.blob_store")


class BlobStoreError(Exception):
    """Blob store operation failed"""
    pass


@dataclass
class BlobStoreConfig:
    bucket: str
    endpoint_url: Optional[str] = None
    region: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    # When set, uploads are addressed by durable public URL instead of a presigned one
    public_base_url: Optional[str] = None
    url_expiry_seconds: int = 3600


class BlobStore:
    """Upload, download and delete opaque blobs by key."""

    def __init__(self, config: BlobStoreConfig, client=None):
        self.config = config
        self._client = client or boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            region_name=config.region,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
        )

    @staticmethod
    def make_key(prefix: str, file_name: str) -> str:
        """Random key that keeps the original extension, e.g. ``uploads/<uuid>.pdf``."""
        ext = os.path.splitext(file_name or "")[1].lower()
        return f"{prefix.strip('/')}/{uuid.uuid4()}{ext}"

    def url_for(self, key: str) -> str:
        if self.config.public_base_url:
            return f"{self.config.public_base_url.rstrip('/')}/{key}"
        return self._client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.config.bucket, "Key": key},
            ExpiresIn=self.config.url_expiry_seconds,
        )

    def _upload(self, key: str, data: bytes, content_type: Optional[str]) -> str:
        extra = {"ContentType": content_type} if content_type else {}
        self._client.put_object(Bucket=self.config.bucket, Key=key, Body=data, **extra)
        return self.url_for(key)

    def _download(self, key: str) -> bytes:
        obj = self._client.get_object(Bucket=self.config.bucket, Key=key)
        return obj["Body"].read()

    def _delete(self, key: str) -> None:
        self._client.delete_object(Bucket=self.config.bucket, Key=key)

    async def upload(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Store ``data`` under ``key`` and return a retrievable URL."""
        try:
            url = await asyncio.to_thread(self._upload, key, data, content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error("Blob upload failed", extra={"key": key, "error": str(e)})
            raise BlobStoreError(f"Failed to upload {key}: {e}") from e
        logger.info("Blob uploaded", extra={"key": key, "size": len(data)})
        return url

    async def download(self, key: str) -> bytes:
        try:
            return await asyncio.to_thread(self._download, key)
        except (BotoCoreError, ClientError) as e:
            logger.error("Blob download failed", extra={"key": key, "error": str(e)})
            raise BlobStoreError(f"Failed to download {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._delete, key)
        except (BotoCoreError, ClientError) as e:
            logger.error("Blob delete failed", extra={"key": key, "error": str(e)})
            raise BlobStoreError(f"Failed to delete {key}: {e}") from e
        logger.info("Blob deleted", extra={"key": key})
