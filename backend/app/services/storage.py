import asyncio
import io
import logging
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from app.config import settings

logger = logging.getLogger(__name__)


class BlobStorage(Protocol):
    async def store(self, path: str, data: bytes, content_type: str) -> str: ...


def get_s3_client():
    return boto3.client(
        "s3",
        endpoint_url=settings.s3_endpoint_url,
        aws_access_key_id=settings.s3_access_key,
        aws_secret_access_key=settings.s3_secret_key,
        config=Config(signature_version="s3v4"),
    )


class S3BlobStorage:
    """S3-compatible storage (MinIO in dev). Objects are addressed by caller-chosen keys."""

    def __init__(self, client=None, bucket: str | None = None, public_base_url: str | None = None) -> None:
        self._client = client
        self.bucket = bucket or settings.s3_bucket
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")
        self._bucket_checked = False

    @property
    def client(self):
        if self._client is None:
            self._client = get_s3_client()
        return self._client

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key.lstrip('/')}"

    async def ensure_bucket_exists(self) -> None:
        if self._bucket_checked:
            return

        def _create_if_missing() -> None:
            try:
                self.client.head_bucket(Bucket=self.bucket)
            except ClientError:
                logger.info("Creating bucket %s", self.bucket)
                self.client.create_bucket(Bucket=self.bucket)

        await asyncio.to_thread(_create_if_missing)
        self._bucket_checked = True

    async def store(self, path: str, data: bytes, content_type: str) -> str:
        """Upload bytes under path (overwriting) and return the public URL."""
        key = path.lstrip("/")

        def _upload() -> None:
            self.client.upload_fileobj(
                io.BytesIO(data),
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )

        await self.ensure_bucket_exists()
        await asyncio.to_thread(_upload)
        return self.public_url(key)
