"""Cloudflare R2 file storage service for editor uploads."""

from __future__ import annotations

import logging

from aiobotocore.session import get_session
from botocore.exceptions import BotoCoreError, ClientError

from backend.config import settings
from engine.kernel.errors import WriteFailed

logger = logging.getLogger(__name__)


class R2Service:
    """Cloudflare R2 storage service using S3-compatible API."""

    def __init__(self) -> None:
        """Initialize R2 service with credentials from settings."""
        self.session = get_session()
        self.endpoint = settings.R2_ENDPOINT
        self.access_key = settings.R2_ACCESS_KEY
        self.secret_key = settings.R2_SECRET_KEY
        self.bucket = settings.R2_UPLOADS_BUCKET
        self.public_url = settings.R2_PUBLIC_URL.rstrip("/")

    def _client(self):
        return self.session.create_client(
            "s3",
            endpoint_url=self.endpoint,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
        )

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """
        Upload bytes to the uploads bucket. One attempt; a failure is final.

        Args:
            path: object key
            data: file contents
            content_type: MIME type stored with the object

        Returns:
            R2 key (path) where the file was uploaded

        Raises:
            WriteFailed: the upload did not succeed
        """
        try:
            async with self._client() as s3:
                await s3.put_object(
                    Bucket=self.bucket,
                    Key=path,
                    Body=data,
                    ContentType=content_type,
                )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            logger.warning("R2 upload failed for %s: %s", path, e)
            raise WriteFailed(f"Upload failed: {error_code or e}") from e
        except (BotoCoreError, OSError) as e:
            logger.warning("R2 upload failed for %s: %s", path, e)
            raise WriteFailed(f"Upload failed: {e}") from e
        return path

    def get_url(self, path: str) -> str:
        """Durable public URL for an uploaded object."""
        return f"{self.public_url}/{path}"


# Singleton instance
r2_service = R2Service()
