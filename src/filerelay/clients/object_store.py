"""MinIO object store uploader.

Stores archives in an S3-compatible bucket using the MinIO SDK. The SDK is
synchronous, so every call runs in a worker thread via asyncio.to_thread.

Usage:
    uploader = MinioUploader.from_settings()
    object_id = await uploader.upload("result.zip", archive_bytes)
    # -> "my-bucket/result.zip@9b2cf535f27731c974343645a3985328"
"""

import asyncio
import logging
from io import BytesIO

from minio import Minio
from minio.error import S3Error

from filerelay.config import settings
from filerelay.errors import UploadError

logger = logging.getLogger(__name__)


class MinioUploader:
    """Uploads byte payloads to one MinIO bucket.

    Args:
        endpoint: MinIO host:port
        access_key: Access key
        secret_key: Secret key
        bucket: Target bucket
        secure: Use HTTPS (default: False)
        create_bucket: Create the bucket on first upload if missing
        content_type: MIME type stored with every object
        client: Pre-built Minio client (skips lazy construction)
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = False,
        create_bucket: bool = True,
        content_type: str = "application/zip",
        client: Minio | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.access_key = access_key
        self.secret_key = secret_key
        self.bucket = bucket
        self.secure = secure
        self.create_bucket = create_bucket
        self.content_type = content_type
        self._client = client
        self._bucket_checked = False

    @classmethod
    def from_settings(cls) -> "MinioUploader":
        """Build an uploader from the global settings."""
        return cls(
            endpoint=settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            bucket=settings.minio_bucket,
            secure=settings.minio_secure,
            create_bucket=settings.minio_create_bucket,
        )

    @property
    def client(self) -> Minio:
        """Get or create the MinIO client (lazy initialization)."""
        if self._client is None:
            self._client = Minio(
                endpoint=self.endpoint,
                access_key=self.access_key,
                secret_key=self.secret_key,
                secure=self.secure,
            )
            logger.info(
                "MinIO client initialized (endpoint=%s, secure=%s)",
                self.endpoint, self.secure,
            )
        return self._client

    def _ensure_bucket(self) -> None:
        if self._bucket_checked or not self.create_bucket:
            return
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)
            logger.info("Created bucket %s", self.bucket)
        self._bucket_checked = True

    def _put(self, destination: str, payload: bytes) -> str:
        self._ensure_bucket()
        result = self.client.put_object(
            bucket_name=self.bucket,
            object_name=destination,
            data=BytesIO(payload),
            length=len(payload),
            content_type=self.content_type,
        )
        etag = (result.etag or "").strip('"')
        return f"{self.bucket}/{destination}@{etag}" if etag else f"{self.bucket}/{destination}"

    async def upload(self, destination: str, payload: bytes) -> str:
        """Store ``payload`` as ``destination`` in the bucket.

        Returns:
            Object identifier "{bucket}/{object_name}@{etag}"

        Raises:
            UploadError: If MinIO rejects the object or is unreachable
        """
        logger.info(
            "Uploading %s/%s (%d bytes)", self.bucket, destination, len(payload)
        )
        try:
            object_id = await asyncio.to_thread(self._put, destination, payload)
        except S3Error as e:
            raise UploadError(f"MinIO rejected {destination}: {e.code} {e.message}") from e
        except Exception as e:
            raise UploadError(f"Upload of {destination} failed: {e}") from e

        logger.info("Uploaded object %s", object_id)
        return object_id
