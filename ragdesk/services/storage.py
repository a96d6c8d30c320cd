"""S3-compatible object storage used for uploads and citation links."""

import asyncio
import logging
import re
import uuid
from functools import wraps
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ragdesk.core.config import settings

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9.\-_]")
_MISSING_OBJECT_CODES = {"NoSuchKey", "404", "NotFound"}


def sanitize_file_name(file_name: str) -> str:
    """Strip every character outside ``[A-Za-z0-9.-_]``."""
    return _UNSAFE_KEY_CHARS.sub("", file_name)


def build_storage_key(owner_id: str, file_name: str) -> str:
    """Build the object key for a new upload: ``users/{owner}/{uuid}-{name}``."""
    return f"users/{owner_id}/{uuid.uuid4()}-{sanitize_file_name(file_name)}"


# Helper to convert sync operations to async
def async_wrap(func):
    """Wrap a blocking boto3 call so it runs in the default executor."""

    @wraps(func)
    async def run(*args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))

    return run


class ObjectStorage:
    """Thin async facade over a boto3 S3 client bound to one bucket."""

    def __init__(self, client=None, bucket: Optional[str] = None):
        """Initialize the storage facade.

        Args:
            client: Optional pre-built boto3 S3 client (tests pass a stub)
            bucket: Bucket name, defaults to ``settings.STORAGE_BUCKET``
        """
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.client = client or boto3.client(
            "s3",
            endpoint_url=settings.STORAGE_ENDPOINT,
            region_name=settings.STORAGE_REGION,
            aws_access_key_id=settings.STORAGE_ACCESS_KEY,
            aws_secret_access_key=settings.STORAGE_SECRET_KEY,
            config=Config(
                connect_timeout=settings.STORAGE_TIMEOUT_SECONDS,
                read_timeout=settings.STORAGE_TIMEOUT_SECONDS,
                retries={"max_attempts": 1},
                signature_version="s3v4",
            ),
        )

    async def get_object(self, key: str) -> Optional[bytes]:
        """Download an object.

        Args:
            key: Object key

        Returns:
            The object bytes, or None when the object does not exist
        """

        def _read() -> Optional[bytes]:
            try:
                response = self.client.get_object(Bucket=self.bucket, Key=key)
            except ClientError as e:
                error = e.response.get("Error", {})
                status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
                if error.get("Code") in _MISSING_OBJECT_CODES or status == 404:
                    return None
                raise
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()

        return await async_wrap(_read)()

    async def delete_object(self, key: str) -> None:
        await async_wrap(self.client.delete_object)(Bucket=self.bucket, Key=key)
        logger.info(f"Deleted object {key} from bucket {self.bucket}")

    async def generate_upload_url(self, key: str, content_type: str, expires_in: Optional[int] = None) -> str:
        """Presign a PUT for a direct client upload."""
        return await async_wrap(self.client.generate_presigned_url)(
            "put_object",
            Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
            ExpiresIn=expires_in or settings.UPLOAD_URL_EXPIRES_SECONDS,
        )

    async def generate_download_url(self, key: str, expires_in: Optional[int] = None) -> str:
        """Presign a GET used as a citation link."""
        return await async_wrap(self.client.generate_presigned_url)(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in or settings.DOWNLOAD_URL_EXPIRES_SECONDS,
        )


def get_object_storage() -> ObjectStorage:
    """Dependency hook returning a storage facade."""
    return ObjectStorage()
