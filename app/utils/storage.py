import logging
from abc import ABC, abstractmethod

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the object store rejects or fails a put/delete."""


# ─── Interface ────────────────────────────────────────────────────────────────
class ObjectStore(ABC):
    """
    What the attachment helper needs from external storage. Keys are opaque
    paths inside one bucket; public URLs are derived from keys, never stored
    as the source of truth for deletion.
    """

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def public_url(self, key: str) -> str:
        ...


# ─── S3-compatible (Cloudflare R2) ────────────────────────────────────────────
class S3ObjectStore(ObjectStore):

    def __init__(self, client, bucket: str, public_domain: str):
        self.client = client
        self.bucket = bucket
        self.public_domain = public_domain.rstrip("/")

    @classmethod
    def from_settings(cls, s: Settings) -> "S3ObjectStore":
        missing = [name for name in ("R2_BUCKET", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY", "R2_ENDPOINT")
                   if not getattr(s, name)]
        if missing:
            # Routes without files keep working; uploads will fail with StorageError
            logger.warning(f"Object storage not fully configured, missing: {', '.join(missing)}")

        client = boto3.client(
            "s3",
            endpoint_url=s.R2_ENDPOINT or None,
            aws_access_key_id=s.R2_ACCESS_KEY_ID,
            aws_secret_access_key=s.R2_SECRET_ACCESS_KEY,
            region_name="auto",
            config=Config(
                s3={"addressing_style": "path"},   # required for R2
                connect_timeout=s.STORAGE_TIMEOUT_SECONDS,
                read_timeout=s.STORAGE_TIMEOUT_SECONDS,
                retries={"max_attempts": 1},       # no automatic retry
            ),
        )
        return cls(client, s.R2_BUCKET, s.R2_PUBLIC_DOMAIN)

    def put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl="no-cache",
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"upload {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"delete {key}: {e}") from e

    def public_url(self, key: str) -> str:
        return f"{self.public_domain}/{self.bucket}/{key}"
