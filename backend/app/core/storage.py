"""Object storage for published media.

Backends: S3 and S3-compatible services (MinIO etc.) for published videos,
and the local filesystem for development and for thumbnails served as
static assets. Backends report failures through ``StorageResult``;
``ObjectPublisher`` turns a final failure into ``PublishFailedError``.
"""

import logging
import shutil
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from app.core.config import settings
from app.core.logging import log_warning
from app.core.retry import NO_RETRY, RetryConfig

logger = logging.getLogger(__name__)


class PublishFailedError(Exception):
    """Raised when an artifact could not be stored remotely."""

    def __init__(self, key: str, message: str, attempts: int = 1):
        super().__init__(f"Failed to publish {key} after {attempts} attempt(s): {message}")
        self.key = key
        self.attempts = attempts


@dataclass
class StorageResult:
    """Outcome of a single upload attempt."""

    success: bool
    key: str
    url: str = ""
    file_size: int = 0
    etag: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def failed(cls, key: str, error: Exception) -> "StorageResult":
        return cls(success=False, key=key, error_message=str(error))


@dataclass
class StorageConfig:
    """Where and how objects are stored."""

    backend: str  # local, s3, minio
    bucket: str = ""
    region: str = "us-east-1"
    access_key: str = ""
    secret_key: str = ""
    endpoint_url: Optional[str] = None
    storage_host: Optional[str] = None
    use_ssl: bool = True
    local_path: str = "./storage"
    public_base_url: Optional[str] = None
    cdn_domain: Optional[str] = None
    cdn_enabled: bool = False

    @classmethod
    def from_settings(cls) -> "StorageConfig":
        return cls(
            backend=settings.STORAGE_BACKEND,
            bucket=settings.STORAGE_BUCKET,
            region=settings.STORAGE_REGION,
            access_key=settings.STORAGE_ACCESS_KEY,
            secret_key=settings.STORAGE_SECRET_KEY,
            endpoint_url=settings.STORAGE_ENDPOINT_URL,
            storage_host=settings.STORAGE_HOST,
            use_ssl=settings.STORAGE_USE_SSL,
            local_path=settings.LOCAL_STORAGE_PATH,
            cdn_domain=settings.CDN_DOMAIN,
            cdn_enabled=settings.CDN_ENABLED,
        )

    @property
    def cdn_url_base(self) -> Optional[str]:
        if self.cdn_enabled and self.cdn_domain:
            return f"https://{self.cdn_domain}"
        return None


class StorageBackend(ABC):
    """A place objects can be written to and addressed by URL."""

    def upload(
        self,
        file_path: str,
        key: str,
        content_type: str = "application/octet-stream",
    ) -> StorageResult:
        """Upload the local file at ``file_path`` under ``key``."""
        try:
            with open(file_path, "rb") as f:
                return self.upload_fileobj(f, key, content_type)
        except OSError as e:
            return StorageResult.failed(key, e)

    @abstractmethod
    def upload_fileobj(
        self,
        fileobj: BinaryIO,
        key: str,
        content_type: str = "application/octet-stream",
    ) -> StorageResult:
        """Upload the contents of a readable binary stream under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; True if the backend confirmed the removal."""

    @abstractmethod
    def get_url(self, key: str) -> str:
        """Durable public URL for ``key``."""


class LocalStorage(StorageBackend):
    """Filesystem backend rooted at ``config.local_path``."""

    def __init__(self, config: StorageConfig):
        self.config = config
        self.base_path = Path(config.local_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        if self.base_path.resolve() not in path.parents:
            raise ValueError(f"Key escapes storage root: {key}")
        return path

    def upload_fileobj(
        self,
        fileobj: BinaryIO,
        key: str,
        content_type: str = "application/octet-stream",
    ) -> StorageResult:
        try:
            dest = self.path_for(key)
        except ValueError as e:
            return StorageResult.failed(key, e)

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with open(dest, "wb") as out:
                shutil.copyfileobj(fileobj, out)
        except OSError as e:
            # Never leave a truncated file where it would be served
            dest.unlink(missing_ok=True)
            return StorageResult.failed(key, e)

        return StorageResult(
            success=True,
            key=key,
            url=self.get_url(key),
            file_size=dest.stat().st_size,
        )

    def delete(self, key: str) -> bool:
        try:
            self.path_for(key).unlink()
        except FileNotFoundError:
            return False
        except (OSError, ValueError) as e:
            logger.warning("Failed to delete object", extra={"key": key, "error": str(e)})
            return False
        return True

    def get_url(self, key: str) -> str:
        base = self.config.cdn_url_base or self.config.public_base_url
        if base:
            return f"{base.rstrip('/')}/{key}"
        return (self.base_path / key).absolute().as_uri()


class S3Storage(StorageBackend):
    """S3 and S3-compatible object storage via boto3."""

    def __init__(self, config: StorageConfig, client=None):
        self.config = config
        self._client = client

    @property
    def client(self):
        if self._client is None:
            import boto3
            from botocore.config import Config as BotoConfig

            kwargs = {"region_name": self.config.region or "us-east-1"}
            if self.config.access_key and self.config.secret_key:
                kwargs["aws_access_key_id"] = self.config.access_key
                kwargs["aws_secret_access_key"] = self.config.secret_key
            if self.config.endpoint_url:
                # MinIO and friends want path-style addressing
                kwargs["endpoint_url"] = self.config.endpoint_url
                kwargs["use_ssl"] = self.config.use_ssl
                kwargs["config"] = BotoConfig(
                    signature_version="s3v4",
                    s3={"addressing_style": "path"},
                )
            self._client = boto3.client("s3", **kwargs)
        return self._client

    def upload_fileobj(
        self,
        fileobj: BinaryIO,
        key: str,
        content_type: str = "application/octet-stream",
    ) -> StorageResult:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            fileobj.seek(0, 2)
            size = fileobj.tell()
            fileobj.seek(0)
            response = self.client.put_object(
                Bucket=self.config.bucket,
                Key=key,
                Body=fileobj,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError, OSError) as e:
            return StorageResult.failed(key, e)

        return StorageResult(
            success=True,
            key=key,
            url=self.get_url(key),
            file_size=size,
            etag=response.get("ETag", "").strip('"') or None,
        )

    def delete(self, key: str) -> bool:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self.client.delete_object(Bucket=self.config.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.warning("Failed to delete object", extra={"key": key, "error": str(e)})
            return False
        return True

    def get_url(self, key: str) -> str:
        """Canonical public URL for an object.

        Built from configuration alone so it never expires, unlike a
        presigned URL. Precedence: CDN, explicit storage host, S3-compatible
        endpoint (path style), then the regional AWS host.
        """
        cdn = self.config.cdn_url_base
        if cdn:
            return f"{cdn}/{key}"
        if self.config.storage_host:
            return f"https://{self.config.bucket}.{self.config.storage_host}/{key}"
        if self.config.endpoint_url:
            return f"{self.config.endpoint_url.rstrip('/')}/{self.config.bucket}/{key}"
        return f"https://{self.config.bucket}.s3.{self.config.region}.amazonaws.com/{key}"


def create_backend(config: StorageConfig) -> StorageBackend:
    kind = config.backend.lower()
    if kind == "local":
        return LocalStorage(config)
    if kind in ("s3", "minio", "aws"):
        return S3Storage(config)
    raise ValueError(f"Unsupported storage backend: {kind}")


class ObjectPublisher:
    """Publishes finished artifacts to object storage.

    The local source file is never modified or removed; deleting it is the
    caller's job.
    """

    def __init__(
        self,
        backend: StorageBackend,
        retry: RetryConfig = NO_RETRY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.backend = backend
        self.retry = retry
        self._sleep = sleep

    def publish(self, file_path: str, key: str, content_type: str) -> str:
        """Upload ``file_path`` under ``key`` and return its public URL.

        Raises:
            PublishFailedError: If every attempt failed.
        """
        attempt = 0
        while True:
            attempt += 1
            result = self.backend.upload(file_path, key, content_type)
            if result.success:
                logger.info(
                    "Published object",
                    extra={"key": key, "size": result.file_size, "attempt": attempt},
                )
                return result.url

            log_warning(
                logger,
                "Object upload failed",
                key=key,
                attempt=attempt,
                error=result.error_message,
            )
            if not self.retry.should_retry(attempt):
                raise PublishFailedError(key, result.error_message or "unknown error", attempt)
            self._sleep(self.retry.calculate_delay(attempt))

    def unpublish(self, key: str) -> bool:
        """Remove a previously published object. Failures are logged, not raised."""
        removed = self.backend.delete(key)
        if removed:
            logger.info("Removed published object", extra={"key": key})
        else:
            log_warning(logger, "Could not remove published object", key=key)
        return removed


def get_publisher() -> ObjectPublisher:
    """Build the default publisher from settings."""
    retry = RetryConfig(
        max_attempts=settings.STORAGE_UPLOAD_MAX_ATTEMPTS,
        initial_delay=settings.STORAGE_UPLOAD_RETRY_DELAY_SECONDS,
        max_delay=settings.STORAGE_UPLOAD_RETRY_MAX_DELAY_SECONDS,
    )
    return ObjectPublisher(create_backend(StorageConfig.from_settings()), retry=retry)


def get_asset_storage() -> LocalStorage:
    """Storage for thumbnails, served by the app under /assets."""
    return LocalStorage(
        StorageConfig(
            backend="local",
            local_path=settings.ASSETS_ROOT,
            public_base_url=f"{settings.PUBLIC_BASE_URL.rstrip('/')}/assets",
        )
    )
