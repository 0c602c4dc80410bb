"""Storage backends for uploaded files.

Files are addressed by a key relative to the storage root, e.g.
``covers/3f2a...9c.png``. The local backend writes under ``UPLOAD_DIR`` and the
files are served by the application at ``UPLOAD_URL_PREFIX``; the MinIO backend
puts objects into a bucket and builds URLs from ``MINIO_PUBLIC_URL``.
"""
import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from minio import Minio
from minio.error import S3Error
from starlette.concurrency import run_in_threadpool

from labeldesk.core.config import Settings, app_settings
from labeldesk.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoredFile:
    """Where a file ended up."""

    key: str
    path: str
    url: str
    size: int


class StorageClient(ABC):
    """Interface shared by the storage backends."""

    @abstractmethod
    async def save(self, key: str, data: bytes, content_type: Optional[str] = None) -> StoredFile:
        """Write ``data`` under ``key``, replacing any existing file."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``; a missing file is not an error."""

    @abstractmethod
    async def file_exists(self, key: str) -> bool:
        """Whether ``key`` is currently stored."""


class LocalStorage(StorageClient):
    """Stores files on the local filesystem."""

    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _resolve(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Storage key escapes upload root: {key}")
        return path

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def save(self, key: str, data: bytes, content_type: Optional[str] = None) -> StoredFile:
        path = self._resolve(key)
        await run_in_threadpool(self._write, path, data)
        logger.info("file_stored", backend="local", key=key, size=len(data))
        return StoredFile(key=key, path=str(path), url=f"{self.url_prefix}/{key}", size=len(data))

    async def delete(self, key: str) -> None:
        path = self._resolve(key)
        await run_in_threadpool(path.unlink, True)
        logger.info("file_deleted", backend="local", key=key)

    async def file_exists(self, key: str) -> bool:
        return await run_in_threadpool(self._resolve(key).is_file)


class MinioStorage(StorageClient):
    """Stores files in a MinIO / S3 bucket."""

    def __init__(self, settings: Settings):
        self.bucket = settings.minio_bucket
        self.client = Minio(
            endpoint=settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure,
        )
        scheme = "https" if settings.minio_secure else "http"
        self.public_url = (
            settings.minio_public_url or f"{scheme}://{settings.minio_endpoint}/{self.bucket}"
        ).rstrip("/")
        self._bucket_checked = False

    def _ensure_bucket(self) -> None:
        if self._bucket_checked:
            return
        if not self.client.bucket_exists(bucket_name=self.bucket):
            self.client.make_bucket(bucket_name=self.bucket)
            logger.info("storage_bucket_created", bucket=self.bucket)
        self._bucket_checked = True

    def _put(self, key: str, data: bytes, content_type: str) -> None:
        self._ensure_bucket()
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=key,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )

    async def save(self, key: str, data: bytes, content_type: Optional[str] = None) -> StoredFile:
        await run_in_threadpool(self._put, key, data, content_type or "application/octet-stream")
        logger.info("file_stored", backend="minio", bucket=self.bucket, key=key, size=len(data))
        return StoredFile(
            key=key,
            path=f"{self.bucket}/{key}",
            url=f"{self.public_url}/{key}",
            size=len(data),
        )

    async def delete(self, key: str) -> None:
        await run_in_threadpool(self.client.remove_object, bucket_name=self.bucket, object_name=key)
        logger.info("file_deleted", backend="minio", bucket=self.bucket, key=key)

    async def file_exists(self, key: str) -> bool:
        try:
            await run_in_threadpool(self.client.stat_object, bucket_name=self.bucket, object_name=key)
        except S3Error as e:
            if e.code in ("NoSuchKey", "NoSuchObject"):
                return False
            raise
        return True


_storage: Optional[StorageClient] = None


def build_storage(settings: Settings) -> StorageClient:
    if settings.storage_backend == "minio":
        return MinioStorage(settings)
    return LocalStorage(settings.upload_dir, settings.upload_url_prefix)


def get_storage() -> StorageClient:
    """FastAPI dependency returning the configured storage backend."""
    global _storage
    if _storage is None:
        _storage = build_storage(app_settings)
    return _storage
