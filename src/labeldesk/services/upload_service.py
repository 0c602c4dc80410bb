"""Upload service: validates multipart files, stores them and records metadata."""
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.config import app_settings
from labeldesk.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from labeldesk.core.logging import get_logger
from labeldesk.core.storage import StorageClient, StoredFile

from ..metrics import upload_bytes_total, uploads_total
from ..models import FORM_TYPE_FILE_UPLOAD, Upload
from .pagination import paginate

logger = get_logger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
ALLOWED_DOCUMENT_TYPES = {"application/pdf", "application/zip", "application/x-zip-compressed"}


@dataclass(frozen=True)
class SavedFile:
    """A file written to storage, with the client-supplied details."""
    original_name: str
    filename: str
    mime_type: str
    stored: StoredFile


def storage_folder(mime_type: str) -> str:
    """Audio lands under ``audio/``, images under ``covers/``, anything else at the root."""
    if mime_type.startswith("audio/"):
        return "audio"
    if mime_type.startswith("image/"):
        return "covers"
    return ""


def is_allowed_type(mime_type: str) -> bool:
    return (
        mime_type.startswith("audio/")
        or mime_type in ALLOWED_IMAGE_TYPES
        or mime_type in ALLOWED_DOCUMENT_TYPES
    )


class UploadService:
    """Service for stored files and their metadata records."""

    def __init__(self, db: AsyncSession, storage: StorageClient):
        """Initialize service with database session and storage backend."""
        self.db = db
        self.storage = storage

    async def save_file(self, file: UploadFile, expected_prefix: Optional[str] = None) -> SavedFile:
        """Validate and persist one multipart file.

        ``expected_prefix`` narrows the accepted MIME family, e.g. ``"image/"``
        for cover art.
        """
        mime_type = (file.content_type or "application/octet-stream").lower()
        original_name = file.filename or "upload"

        if not is_allowed_type(mime_type) or (expected_prefix and not mime_type.startswith(expected_prefix)):
            logger.info("upload_rejected_type", filename=original_name, mime_type=mime_type)
            raise BadRequestError(
                f"File type not allowed: {mime_type}",
                details={"filename": original_name},
            )

        data = await file.read(app_settings.max_upload_size + 1)
        if len(data) > app_settings.max_upload_size:
            logger.info("upload_rejected_size", filename=original_name, limit=app_settings.max_upload_size)
            raise BadRequestError(
                "File too large",
                details={"filename": original_name, "max_bytes": app_settings.max_upload_size},
            )
        if not data:
            raise BadRequestError("Uploaded file is empty", details={"filename": original_name})

        extension = os.path.splitext(original_name)[1].lower()
        filename = f"{uuid4().hex}{extension}"
        folder = storage_folder(mime_type)
        key = f"{folder}/{filename}" if folder else filename

        stored = await self.storage.save(key, data, content_type=mime_type)
        uploads_total.labels(kind=folder or "other").inc()
        upload_bytes_total.inc(stored.size)

        return SavedFile(original_name=original_name, filename=filename, mime_type=mime_type, stored=stored)

    async def discard(self, saved: List[SavedFile]) -> None:
        """Remove stored files whose database records were never written."""
        for item in saved:
            try:
                await self.storage.delete(item.stored.key)
            except Exception as e:
                logger.error("upload_cleanup_failed", key=item.stored.key, error=str(e))

    def build_record(self, saved: SavedFile, uploaded_by: UUID, release_id: Optional[UUID] = None) -> Upload:
        upload = Upload(
            original_name=saved.original_name,
            filename=saved.filename,
            file_path=saved.stored.path,
            file_url=saved.stored.url,
            mime_type=saved.mime_type,
            file_size=saved.stored.size,
            uploaded_by=uploaded_by,
            release_id=release_id,
            form_type=FORM_TYPE_FILE_UPLOAD,
        )
        self.db.add(upload)
        return upload

    async def upload_files(self, files: List[UploadFile], uploaded_by: UUID) -> List[Upload]:
        """Store ``files`` and record each one; all records commit together."""
        saved: List[SavedFile] = []
        try:
            for file in files:
                saved.append(await self.save_file(file))
            records = [self.build_record(item, uploaded_by) for item in saved]
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            await self.discard(saved)
            raise

        logger.info("files_uploaded", count=len(records), uploaded_by=str(uploaded_by))
        return records

    async def list_user_uploads(self, user_id: UUID, offset: int, limit: int) -> Tuple[List[Upload], int]:
        """The caller's stored files, newest first."""
        query = (
            select(Upload)
            .where(Upload.uploaded_by == user_id, Upload.form_type == FORM_TYPE_FILE_UPLOAD)
            .order_by(Upload.created_at.desc())
        )
        uploads, total = await paginate(self.db, query, offset, limit)
        logger.info("retrieved_uploads", user_id=str(user_id), count=len(uploads), total=total)
        return uploads, total

    async def delete_upload(self, upload_id: UUID, user_id: UUID, is_admin: bool) -> None:
        """Delete the metadata record; only the uploader or an admin may.

        The stored file itself is left in place.
        """
        result = await self.db.execute(select(Upload).where(Upload.id == upload_id))
        upload = result.scalar_one_or_none()
        if not upload:
            raise NotFoundError("Upload not found", details={"upload_id": str(upload_id)})

        if upload.uploaded_by != user_id and not is_admin:
            logger.info("upload_delete_denied", upload_id=str(upload_id), user_id=str(user_id))
            raise ForbiddenError("Permission denied")

        await self.db.delete(upload)
        await self.db.commit()
        logger.info("upload_deleted", upload_id=str(upload_id), deleted_by=str(user_id), file_path=upload.file_path)

