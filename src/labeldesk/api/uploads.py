"""File upload endpoints."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.config import app_settings
from labeldesk.core.db import get_db
from labeldesk.core.exceptions import BadRequestError
from labeldesk.core.logging import get_logger
from labeldesk.core.storage import StorageClient, get_storage

from ..services.upload_service import UploadService
from .deps import CurrentUser, PageParams, get_current_user, get_page_params
from .schemas import MessageResponse, Pagination, UploadResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


class SingleUploadResponse(BaseModel):
    message: str
    file: UploadResponse


class MultipleUploadResponse(BaseModel):
    message: str
    files: List[UploadResponse]


class UploadListResponse(BaseModel):
    uploads: List[UploadResponse]
    pagination: Pagination


@router.post("/single", response_model=SingleUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_single(
    current_user: CurrentUser = Depends(get_current_user),
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage)
) -> SingleUploadResponse:
    """Store one file sent as the ``file`` field."""
    if file is None or not file.filename:
        raise BadRequestError("No file uploaded")

    records = await UploadService(db, storage).upload_files([file], current_user.id)
    return SingleUploadResponse(
        message="File uploaded successfully",
        file=UploadResponse.model_validate(records[0]),
    )


@router.post("/multiple", response_model=MultipleUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_multiple(
    current_user: CurrentUser = Depends(get_current_user),
    files: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage)
) -> MultipleUploadResponse:
    """Store several files sent as repeated ``files`` fields."""
    files = [f for f in files or [] if f.filename]
    if not files:
        raise BadRequestError("No files uploaded")
    if len(files) > app_settings.max_files_per_request:
        raise BadRequestError(
            f"Too many files; at most {app_settings.max_files_per_request} per request",
            details={"received": len(files)},
        )

    records = await UploadService(db, storage).upload_files(files, current_user.id)
    return MultipleUploadResponse(
        message=f"{len(records)} files uploaded successfully",
        files=[UploadResponse.model_validate(r) for r in records],
    )


@router.get("/my-uploads", response_model=UploadListResponse)
async def my_uploads(
    paging: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage)
) -> UploadListResponse:
    uploads, total = await UploadService(db, storage).list_user_uploads(current_user.id, paging.offset, paging.limit)
    return UploadListResponse(
        uploads=[UploadResponse.model_validate(u) for u in uploads],
        pagination=Pagination.build(paging.page, paging.limit, total),
    )


@router.delete("/{upload_id}", response_model=MessageResponse)
async def delete_upload(
    upload_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage)
) -> MessageResponse:
    """Delete an upload record; allowed for the uploader and admins."""
    await UploadService(db, storage).delete_upload(upload_id, current_user.id, current_user.is_admin)
    return MessageResponse(message="File deleted successfully")
