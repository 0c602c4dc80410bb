"""Release catalogue endpoints."""
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.db import get_db
from labeldesk.core.exceptions import BadRequestError
from labeldesk.core.logging import get_logger
from labeldesk.core.storage import StorageClient, get_storage

from ..metrics import release_status_changes_total, releases_created_total
from ..models import ReleaseStatus
from ..services.release_service import ReleaseService, parse_status
from ..services.upload_service import SavedFile, UploadService
from .deps import CurrentUser, PageParams, get_current_user, get_page_params, require_admin, require_staff
from .schemas import MessageResponse, Pagination, ReleaseResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/releases", tags=["releases"])


class StatusRequest(BaseModel):
    status: Optional[str] = None


class ReleaseListResponse(BaseModel):
    releases: List[ReleaseResponse]
    pagination: Pagination


class ReleaseEnvelope(BaseModel):
    message: Optional[str] = None
    release: ReleaseResponse


async def _store_artwork(
    uploads: UploadService,
    cover_art: Optional[UploadFile],
    audio_file: Optional[UploadFile],
) -> List[SavedFile]:
    """Store the optional cover and audio files, cleaning up if either is rejected."""
    saved: List[SavedFile] = []
    try:
        if cover_art is not None and cover_art.filename:
            saved.append(await uploads.save_file(cover_art, expected_prefix="image/"))
        if audio_file is not None and audio_file.filename:
            saved.append(await uploads.save_file(audio_file, expected_prefix="audio/"))
    except Exception:
        await uploads.discard(saved)
        raise
    return saved


def _file_urls(saved: List[SavedFile]) -> dict:
    urls = {}
    for item in saved:
        if item.mime_type.startswith("image/"):
            urls["cover_art_url"] = item.stored.url
        else:
            urls["audio_file_url"] = item.stored.url
    return urls


@router.get("", response_model=ReleaseListResponse)
async def list_releases(
    status_filter: Optional[ReleaseStatus] = Query(None, alias="status", description="Filter by status"),
    artist_id: Optional[UUID] = Query(None),
    label_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, description="Substring of title or UPC"),
    paging: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ReleaseListResponse:
    """List releases, newest first."""
    releases, total = await ReleaseService(db).list_releases(
        paging.offset,
        paging.limit,
        status=status_filter,
        artist_id=artist_id,
        label_id=label_id,
        search=search,
    )
    return ReleaseListResponse(
        releases=[ReleaseResponse.model_validate(r) for r in releases],
        pagination=Pagination.build(paging.page, paging.limit, total),
    )


@router.get("/{release_id}", response_model=ReleaseEnvelope, response_model_exclude_none=True)
async def get_release(
    release_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ReleaseEnvelope:
    release = await ReleaseService(db).get_release_or_404(release_id)
    return ReleaseEnvelope(release=ReleaseResponse.model_validate(release))


@router.post("", response_model=ReleaseEnvelope, status_code=status.HTTP_201_CREATED)
async def create_release(
    title: Optional[str] = Form(None),
    artist_id: Optional[UUID] = Form(None),
    genre: Optional[str] = Form(None),
    upc: Optional[str] = Form(None),
    label_id: Optional[UUID] = Form(None),
    release_date: Optional[date] = Form(None),
    description: Optional[str] = Form(None),
    version: Optional[str] = Form(None),
    coverArt: Optional[UploadFile] = File(None),
    audioFile: Optional[UploadFile] = File(None),
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage)
) -> ReleaseEnvelope:
    """Create a pending release, optionally with cover art and audio."""
    title = (title or "").strip()
    genre = (genre or "").strip()
    upc = (upc or "").strip()
    if not (title and artist_id and genre and upc):
        raise BadRequestError("Title, artist, genre and UPC are required")

    service = ReleaseService(db)
    await service.ensure_upc_available(upc)

    uploads = UploadService(db, storage)
    saved = await _store_artwork(uploads, coverArt, audioFile)
    try:
        release = await service.create_release(
            current_user.id,
            title=title,
            artist_id=artist_id,
            genre=genre,
            upc=upc,
            label_id=label_id,
            release_date=release_date,
            description=description,
            version=version,
            **_file_urls(saved),
        )
    except Exception:
        await uploads.discard(saved)
        raise

    releases_created_total.labels(source="admin").inc()
    return ReleaseEnvelope(message="Release created successfully", release=ReleaseResponse.model_validate(release))


@router.put("/{release_id}", response_model=ReleaseEnvelope)
async def update_release(
    release_id: UUID,
    title: Optional[str] = Form(None),
    artist_id: Optional[UUID] = Form(None),
    genre: Optional[str] = Form(None),
    upc: Optional[str] = Form(None),
    label_id: Optional[UUID] = Form(None),
    release_date: Optional[date] = Form(None),
    description: Optional[str] = Form(None),
    version: Optional[str] = Form(None),
    coverArt: Optional[UploadFile] = File(None),
    audioFile: Optional[UploadFile] = File(None),
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage)
) -> ReleaseEnvelope:
    """Update the provided fields; new files replace the stored URLs."""
    service = ReleaseService(db)
    await service.get_release_or_404(release_id)

    changes = {
        "title": (title or "").strip() or None,
        "artist_id": artist_id,
        "genre": (genre or "").strip() or None,
        "upc": (upc or "").strip() or None,
        "label_id": label_id,
        "release_date": release_date,
        "description": description,
        "version": version,
    }

    uploads = UploadService(db, storage)
    saved = await _store_artwork(uploads, coverArt, audioFile)
    changes.update(_file_urls(saved))
    try:
        release = await service.update_release(release_id, changes)
    except Exception:
        await uploads.discard(saved)
        raise

    return ReleaseEnvelope(message="Release updated successfully", release=ReleaseResponse.model_validate(release))


@router.delete("/{release_id}", response_model=MessageResponse)
async def delete_release(
    release_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    await ReleaseService(db).delete_release(release_id)
    return MessageResponse(message="Release deleted successfully")


@router.patch("/{release_id}/status", response_model=ReleaseEnvelope)
async def update_release_status(
    release_id: UUID,
    body: StatusRequest,
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
) -> ReleaseEnvelope:
    """Move a release to any of the workflow states."""
    new_status = parse_status(body.status)
    service = ReleaseService(db)
    await service.change_status(release_id, new_status, current_user.id)
    release_status_changes_total.labels(status=new_status.value).inc()

    release = await service.get_release_or_404(release_id)
    return ReleaseEnvelope(
        message="Release status updated successfully",
        release=ReleaseResponse.model_validate(release),
    )
