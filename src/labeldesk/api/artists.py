"""Artist API endpoints."""
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.db import get_db
from labeldesk.core.exceptions import BadRequestError
from labeldesk.core.logging import get_logger

from ..services.artist_service import ArtistService
from .deps import CurrentUser, PageParams, get_current_user, get_page_params, require_admin, require_staff
from .schemas import ArtistResponse, MessageResponse, Pagination

logger = get_logger(__name__)

router = APIRouter(prefix="/artist", tags=["artists"])


class ArtistRequest(BaseModel):
    """Artist create/update request model; every field optional on update."""
    name: Optional[str] = Field(None, max_length=255, description="Artist name")
    bio: Optional[str] = None
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    social_links: Optional[Dict[str, str]] = None


class ArtistListResponse(BaseModel):
    artists: List[ArtistResponse]
    pagination: Pagination


class ArtistEnvelope(BaseModel):
    message: Optional[str] = None
    artist: ArtistResponse


@router.get("", response_model=ArtistListResponse)
async def list_artists(
    search: Optional[str] = Query(None, description="Case-insensitive name substring"),
    paging: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ArtistListResponse:
    """List artists alphabetically."""
    artists, total = await ArtistService(db).list_artists(paging.offset, paging.limit, search=search)
    return ArtistListResponse(
        artists=[ArtistResponse.model_validate(a) for a in artists],
        pagination=Pagination.build(paging.page, paging.limit, total),
    )


@router.get("/{artist_id}", response_model=ArtistEnvelope, response_model_exclude_none=True)
async def get_artist(
    artist_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ArtistEnvelope:
    """Get an artist by ID."""
    artist = await ArtistService(db).get_artist_or_404(artist_id)
    return ArtistEnvelope(artist=ArtistResponse.model_validate(artist))


@router.post("", response_model=ArtistEnvelope, status_code=status.HTTP_201_CREATED)
async def create_artist(
    body: ArtistRequest,
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
) -> ArtistEnvelope:
    if not body.name or not body.name.strip():
        raise BadRequestError("Artist name is required")

    artist = await ArtistService(db).create_artist(
        body.name.strip(),
        created_by=current_user.id,
        **body.model_dump(exclude={"name"}),
    )
    return ArtistEnvelope(message="Artist created successfully", artist=ArtistResponse.model_validate(artist))


@router.put("/{artist_id}", response_model=ArtistEnvelope)
async def update_artist(
    artist_id: UUID,
    body: ArtistRequest,
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
) -> ArtistEnvelope:
    """Update the fields that are present; an empty string clears optional text."""
    artist = await ArtistService(db).update_artist(artist_id, body.model_dump())
    return ArtistEnvelope(message="Artist updated successfully", artist=ArtistResponse.model_validate(artist))


@router.delete("/{artist_id}", response_model=MessageResponse)
async def delete_artist(
    artist_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    await ArtistService(db).delete_artist(artist_id)
    return MessageResponse(message="Artist deleted successfully")
