"""Response models shared across routers."""
import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from sqlalchemy import inspect as sa_inspect

from ..models import Base, ReleaseStatus, UserRole


class ORMResponse(BaseModel):
    """Base for models built from ORM instances.

    Only attributes already loaded on the instance are read, so an unloaded
    relationship serializes as ``None`` instead of triggering lazy IO outside
    the async session.
    """
    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _loaded_attributes(cls, obj: Any) -> Any:
        if isinstance(obj, Base):
            state = sa_inspect(obj)
            return {
                key: getattr(obj, key)
                for key in state.mapper.attrs.keys()
                if key not in state.unloaded
            }
        return obj


class Pagination(BaseModel):
    """Offset pagination block returned by list endpoints."""
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class UserResponse(ORMResponse):
    """User response model (never includes the password hash)."""
    id: UUID
    username: str
    email: str
    role: UserRole
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserSummary(ORMResponse):
    id: UUID
    username: str
    email: str
    role: UserRole


class ArtistResponse(ORMResponse):
    """Artist response model."""
    id: UUID
    name: str = Field(..., description="Artist name")
    bio: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    social_links: Dict[str, str] = Field(default_factory=dict)
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class ArtistSummary(ORMResponse):
    id: UUID
    name: str
    bio: Optional[str] = None


class LabelResponse(ORMResponse):
    """Label response model."""
    id: UUID
    name: str = Field(..., description="Label name")
    description: str = ""
    contact_email: Optional[str] = None
    website: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class LabelSummary(ORMResponse):
    id: UUID
    name: str
    description: Optional[str] = None


class ReleaseMetadata(BaseModel):
    """Credits, languages, flags and tags attached to a release."""
    featuring: Optional[str] = None
    lyricist: Optional[str] = None
    composer: Optional[str] = None
    arranger: Optional[str] = None
    producer: Optional[str] = None
    trackLanguage: Optional[str] = None
    pLine: Optional[str] = None
    cLine: Optional[str] = None
    releaseLanguage: Optional[str] = None
    productionYear: Optional[int] = None
    instrumental: bool = False
    remixOf: Optional[str] = None
    explicitContent: bool = False
    otherLsp: bool = False
    mood: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class ReleaseResponse(ORMResponse):
    """Release response model with artist and label resolved when loaded."""
    id: UUID
    title: str
    version: Optional[str] = None
    upc: Optional[str] = None
    genre: Optional[str] = None
    release_date: Optional[date] = None
    description: Optional[str] = None
    cover_art_url: Optional[str] = None
    audio_file_url: Optional[str] = None
    status: ReleaseStatus
    approved_at: Optional[datetime] = None
    approved_by: Optional[UUID] = None
    created_by: Optional[UUID] = None
    artist_id: UUID
    label_id: Optional[UUID] = None
    artist: Optional[ArtistSummary] = None
    label: Optional[LabelSummary] = None
    creator: Optional[UserSummary] = None
    metadata: ReleaseMetadata = Field(
        default_factory=ReleaseMetadata,
        validation_alias=AliasChoices("release_metadata", "metadata"),
    )
    created_at: datetime
    updated_at: datetime


class ReleaseSummary(ORMResponse):
    id: UUID
    title: str
    status: ReleaseStatus
    artist: Optional[ArtistSummary] = None
    created_at: datetime


class UploadResponse(ORMResponse):
    """Upload / submission response model."""
    id: UUID
    original_name: Optional[str] = None
    filename: Optional[str] = None
    file_path: Optional[str] = None
    file_url: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_by: UUID
    release_id: Optional[UUID] = None
    form_type: str
    form_data: Optional[Dict[str, Any]] = None
    admin_notes: Optional[str] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    uploader: Optional[UserSummary] = None
    release: Optional[ReleaseSummary] = None
    created_at: datetime


class MessageResponse(BaseModel):
    message: str
