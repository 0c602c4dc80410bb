"""Release service for the distribution workflow."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from labeldesk.core.exceptions import BadRequestError, NotFoundError
from labeldesk.core.logging import get_logger

from ..models import Artist, Label, Release, ReleaseStatus
from .pagination import contains_pattern, paginate

logger = get_logger(__name__)

VALID_STATUSES = [s.value for s in ReleaseStatus]

UPDATABLE_FIELDS = (
    "title",
    "version",
    "upc",
    "genre",
    "release_date",
    "description",
    "artist_id",
    "label_id",
    "cover_art_url",
    "audio_file_url",
)


def parse_status(value: Any) -> ReleaseStatus:
    """Validate a status value against the five workflow states."""
    try:
        return ReleaseStatus(value)
    except ValueError:
        raise BadRequestError("Invalid status. Must be one of: " + ", ".join(VALID_STATUSES))


def _with_relations(query):
    return query.options(
        selectinload(Release.artist),
        selectinload(Release.label),
        selectinload(Release.creator),
    )


class ReleaseService:
    """Service for managing releases."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_release_by_id(self, release_id: UUID) -> Optional[Release]:
        """Get a release by ID with artist, label and creator loaded."""
        query = _with_relations(select(Release).where(Release.id == release_id))
        result = await self.db.execute(query.execution_options(populate_existing=True))
        release = result.scalar_one_or_none()

        if release:
            logger.info("retrieved_release", release_id=str(release_id), title=release.title)
        else:
            logger.warning("release_not_found", release_id=str(release_id))
        return release

    async def get_release_or_404(self, release_id: UUID) -> Release:
        release = await self.get_release_by_id(release_id)
        if not release:
            raise NotFoundError("Release not found", details={"release_id": str(release_id)})
        return release

    async def find_by_upc(self, upc: str, exclude_id: Optional[UUID] = None) -> Optional[Release]:
        query = select(Release).where(Release.upc == upc)
        if exclude_id is not None:
            query = query.where(Release.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def ensure_upc_available(self, upc: Optional[str], exclude_id: Optional[UUID] = None) -> None:
        if upc and await self.find_by_upc(upc, exclude_id):
            raise BadRequestError("UPC already exists")

    async def ensure_references(self, artist_id: Optional[UUID], label_id: Optional[UUID]) -> None:
        if artist_id is not None and await self.db.get(Artist, artist_id) is None:
            raise BadRequestError("Artist not found", details={"artist_id": str(artist_id)})
        if label_id is not None and await self.db.get(Label, label_id) is None:
            raise BadRequestError("Label not found", details={"label_id": str(label_id)})

    async def list_releases(
        self,
        offset: int,
        limit: int,
        status: Optional[ReleaseStatus] = None,
        artist_id: Optional[UUID] = None,
        label_id: Optional[UUID] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Release], int]:
        """List releases newest first with optional filters; search matches title or UPC."""
        query = select(Release)
        if status:
            query = query.where(Release.status == status)
        if artist_id:
            query = query.where(Release.artist_id == artist_id)
        if label_id:
            query = query.where(Release.label_id == label_id)
        if search and search.strip():
            pattern = contains_pattern(search)
            query = query.where(
                or_(
                    Release.title.ilike(pattern, escape="\\"),
                    Release.upc.ilike(pattern, escape="\\"),
                )
            )
        query = _with_relations(query.order_by(Release.created_at.desc()))

        releases, total = await paginate(self.db, query, offset, limit)
        logger.info("retrieved_releases", count=len(releases), total=total)
        return releases, total

    def build_release(self, created_by: UUID, **fields: Any) -> Release:
        """Add a pending release to the session without committing."""
        release = Release(
            title=fields["title"],
            version=fields.get("version"),
            artist_id=fields["artist_id"],
            label_id=fields.get("label_id"),
            upc=fields.get("upc") or None,
            genre=fields.get("genre"),
            release_date=fields.get("release_date"),
            description=fields.get("description"),
            cover_art_url=fields.get("cover_art_url"),
            audio_file_url=fields.get("audio_file_url"),
            status=ReleaseStatus.PENDING,
            created_by=created_by,
            release_metadata=fields.get("metadata") or {},
        )
        self.db.add(release)
        return release

    async def commit(self, upc: Optional[str] = None, exclude_id: Optional[UUID] = None) -> None:
        """Commit; a lost race on the UPC unique index becomes a bad request.

        Any other integrity error (a dangling artist, label or creator
        reference) propagates unchanged.
        """
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("release_commit_failed", error=str(e.orig), upc=upc)
            await self.ensure_upc_available(upc, exclude_id)
            raise

    async def create_release(self, created_by: UUID, **fields: Any) -> Release:
        """Create a pending release after checking UPC and references."""
        await self.ensure_upc_available(fields.get("upc"))
        await self.ensure_references(fields.get("artist_id"), fields.get("label_id"))

        release = self.build_release(created_by, **fields)
        await self.commit(fields.get("upc"))

        logger.info("release_created", release_id=str(release.id), title=release.title, upc=release.upc)
        return await self.get_release_or_404(release.id)

    async def update_release(self, release_id: UUID, changes: Dict[str, Any]) -> Release:
        """Apply the provided updatable fields; status changes go through ``change_status``."""
        release = await self.get_release_or_404(release_id)
        updates = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}

        await self.ensure_upc_available(updates.get("upc"), exclude_id=release.id)
        await self.ensure_references(updates.get("artist_id"), updates.get("label_id"))

        for field, value in updates.items():
            setattr(release, field, value)
        await self.commit(updates.get("upc"), exclude_id=release_id)

        logger.info("release_updated", release_id=str(release_id), fields=sorted(updates))
        return await self.get_release_or_404(release_id)

    async def delete_release(self, release_id: UUID) -> None:
        release = await self.get_release_or_404(release_id)
        await self.db.delete(release)
        await self.db.commit()
        logger.info("release_deleted", release_id=str(release_id))

    def apply_status(self, release: Release, status: ReleaseStatus, actor_id: UUID) -> None:
        """Set ``status``; approval stamps the approver and time.

        Any status may follow any other.
        """
        previous = release.status
        release.status = status
        if status == ReleaseStatus.APPROVED:
            release.approved_at = datetime.now(timezone.utc)
            release.approved_by = actor_id
        logger.info(
            "release_status_changed",
            release_id=str(release.id),
            previous=previous.value if previous else None,
            status=status.value,
            actor_id=str(actor_id),
        )

    async def change_status(self, release_id: UUID, status: ReleaseStatus, actor_id: UUID) -> Release:
        release = await self.get_release_or_404(release_id)
        self.apply_status(release, status, actor_id)
        await self.db.commit()
        return release

    async def recent_releases(self, limit: int, created_by: Optional[UUID] = None) -> List[Release]:
        """Most recently created releases, newest first."""
        query = select(Release)
        if created_by is not None:
            query = query.where(Release.created_by == created_by)
        query = _with_relations(query.order_by(Release.created_at.desc()).limit(limit))

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def status_counts(self, created_by: Optional[UUID] = None) -> Dict[str, int]:
        """Count releases per status; statuses with no releases are omitted."""
        query = select(Release.status, func.count(Release.id)).group_by(Release.status)
        if created_by is not None:
            query = query.where(Release.created_by == created_by)

        result = await self.db.execute(query)
        return {
            (status.value if isinstance(status, ReleaseStatus) else str(status)): count
            for status, count in result.all()
        }
