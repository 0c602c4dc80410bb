"""Release-form submissions: creation, review and statistics."""
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import UploadFile
from pydantic import BaseModel
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from labeldesk.core.exceptions import BadRequestError, NotFoundError
from labeldesk.core.logging import get_logger
from labeldesk.core.storage import StorageClient

from ..models import (
    FORM_TYPE_RELEASE_CREATION,
    Artist,
    Release,
    ReleaseStatus,
    Upload,
    User,
)
from .artist_service import ArtistService
from .pagination import paginate
from .release_service import ReleaseService
from .upload_service import SavedFile, UploadService

logger = get_logger(__name__)

STATISTICS_WINDOW = timedelta(days=30)


class ReleaseSubmission(BaseModel):
    """Fields of the release creation form, named as the frontend sends them."""
    title: Optional[str] = None
    version: Optional[str] = None
    upcCode: Optional[str] = None
    primaryArtist: Optional[str] = None
    featuring: Optional[str] = None
    lyricist: Optional[str] = None
    composer: Optional[str] = None
    arranger: Optional[str] = None
    producer: Optional[str] = None
    genre: Optional[str] = None
    trackLanguage: Optional[str] = None
    pLine: Optional[str] = None
    cLine: Optional[str] = None
    releaseLanguage: Optional[str] = None
    productionYear: Optional[int] = None
    releaseDate: Optional[date] = None
    instrumental: Optional[str] = None
    remixOf: Optional[str] = None
    explicitContent: Optional[str] = None
    otherLsp: Optional[str] = None
    mood: Optional[str] = None
    tags: Optional[str] = None
    labelId: Optional[UUID] = None

    def missing_required(self) -> bool:
        return not (
            (self.title or "").strip()
            and (self.primaryArtist or "").strip()
            and (self.genre or "").strip()
        )

    def release_metadata(self) -> Dict[str, Any]:
        """Build the release metadata block; checkbox fields arrive as ``"true"``."""
        return {
            "featuring": self.featuring,
            "lyricist": self.lyricist,
            "composer": self.composer,
            "arranger": self.arranger,
            "producer": self.producer,
            "trackLanguage": self.trackLanguage,
            "pLine": self.pLine,
            "cLine": self.cLine,
            "releaseLanguage": self.releaseLanguage,
            "productionYear": self.productionYear,
            "instrumental": _is_checked(self.instrumental),
            "remixOf": self.remixOf,
            "explicitContent": _is_checked(self.explicitContent),
            "otherLsp": _is_checked(self.otherLsp),
            "mood": self.mood,
            "tags": [t.strip() for t in self.tags.split(",") if t.strip()] if self.tags else [],
        }


def _is_checked(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


class SubmissionService:
    """Service for release-form submissions."""

    def __init__(self, db: AsyncSession, storage: Optional[StorageClient] = None):
        """Initialize service with database session and, for creation, storage."""
        self.db = db
        self.storage = storage
        self.releases = ReleaseService(db)
        self.artists = ArtistService(db)

    async def create_release(
        self,
        form: ReleaseSubmission,
        created_by: UUID,
        track_file: Optional[UploadFile] = None,
        cover_art: Optional[UploadFile] = None,
    ) -> Tuple[Release, Upload]:
        """Create a release from the submission form and log the submission.

        The artist lookup/insert, the release and the submission row commit in
        one transaction. Files are stored first; if anything after that fails
        they are deleted again.
        """
        if form.missing_required():
            raise BadRequestError("Title, Primary Artist, and Genre are required")

        upc = (form.upcCode or "").strip() or None
        await self.releases.ensure_upc_available(upc)
        if form.labelId is not None:
            await self.releases.ensure_references(None, form.labelId)

        uploads = UploadService(self.db, self.storage)
        saved: List[SavedFile] = []
        try:
            track_url = cover_url = None
            if track_file is not None and track_file.filename:
                track = await uploads.save_file(track_file, expected_prefix="audio/")
                saved.append(track)
                track_url = track.stored.url
            if cover_art is not None and cover_art.filename:
                cover = await uploads.save_file(cover_art, expected_prefix="image/")
                saved.append(cover)
                cover_url = cover.stored.url

            artist = await self.artists.get_or_create_artist(form.primaryArtist.strip(), created_by)

            release = self.releases.build_release(
                created_by,
                title=form.title.strip(),
                version=form.version,
                artist_id=artist.id,
                label_id=form.labelId,
                upc=upc,
                genre=form.genre.strip(),
                release_date=form.releaseDate,
                cover_art_url=cover_url,
                audio_file_url=track_url,
                metadata=form.release_metadata(),
            )
            await self.db.flush()

            submission = Upload(
                uploaded_by=created_by,
                release_id=release.id,
                form_type=FORM_TYPE_RELEASE_CREATION,
                form_data=form.model_dump(mode="json", exclude_none=True),
            )
            self.db.add(submission)
            await self.releases.commit(upc)
        except Exception:
            await self.db.rollback()
            await uploads.discard(saved)
            raise

        logger.info(
            "release_submitted",
            release_id=str(release.id),
            submission_id=str(submission.id),
            artist_id=str(artist.id),
            created_by=str(created_by),
        )
        return await self.releases.get_release_or_404(release.id), submission

    async def get_submission(self, submission_id: UUID) -> Optional[Upload]:
        """Get a submission with its uploader and release (and the release's artist)."""
        query = (
            select(Upload)
            .where(Upload.id == submission_id)
            .options(
                selectinload(Upload.uploader),
                selectinload(Upload.release).selectinload(Release.artist),
            )
        )
        result = await self.db.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get_submission_or_404(self, submission_id: UUID) -> Upload:
        submission = await self.get_submission(submission_id)
        if not submission:
            logger.warning("submission_not_found", submission_id=str(submission_id))
            raise NotFoundError("Submission not found", details={"submission_id": str(submission_id)})
        return submission

    async def list_submissions(
        self,
        offset: int,
        limit: int,
        uploaded_by: Optional[UUID] = None,
        status: Optional[ReleaseStatus] = None,
    ) -> Tuple[List[Upload], int]:
        """List submissions newest first; ``status`` filters on the linked release."""
        query = select(Upload)
        if uploaded_by is not None:
            query = query.where(Upload.uploaded_by == uploaded_by)
        if status is not None:
            query = query.join(Release, Upload.release_id == Release.id).where(Release.status == status)
        query = query.order_by(Upload.created_at.desc()).options(
            selectinload(Upload.uploader),
            selectinload(Upload.release).selectinload(Release.artist),
        )

        submissions, total = await paginate(self.db, query, offset, limit)
        logger.info("retrieved_submissions", count=len(submissions), total=total)
        return submissions, total

    async def review_submission(
        self,
        submission_id: UUID,
        status: ReleaseStatus,
        actor_id: UUID,
        notes: Optional[str] = None,
    ) -> Release:
        """Set the status of the submission's release and stamp the review.

        Every submission logged for that release receives the notes, reviewer
        and review time.
        """
        submission = await self.get_submission_or_404(submission_id)
        if submission.release_id is None:
            raise BadRequestError("Submission is not linked to a release")

        release = await self.releases.get_release_or_404(submission.release_id)
        self.releases.apply_status(release, status, actor_id)

        await self.db.execute(
            update(Upload)
            .where(Upload.release_id == release.id)
            .values(
                admin_notes=notes,
                reviewed_by=actor_id,
                reviewed_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session="fetch")
        )
        await self.db.commit()

        logger.info(
            "submission_reviewed",
            submission_id=str(submission_id),
            release_id=str(release.id),
            status=status.value,
            reviewed_by=str(actor_id),
        )
        return release

    async def count_submissions(
        self,
        since: Optional[datetime] = None,
        uploaded_by: Optional[UUID] = None,
    ) -> int:
        query = select(func.count(Upload.id))
        if since is not None:
            query = query.where(Upload.created_at >= since)
        if uploaded_by is not None:
            query = query.where(Upload.uploaded_by == uploaded_by)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def statistics(self) -> Dict[str, Any]:
        """Status counts plus submission, user and artist totals."""
        since = datetime.now(timezone.utc) - STATISTICS_WINDOW
        total_users = (await self.db.execute(select(func.count(User.id)))).scalar_one()
        total_artists = (await self.db.execute(select(func.count(Artist.id)))).scalar_one()

        return {
            "statusCounts": await self.releases.status_counts(),
            "recentSubmissions": await self.count_submissions(since=since),
            "totalUsers": total_users,
            "totalArtists": total_artists,
        }
