"""Dashboard aggregation queries."""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from labeldesk.core.logging import get_logger

from ..models import Artist, Label, Release, ReleaseStatus, Upload, User
from .release_service import ReleaseService
from .submission_service import SubmissionService

logger = get_logger(__name__)

RECENT_SUBMISSIONS_WINDOW = timedelta(days=7)


class DashboardService:
    """Aggregates for the dashboard; staff see everything, others their own records."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.releases = ReleaseService(db)
        self.submissions = SubmissionService(db)

    async def _count(self, model, *conditions) -> int:
        query = select(func.count(model.id))
        if conditions:
            query = query.where(*conditions)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def staff_stats(self) -> Dict[str, Any]:
        """Catalogue-wide counts for admins and managers."""
        since = datetime.now(timezone.utc) - RECENT_SUBMISSIONS_WINDOW
        by_status = await self.releases.status_counts()

        stats = {
            "totalReleases": sum(by_status.values()),
            "releasesByStatus": by_status,
            "totalUsers": await self._count(User),
            "totalArtists": await self._count(Artist),
            "totalLabels": await self._count(Label),
            "recentSubmissions": await self.submissions.count_submissions(since=since),
            "pendingApprovals": by_status.get(ReleaseStatus.PENDING.value, 0),
        }
        logger.info("dashboard_stats_computed", scope="all", total_releases=stats["totalReleases"])
        return stats

    async def user_stats(self, user_id: UUID) -> Dict[str, Any]:
        """The same counts restricted to the caller's releases and submissions."""
        since = datetime.now(timezone.utc) - RECENT_SUBMISSIONS_WINDOW
        by_status = await self.releases.status_counts(created_by=user_id)

        stats = {
            "totalReleases": sum(by_status.values()),
            "releasesByStatus": by_status,
            "totalSubmissions": await self.submissions.count_submissions(uploaded_by=user_id),
            "recentSubmissions": await self.submissions.count_submissions(since=since, uploaded_by=user_id),
            "pendingReleases": by_status.get(ReleaseStatus.PENDING.value, 0),
            "approvedReleases": by_status.get(ReleaseStatus.APPROVED.value, 0),
        }
        logger.info("dashboard_stats_computed", scope="own", user_id=str(user_id))
        return stats

    async def recent_activity(self, limit: int, user_id: Optional[UUID] = None) -> List[Upload]:
        """Latest submissions, newest first; ``user_id`` restricts to one uploader."""
        query = select(Upload)
        if user_id is not None:
            query = query.where(Upload.uploaded_by == user_id)
        query = (
            query.order_by(Upload.created_at.desc())
            .limit(limit)
            .options(selectinload(Upload.uploader), selectinload(Upload.release))
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def recent_releases(self, limit: int, user_id: Optional[UUID] = None) -> List[Release]:
        return await self.releases.recent_releases(limit, created_by=user_id)
