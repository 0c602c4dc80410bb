"""Dashboard endpoints."""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.db import get_db

from ..services.dashboard_service import DashboardService
from .deps import CurrentUser, get_current_user
from .schemas import ReleaseResponse, UploadResponse

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


class StatsResponse(BaseModel):
    stats: Dict[str, Any]


class ActivityResponse(BaseModel):
    activities: List[UploadResponse]


class RecentReleasesResponse(BaseModel):
    releases: List[ReleaseResponse]


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> StatsResponse:
    """Catalogue-wide counts for staff, the caller's own counts otherwise."""
    service = DashboardService(db)
    if current_user.is_staff:
        stats = await service.staff_stats()
    else:
        stats = await service.user_stats(current_user.id)
    return StatsResponse(stats=stats)


@router.get("/activity", response_model=ActivityResponse)
async def get_activity(
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ActivityResponse:
    scope = None if current_user.is_staff else current_user.id
    uploads = await DashboardService(db).recent_activity(limit, user_id=scope)
    return ActivityResponse(activities=[UploadResponse.model_validate(u) for u in uploads])


@router.get("/recent-releases", response_model=RecentReleasesResponse)
async def get_recent_releases(
    limit: int = Query(5, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> RecentReleasesResponse:
    scope = None if current_user.is_staff else current_user.id
    releases = await DashboardService(db).recent_releases(limit, user_id=scope)
    return RecentReleasesResponse(releases=[ReleaseResponse.model_validate(r) for r in releases])
