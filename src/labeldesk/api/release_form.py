"""Release submission form endpoints."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.db import get_db
from labeldesk.core.exceptions import BadRequestError, ForbiddenError
from labeldesk.core.logging import get_logger
from labeldesk.core.storage import StorageClient, get_storage

from ..metrics import release_status_changes_total, releases_created_total
from ..models import ReleaseStatus
from ..services.release_service import parse_status
from ..services.submission_service import ReleaseSubmission, SubmissionService
from .deps import CurrentUser, PageParams, get_current_user, get_page_params, require_staff
from .schemas import Pagination, ReleaseResponse, UploadResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/release-form", tags=["release-form"])


def release_submission_form(
    title: Optional[str] = Form(None),
    version: Optional[str] = Form(None),
    upcCode: Optional[str] = Form(None),
    primaryArtist: Optional[str] = Form(None),
    featuring: Optional[str] = Form(None),
    lyricist: Optional[str] = Form(None),
    composer: Optional[str] = Form(None),
    arranger: Optional[str] = Form(None),
    producer: Optional[str] = Form(None),
    genre: Optional[str] = Form(None),
    trackLanguage: Optional[str] = Form(None),
    pLine: Optional[str] = Form(None),
    cLine: Optional[str] = Form(None),
    releaseLanguage: Optional[str] = Form(None),
    productionYear: Optional[str] = Form(None),
    releaseDate: Optional[str] = Form(None),
    instrumental: Optional[str] = Form(None),
    remixOf: Optional[str] = Form(None),
    explicitContent: Optional[str] = Form(None),
    otherLsp: Optional[str] = Form(None),
    mood: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    labelId: Optional[str] = Form(None),
) -> ReleaseSubmission:
    """Collect the multipart form fields; blank values count as absent."""
    fields = {k: v for k, v in locals().items() if v is not None and v.strip() != ""}
    try:
        return ReleaseSubmission.model_validate(fields)
    except ValidationError as e:
        raise BadRequestError(
            "Validation failed",
            details=jsonable_encoder(e.errors(), exclude={"ctx", "url", "input"}),
        )


class ReviewRequest(BaseModel):
    status: Optional[str] = None
    notes: Optional[str] = None


class SubmissionCreatedResponse(BaseModel):
    message: str
    release: ReleaseResponse
    submissionId: UUID


class SubmissionEnvelope(BaseModel):
    submission: UploadResponse


class SubmissionListResponse(BaseModel):
    submissions: List[UploadResponse]
    pagination: Pagination


class ReviewResponse(BaseModel):
    message: str
    release: ReleaseResponse


@router.post("/create", response_model=SubmissionCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_release(
    current_user: CurrentUser = Depends(get_current_user),
    form: ReleaseSubmission = Depends(release_submission_form),
    trackFile: Optional[UploadFile] = File(None),
    coverArt: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage)
) -> SubmissionCreatedResponse:
    """Create a pending release from the submission form."""
    release, submission = await SubmissionService(db, storage).create_release(
        form,
        created_by=current_user.id,
        track_file=trackFile,
        cover_art=coverArt,
    )
    releases_created_total.labels(source="release_form").inc()
    return SubmissionCreatedResponse(
        message="Release created successfully",
        release=ReleaseResponse.model_validate(release),
        submissionId=submission.id,
    )


@router.get("/submission/{submission_id}", response_model=SubmissionEnvelope)
async def get_submission(
    submission_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> SubmissionEnvelope:
    """Get one submission; visible to its submitter and to admins."""
    submission = await SubmissionService(db).get_submission_or_404(submission_id)
    if submission.uploaded_by != current_user.id and not current_user.is_admin:
        raise ForbiddenError("Access denied")
    return SubmissionEnvelope(submission=UploadResponse.model_validate(submission))


@router.get("/my-submissions", response_model=SubmissionListResponse)
async def my_submissions(
    status_filter: Optional[ReleaseStatus] = Query(None, alias="status"),
    paging: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> SubmissionListResponse:
    submissions, total = await SubmissionService(db).list_submissions(
        paging.offset, paging.limit, uploaded_by=current_user.id, status=status_filter
    )
    return SubmissionListResponse(
        submissions=[UploadResponse.model_validate(s) for s in submissions],
        pagination=Pagination.build(paging.page, paging.limit, total),
    )


@router.get("/all-submissions", response_model=SubmissionListResponse)
async def all_submissions(
    status_filter: Optional[ReleaseStatus] = Query(None, alias="status"),
    user_id: Optional[UUID] = Query(None, description="Restrict to one submitter"),
    paging: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
) -> SubmissionListResponse:
    """List every submission, newest first."""
    submissions, total = await SubmissionService(db).list_submissions(
        paging.offset, paging.limit, uploaded_by=user_id, status=status_filter
    )
    return SubmissionListResponse(
        submissions=[UploadResponse.model_validate(s) for s in submissions],
        pagination=Pagination.build(paging.page, paging.limit, total),
    )


@router.patch("/submission/{submission_id}/status", response_model=ReviewResponse)
async def review_submission(
    submission_id: UUID,
    body: ReviewRequest,
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
) -> ReviewResponse:
    """Set the status of the submission's release and record the review notes."""
    new_status = parse_status(body.status)
    service = SubmissionService(db)
    release = await service.review_submission(submission_id, new_status, current_user.id, notes=body.notes)
    release_status_changes_total.labels(status=new_status.value).inc()

    release = await service.releases.get_release_or_404(release.id)
    return ReviewResponse(
        message="Submission status updated successfully",
        release=ReleaseResponse.model_validate(release),
    )


@router.get("/statistics")
async def statistics(
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
) -> dict:
    return await SubmissionService(db).statistics()
