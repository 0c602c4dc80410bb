"""Label API endpoints."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.db import get_db
from labeldesk.core.exceptions import BadRequestError
from labeldesk.core.logging import get_logger

from ..services.label_service import LabelService
from .deps import CurrentUser, PageParams, get_current_user, get_page_params, require_admin, require_staff
from .schemas import LabelResponse, MessageResponse, Pagination

logger = get_logger(__name__)

router = APIRouter(prefix="/label", tags=["labels"])


class LabelRequest(BaseModel):
    """Label create/update request model."""
    name: Optional[str] = Field(None, max_length=255, description="Label name")
    description: Optional[str] = None
    contact_email: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=512)


class LabelListResponse(BaseModel):
    labels: List[LabelResponse]
    pagination: Pagination


class LabelEnvelope(BaseModel):
    message: Optional[str] = None
    label: LabelResponse


@router.get("", response_model=LabelListResponse)
async def list_labels(
    search: Optional[str] = Query(None, description="Case-insensitive name substring"),
    paging: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> LabelListResponse:
    """List labels alphabetically."""
    labels, total = await LabelService(db).list_labels(paging.offset, paging.limit, search=search)
    return LabelListResponse(
        labels=[LabelResponse.model_validate(label) for label in labels],
        pagination=Pagination.build(paging.page, paging.limit, total),
    )


@router.get("/{label_id}", response_model=LabelEnvelope, response_model_exclude_none=True)
async def get_label(
    label_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> LabelEnvelope:
    label = await LabelService(db).get_label_or_404(label_id)
    return LabelEnvelope(label=LabelResponse.model_validate(label))


@router.post("", response_model=LabelEnvelope, status_code=status.HTTP_201_CREATED)
async def create_label(
    body: LabelRequest,
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
) -> LabelEnvelope:
    if not body.name or not body.name.strip():
        raise BadRequestError("Label name is required")

    label = await LabelService(db).create_label(
        body.name,
        created_by=current_user.id,
        **body.model_dump(exclude={"name"}),
    )
    return LabelEnvelope(message="Label created successfully", label=LabelResponse.model_validate(label))


@router.put("/{label_id}", response_model=LabelEnvelope)
async def update_label(
    label_id: UUID,
    body: LabelRequest,
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
) -> LabelEnvelope:
    label = await LabelService(db).update_label(label_id, body.model_dump())
    return LabelEnvelope(message="Label updated successfully", label=LabelResponse.model_validate(label))


@router.delete("/{label_id}", response_model=MessageResponse)
async def delete_label(
    label_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    """Delete a label that no release references."""
    await LabelService(db).delete_label(label_id)
    return MessageResponse(message="Label deleted successfully")
