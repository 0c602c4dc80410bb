"""User administration endpoints (admin only)."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.db import get_db
from labeldesk.core.exceptions import BadRequestError
from labeldesk.core.logging import get_logger

from ..models import UserRole
from ..services.user_service import UserService
from .deps import CurrentUser, PageParams, get_page_params, require_admin
from .schemas import MessageResponse, Pagination, UserResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/user", tags=["users"])

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


class UserCreateRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.ARTIST


class UserUpdateRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class PasswordChangeRequest(BaseModel):
    password: Optional[str] = None


class UserListResponse(BaseModel):
    users: List[UserResponse]
    pagination: Pagination


class UserEnvelope(BaseModel):
    message: Optional[str] = None
    user: UserResponse


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    search: Optional[str] = Query(None, description="Substring of username or email"),
    paging: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> UserListResponse:
    """List users, newest first."""
    users, total = await UserService(db).list_users(paging.offset, paging.limit, role=role, search=search)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        pagination=Pagination.build(paging.page, paging.limit, total),
    )


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> UserEnvelope:
    """Create an account with any role."""
    user = await UserService(db).create_user(body.username, body.email, body.password, body.role)
    logger.info("user_created_by_admin", user_id=str(user.id), created_by=str(current_user.id))
    return UserEnvelope(message="User created successfully", user=UserResponse.model_validate(user))


@router.get("/{user_id}", response_model=UserEnvelope, response_model_exclude_none=True)
async def get_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> UserEnvelope:
    user = await UserService(db).get_user_or_404(user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: UUID,
    body: UserUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> UserEnvelope:
    """Update username, email, role or active flag."""
    user = await UserService(db).update_user(user_id, body.model_dump(exclude_unset=True))
    return UserEnvelope(message="User updated successfully", user=UserResponse.model_validate(user))


@router.patch("/{user_id}/password", response_model=MessageResponse)
async def change_password(
    user_id: UUID,
    body: PasswordChangeRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    if not body.password or len(body.password) < 6:
        raise BadRequestError("Password must be at least 6 characters long")

    await UserService(db).set_password(user_id, body.password)
    return MessageResponse(message="Password updated successfully")


@router.patch("/{user_id}/deactivate", response_model=UserEnvelope)
async def deactivate_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> UserEnvelope:
    user = await UserService(db).deactivate_user(user_id)
    return UserEnvelope(message="User deactivated successfully", user=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    """Delete an account; admins cannot delete themselves."""
    await UserService(db).delete_user(user_id, actor_id=current_user.id)
    return MessageResponse(message="User deleted successfully")
