"""Registration, login and profile endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.db import get_db
from labeldesk.core.exceptions import UnauthorizedError
from labeldesk.core.logging import get_logger
from labeldesk.core.security import create_access_token

from ..metrics import auth_attempts_total
from ..models import UserRole
from ..services.user_service import UserService
from .deps import CurrentUser, get_current_user
from .schemas import UserResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    """Registration request model."""
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.ARTIST


class LoginRequest(BaseModel):
    """Login request model."""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(BaseModel):
    username: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")


class AuthResponse(BaseModel):
    """Response carrying the user and a fresh bearer token."""
    message: str
    user: UserResponse
    token: str


class ProfileResponse(BaseModel):
    message: Optional[str] = None
    user: UserResponse


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db)
) -> AuthResponse:
    """Register a new user and return a token."""
    logger.info("registering_user", username=body.username, role=body.role.value)

    service = UserService(db)
    try:
        user = await service.create_user(body.username, body.email, body.password, body.role)
    except Exception:
        auth_attempts_total.labels(action="register", outcome="failure").inc()
        raise

    auth_attempts_total.labels(action="register", outcome="success").inc()
    token = create_access_token(user.id, user.username, user.role.value)
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db)
) -> AuthResponse:
    """Exchange email and password for a token."""
    service = UserService(db)
    try:
        user = await service.authenticate(body.email, body.password)
    except UnauthorizedError:
        auth_attempts_total.labels(action="login", outcome="failure").inc()
        raise

    auth_attempts_total.labels(action="login", outcome="success").inc()
    token = create_access_token(user.id, user.username, user.role.value)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.get("/profile", response_model=ProfileResponse, response_model_exclude_none=True)
async def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ProfileResponse:
    """Get the caller's own account."""
    user = await UserService(db).get_user_or_404(current_user.id)
    return ProfileResponse(user=UserResponse.model_validate(user))


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ProfileResponse:
    """Change the caller's username and/or email."""
    changes = {k: v for k, v in body.model_dump().items() if v}
    user = await UserService(db).update_user(current_user.id, changes)
    logger.info("profile_updated", user_id=str(current_user.id), fields=sorted(changes))
    return ProfileResponse(message="Profile updated successfully", user=UserResponse.model_validate(user))
