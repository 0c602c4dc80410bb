"""User service for account management and authentication."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.exceptions import BadRequestError, NotFoundError, UnauthorizedError
from labeldesk.core.logging import get_logger
from labeldesk.core.security import hash_password, verify_password

from ..models import User, UserRole
from .pagination import contains_pattern, paginate

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("username", "email", "role", "is_active")


class UserService:
    """Service for managing user accounts."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_or_404(self, user_id: UUID) -> User:
        user = await self.get_user_by_id(user_id)
        if not user:
            logger.warning("user_not_found", user_id=str(user_id))
            raise NotFoundError("User not found", details={"user_id": str(user_id)})
        return user

    async def _ensure_unique(
        self,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[UUID] = None,
    ) -> None:
        conditions = []
        if username:
            conditions.append(User.username == username)
        if email:
            conditions.append(User.email == email)
        if not conditions:
            return

        query = select(User.id).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        if result.first() is not None:
            raise BadRequestError("User with this email or username already exists")

    async def _commit_unique(
        self,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[UUID] = None,
    ) -> None:
        # A concurrent insert can pass the pre-check; re-check after a failed commit
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            await self._ensure_unique(username, email, exclude_id)
            raise

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.ARTIST,
    ) -> User:
        """Create a user after checking that username and email are free."""
        await self._ensure_unique(username, email)

        user = User(
            username=username,
            email=email,
            password_hash=await hash_password(password),
            role=role,
            is_active=True,
        )
        self.db.add(user)
        await self._commit_unique(username, email)

        logger.info("user_created", user_id=str(user.id), username=username, role=role.value)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials and stamp ``last_login``.

        Unknown emails, wrong passwords and deactivated accounts all fail the
        same way so callers cannot probe which accounts exist.
        """
        result = await self.db.execute(
            select(User).where(User.email == email, User.is_active.is_(True))
        )
        user = result.scalar_one_or_none()

        if not user or not await verify_password(password, user.password_hash):
            logger.info("login_failed", email=email)
            raise UnauthorizedError("Invalid credentials")

        user.last_login = datetime.now(timezone.utc)
        await self.db.commit()

        logger.info("login_succeeded", user_id=str(user.id))
        return user

    async def list_users(
        self,
        offset: int,
        limit: int,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        """List users newest first, optionally filtered by role and search text."""
        query = select(User)
        if role:
            query = query.where(User.role == role)
        if search and search.strip():
            pattern = contains_pattern(search)
            query = query.where(
                or_(
                    User.username.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\"),
                )
            )
        query = query.order_by(User.created_at.desc())

        users, total = await paginate(self.db, query, offset, limit)
        logger.info("retrieved_users", count=len(users), total=total)
        return users, total

    async def update_user(self, user_id: UUID, changes: Dict[str, Any]) -> User:
        """Apply the updatable fields present in ``changes``."""
        user = await self.get_user_or_404(user_id)
        updates = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}

        await self._ensure_unique(updates.get("username"), updates.get("email"), exclude_id=user.id)

        for field, value in updates.items():
            setattr(user, field, value)
        await self._commit_unique(updates.get("username"), updates.get("email"), exclude_id=user_id)

        logger.info("user_updated", user_id=str(user_id), fields=sorted(updates))
        return user

    async def set_password(self, user_id: UUID, password: str) -> None:
        user = await self.get_user_or_404(user_id)
        user.password_hash = await hash_password(password)
        await self.db.commit()
        logger.info("user_password_changed", user_id=str(user_id))

    async def deactivate_user(self, user_id: UUID) -> User:
        user = await self.get_user_or_404(user_id)
        user.is_active = False
        await self.db.commit()
        logger.info("user_deactivated", user_id=str(user_id))
        return user

    async def delete_user(self, user_id: UUID, actor_id: UUID) -> None:
        """Hard-delete a user; nobody may delete their own account."""
        if user_id == actor_id:
            raise BadRequestError("Cannot delete your own account")

        user = await self.get_user_or_404(user_id)
        await self.db.delete(user)
        await self.db.commit()
        logger.info("user_deleted", user_id=str(user_id), deleted_by=str(actor_id))
