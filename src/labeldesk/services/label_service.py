"""Label service for managing record labels."""
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.exceptions import BadRequestError, NotFoundError
from labeldesk.core.logging import get_logger

from ..models import Label, Release
from .pagination import contains_pattern, paginate

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("name", "description", "contact_email", "website")


class LabelService:
    """Service for managing labels."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_label_by_id(self, label_id: UUID) -> Optional[Label]:
        """Get a label by ID."""
        result = await self.db.execute(select(Label).where(Label.id == label_id))
        label = result.scalar_one_or_none()

        if not label:
            logger.warning("label_not_found", label_id=str(label_id))
        return label

    async def get_label_or_404(self, label_id: UUID) -> Label:
        label = await self.get_label_by_id(label_id)
        if not label:
            raise NotFoundError("Label not found", details={"label_id": str(label_id)})
        return label

    async def get_label_by_name(self, name: str) -> Optional[Label]:
        result = await self.db.execute(select(Label).where(Label.name == name))
        return result.scalar_one_or_none()

    async def list_labels(
        self,
        offset: int,
        limit: int,
        search: Optional[str] = None,
    ) -> Tuple[List[Label], int]:
        """List labels sorted by name, optionally filtered by a name substring."""
        query = select(Label)
        if search and search.strip():
            query = query.where(Label.name.ilike(contains_pattern(search), escape="\\"))
        query = query.order_by(Label.name)

        labels, total = await paginate(self.db, query, offset, limit)
        logger.info("retrieved_labels", count=len(labels), total=total, search=search)
        return labels, total

    async def search_label_names(self, search: Optional[str] = None, limit: int = 50) -> List[Label]:
        query = select(Label)
        if search and search.strip():
            query = query.where(Label.name.ilike(contains_pattern(search), escape="\\"))
        result = await self.db.execute(query.order_by(Label.name).limit(limit))
        return list(result.scalars().all())

    async def create_label(self, name: str, created_by: UUID, **fields: Any) -> Label:
        """Create a label; names are unique."""
        name = name.strip()
        if await self.get_label_by_name(name):
            raise BadRequestError("Label with this name already exists")

        label = Label(
            name=name,
            description=fields.get("description") or "",
            contact_email=fields.get("contact_email"),
            website=fields.get("website"),
            created_by=created_by,
        )
        self.db.add(label)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise BadRequestError("Label with this name already exists")

        logger.info("label_created", label_id=str(label.id), name=name)
        return label

    async def update_label(self, label_id: UUID, changes: Dict[str, Any]) -> Label:
        label = await self.get_label_or_404(label_id)
        updates = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
        if "name" in updates:
            updates["name"] = updates["name"].strip()
            if not updates["name"]:
                raise BadRequestError("Label name is required")

        new_name = updates.get("name")
        if new_name and new_name != label.name and await self.get_label_by_name(new_name):
            raise BadRequestError("Label with this name already exists")

        for field, value in updates.items():
            setattr(label, field, value)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise BadRequestError("Label with this name already exists")

        logger.info("label_updated", label_id=str(label_id), fields=sorted(updates))
        return label

    async def delete_label(self, label_id: UUID) -> None:
        """Delete a label; refused while any release references it."""
        label = await self.get_label_or_404(label_id)

        result = await self.db.execute(
            select(Release.id).where(Release.label_id == label_id).limit(1)
        )
        if result.first() is not None:
            logger.info("label_delete_blocked", label_id=str(label_id))
            raise BadRequestError("Cannot delete label with existing releases")

        await self.db.delete(label)
        await self.db.commit()
        logger.info("label_deleted", label_id=str(label_id))
