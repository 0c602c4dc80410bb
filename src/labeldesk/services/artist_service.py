"""Artist service for managing the artist catalogue."""
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.exceptions import BadRequestError, NotFoundError
from labeldesk.core.logging import get_logger

from ..models import Artist, Release
from .pagination import contains_pattern, paginate

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("name", "bio", "email", "phone", "social_links")


class ArtistService:
    """Service for managing artists."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_artist_by_id(self, artist_id: UUID) -> Optional[Artist]:
        """Get an artist by ID."""
        result = await self.db.execute(select(Artist).where(Artist.id == artist_id))
        artist = result.scalar_one_or_none()

        if not artist:
            logger.warning("artist_not_found", artist_id=str(artist_id))
        return artist

    async def get_artist_or_404(self, artist_id: UUID) -> Artist:
        artist = await self.get_artist_by_id(artist_id)
        if not artist:
            raise NotFoundError("Artist not found", details={"artist_id": str(artist_id)})
        return artist

    async def get_artist_by_name(self, name: str) -> Optional[Artist]:
        result = await self.db.execute(select(Artist).where(Artist.name == name))
        return result.scalar_one_or_none()

    async def list_artists(
        self,
        offset: int,
        limit: int,
        search: Optional[str] = None,
    ) -> Tuple[List[Artist], int]:
        """List artists sorted by name, optionally filtered by a name substring."""
        query = select(Artist)
        if search and search.strip():
            query = query.where(Artist.name.ilike(contains_pattern(search), escape="\\"))
        query = query.order_by(Artist.name)

        artists, total = await paginate(self.db, query, offset, limit)
        logger.info("retrieved_artists", count=len(artists), total=total, search=search)
        return artists, total

    async def search_artist_names(self, search: Optional[str] = None, limit: int = 50) -> List[Artist]:
        """Artists for dropdowns: name matches, alphabetical, capped."""
        query = select(Artist)
        if search and search.strip():
            query = query.where(Artist.name.ilike(contains_pattern(search), escape="\\"))
        result = await self.db.execute(query.order_by(Artist.name).limit(limit))
        return list(result.scalars().all())

    async def create_artist(self, name: str, created_by: UUID, **fields: Any) -> Artist:
        """Create an artist; names are unique."""
        if await self.get_artist_by_name(name):
            raise BadRequestError("Artist with this name already exists")

        artist = Artist(
            name=name,
            bio=fields.get("bio"),
            email=fields.get("email"),
            phone=fields.get("phone"),
            social_links=fields.get("social_links") or {},
            created_by=created_by,
        )
        self.db.add(artist)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise BadRequestError("Artist with this name already exists")

        logger.info("artist_created", artist_id=str(artist.id), name=name)
        return artist

    async def get_or_create_artist(self, name: str, created_by: UUID) -> Artist:
        """Find an artist by exact name or insert one, without committing.

        The insert runs in a savepoint. When a concurrent request inserts the
        same name first, the unique index rejects ours and the winner's row is
        read back, so both requests end up referencing one artist.
        """
        artist = await self.get_artist_by_name(name)
        if artist:
            return artist

        artist = Artist(name=name, social_links={}, created_by=created_by)
        try:
            async with self.db.begin_nested():
                self.db.add(artist)
        except IntegrityError:
            logger.info("artist_insert_race_resolved", name=name)
            artist = await self.get_artist_by_name(name)
            if artist is None:
                raise
            return artist

        logger.info("artist_auto_created", artist_id=str(artist.id), name=name)
        return artist

    async def update_artist(self, artist_id: UUID, changes: Dict[str, Any]) -> Artist:
        """Apply the updatable fields present in ``changes``; ``""`` clears optional text."""
        artist = await self.get_artist_or_404(artist_id)
        updates = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
        if "name" in updates:
            updates["name"] = updates["name"].strip()
            if not updates["name"]:
                raise BadRequestError("Artist name is required")

        new_name = updates.get("name")
        if new_name and new_name != artist.name and await self.get_artist_by_name(new_name):
            raise BadRequestError("Artist with this name already exists")

        for field, value in updates.items():
            setattr(artist, field, value)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise BadRequestError("Artist with this name already exists")

        logger.info("artist_updated", artist_id=str(artist_id), fields=sorted(updates))
        return artist

    async def delete_artist(self, artist_id: UUID) -> None:
        """Delete an artist that no release references."""
        artist = await self.get_artist_or_404(artist_id)

        result = await self.db.execute(
            select(Release.id).where(Release.artist_id == artist_id).limit(1)
        )
        if result.first() is not None:
            raise BadRequestError("Cannot delete artist with existing releases")

        await self.db.delete(artist)
        await self.db.commit()
        logger.info("artist_deleted", artist_id=str(artist_id))
