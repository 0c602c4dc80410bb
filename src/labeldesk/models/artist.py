"""Artist model for the release catalogue."""
from sqlalchemy import JSON, Column, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin, UUIDMixin


class Artist(Base, UUIDMixin, TimestampMixin):
    """Artist model representing a performer credited on releases."""

    __tablename__ = "artists"

    name = Column(String(255), nullable=False, unique=True, index=True)
    bio = Column(Text, nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    social_links = Column(JSON, nullable=False, default=dict)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    releases = relationship("Release", back_populates="artist", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Artist(id={self.id}, name='{self.name}')>"
