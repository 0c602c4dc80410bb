"""Label model for the release catalogue."""
from sqlalchemy import Column, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin, UUIDMixin


class Label(Base, UUIDMixin, TimestampMixin):
    """Label model representing a record label releases are published under."""

    __tablename__ = "labels"

    name = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False, default="")
    contact_email = Column(String(255), nullable=True)
    website = Column(String(512), nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    releases = relationship("Release", back_populates="label", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Label(id={self.id}, name='{self.name}')>"
