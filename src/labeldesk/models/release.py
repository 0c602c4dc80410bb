"""Release model for the distribution workflow."""
import enum

from sqlalchemy import JSON, Column, Date, DateTime, Enum as SQLEnum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin, UUIDMixin


class ReleaseStatus(str, enum.Enum):
    """Release workflow status enumeration."""
    PENDING = "pending"
    APPROVED = "approved"
    DELIVERED = "delivered"
    TAKEDOWN = "takedown"
    REJECTED = "rejected"


class Release(Base, UUIDMixin, TimestampMixin):
    """Release model representing a track or album submitted for distribution."""

    __tablename__ = "releases"

    title = Column(String(255), nullable=False, index=True)
    version = Column(String(255), nullable=True)
    upc = Column(String(32), nullable=True, unique=True, index=True)  # NULLs do not collide
    genre = Column(String(100), nullable=True, index=True)
    release_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    cover_art_url = Column(String(1024), nullable=True)
    audio_file_url = Column(String(1024), nullable=True)
    status = Column(
        SQLEnum(ReleaseStatus, name="release_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ReleaseStatus.PENDING,
        index=True,
    )
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    artist_id = Column(Uuid(as_uuid=True), ForeignKey("artists.id"), nullable=False, index=True)
    label_id = Column(Uuid(as_uuid=True), ForeignKey("labels.id"), nullable=True, index=True)
    # "metadata" is reserved on declarative classes
    release_metadata = Column("metadata", JSON, nullable=False, default=dict)

    # Relationships
    artist = relationship("Artist", back_populates="releases")
    label = relationship("Label", back_populates="releases")
    creator = relationship("User", foreign_keys=[created_by])
    approver = relationship("User", foreign_keys=[approved_by])
    submissions = relationship("Upload", back_populates="release", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Release(id={self.id}, title='{self.title}', upc='{self.upc}', status='{self.status}')>"
