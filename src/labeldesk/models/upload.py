"""Upload model: stored files and logged form submissions."""
from sqlalchemy import JSON, BigInteger, Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin, UUIDMixin

FORM_TYPE_FILE_UPLOAD = "file_upload"
FORM_TYPE_RELEASE_CREATION = "release_creation"


class Upload(Base, UUIDMixin, TimestampMixin):
    """A user's submission: an uploaded file, a release form, or both."""

    __tablename__ = "uploads"

    original_name = Column(String(512), nullable=True)
    filename = Column(String(255), nullable=True)
    file_path = Column(String(1024), nullable=True)  # Storage key or filesystem path
    file_url = Column(String(1024), nullable=True)
    mime_type = Column(String(255), nullable=True)
    file_size = Column(BigInteger, nullable=True)  # Size in bytes
    uploaded_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    release_id = Column(Uuid(as_uuid=True), ForeignKey("releases.id", ondelete="SET NULL"), nullable=True, index=True)
    form_type = Column(String(50), nullable=False, default=FORM_TYPE_FILE_UPLOAD, index=True)
    form_data = Column(JSON, nullable=True)
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    uploader = relationship("User", foreign_keys=[uploaded_by])
    release = relationship("Release", back_populates="submissions")

    def __repr__(self) -> str:
        return f"<Upload(id={self.id}, form_type='{self.form_type}', uploaded_by={self.uploaded_by})>"
