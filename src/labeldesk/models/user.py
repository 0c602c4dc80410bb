"""User model for back-office accounts."""
import enum

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, String

from .base import Base, TimestampMixin, UUIDMixin


class UserRole(str, enum.Enum):
    """Account role enumeration."""
    ADMIN = "admin"
    MANAGER = "manager"
    ARTIST = "artist"


class User(Base, UUIDMixin, TimestampMixin):
    """User model representing a back-office account."""

    __tablename__ = "users"

    username = Column(String(100), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.ARTIST,
        index=True,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
