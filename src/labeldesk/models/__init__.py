"""Models for the label back-office."""
from .base import Base
from .user import User, UserRole
from .artist import Artist
from .label import Label
from .release import Release, ReleaseStatus
from .upload import Upload, FORM_TYPE_FILE_UPLOAD, FORM_TYPE_RELEASE_CREATION

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Artist",
    "Label",
    "Release",
    "ReleaseStatus",
    "Upload",
    "FORM_TYPE_FILE_UPLOAD",
    "FORM_TYPE_RELEASE_CREATION",
]
