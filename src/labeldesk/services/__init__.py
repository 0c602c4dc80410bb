"""Services for the label back-office."""
from .user_service import UserService
from .artist_service import ArtistService
from .label_service import LabelService
from .release_service import ReleaseService
from .upload_service import UploadService
from .submission_service import SubmissionService, ReleaseSubmission
from .dashboard_service import DashboardService

__all__ = [
    "UserService",
    "ArtistService",
    "LabelService",
    "ReleaseService",
    "UploadService",
    "SubmissionService",
    "ReleaseSubmission",
    "DashboardService",
]
