"""Prometheus metrics for the back-office service."""
from prometheus_client import Counter

auth_attempts_total = Counter(
    'auth_attempts_total',
    'Total number of register and login attempts',
    ['action', 'outcome']  # action: register/login, outcome: success/failure
)

releases_created_total = Counter(
    'releases_created_total',
    'Total number of releases created',
    ['source']  # 'admin', 'release_form'
)

release_status_changes_total = Counter(
    'release_status_changes_total',
    'Total number of release status changes',
    ['status']
)

uploads_total = Counter(
    'uploads_total',
    'Total number of files stored',
    ['kind']  # 'audio', 'covers', 'other'
)

upload_bytes_total = Counter(
    'upload_bytes_total',
    'Total bytes written to storage'
)
