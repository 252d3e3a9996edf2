"""Storage layer for the claim, notification, user and file containers."""

from .record_store import JsonRecordStore
from .claim_repository import ClaimRepository, filter_by_status
from .notification_repository import NotificationRepository
from .user_repository import UserRepository
from .file_storage import FileRegistry

__all__ = [
    'JsonRecordStore',
    'ClaimRepository',
    'filter_by_status',
    'NotificationRepository',
    'UserRepository',
    'FileRegistry'
]
