"""
Repository layer for data access operations.
"""
from .base_repository import BaseRepository
from .quota_repository import QuotaRepository
from .blocklist_repository import BlocklistRepository
from .message_repository import MessageRepository
from .upload_repository import UploadRepository

__all__ = [
    "BaseRepository",
    "QuotaRepository",
    "BlocklistRepository",
    "MessageRepository",
    "UploadRepository"
]
