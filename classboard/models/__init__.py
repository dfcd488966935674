"""
Database models and shared enums for the Classboard client.
"""
from .enums import SubmissionKind, RejectionReason
from .chat_message import ChatMessage
from .blocked_identity import BlockedIdentity
from .upload import StoredUpload
from .quota_counter import QuotaCounter

__all__ = [
    "SubmissionKind",
    "RejectionReason",
    "ChatMessage",
    "BlockedIdentity",
    "StoredUpload",
    "QuotaCounter",
]
