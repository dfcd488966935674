"""
Enumeration types shared by the submission gate and its collaborators.
"""
from enum import Enum


class SubmissionKind(Enum):
    """Kind of submission; each kind has its own daily counter."""
    MESSAGE = "message"
    UPLOAD = "upload"


class RejectionReason(Enum):
    """Why the gate refused a submission."""
    BLOCKED = "blocked"
    QUOTA_EXCEEDED = "quota_exceeded"
    EMPTY_PAYLOAD = "empty_payload"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    PERSISTENCE_FAILURE = "persistence_failure"
    BLOCKLIST_UNAVAILABLE = "blocklist_unavailable"
    SUBMISSION_IN_PROGRESS = "submission_in_progress"
